from __future__ import annotations

"""
🎬 AKFlix — Movie (catalog entry) and MovieGenre (movie ↔ genre tag)
====================================================================

A movie or TV show in the catalog. `video_url` is the upstream location the
video proxy streams from; players get it through `/secure-video` as a signed,
short-lived proxy URL.

Genres live in their own table so filtering and per-genre aggregation stay
plain SQL on both PostgreSQL and SQLite. `Movie.genres` reads and writes the
ordered list of names.
"""

from typing import Iterable, List

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin, UUIDPKMixin
from app.schemas.enums import MovieType


class MovieGenre(Base):
    __tablename__ = "movie_genres"

    movie_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("movies.id", ondelete="CASCADE"),
        primary_key=True,
    )
    name = Column(String(64), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    __table_args__ = (Index("ix_movie_genres_name", "name"),)


class Movie(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "movies"

    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=False)
    year = Column(Integer, nullable=False)
    duration = Column(String(32), nullable=False)
    rating = Column(Float, nullable=False, default=0.0, server_default=text("0"))
    director = Column(String(256), nullable=True)
    actors = Column(JSON, nullable=False, default=list)
    poster = Column(String(2048), nullable=False)
    backdrop = Column(String(2048), nullable=False)
    video_url = Column(String(2048), nullable=True)

    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    type = Column(String(16), nullable=False, default=MovieType.MOVIE.value)
    view_count = Column(Integer, nullable=False, default=0, server_default=text("0"))

    genre_links = relationship(
        MovieGenre,
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by=MovieGenre.position,
    )

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 10", name="rating_bounds"),
        CheckConstraint("view_count >= 0", name="view_count_nonneg"),
        Index("ix_movies_title", "title"),
        Index("ix_movies_year", "year"),
        Index("ix_movies_featured_active", "is_featured", "is_active"),
    )

    @property
    def genres(self) -> List[str]:
        return [link.name for link in self.genre_links]

    @genres.setter
    def genres(self, names: Iterable[str]) -> None:
        # Reuse existing rows so unchanged genres are not deleted and re-inserted
        existing = {link.name: link for link in self.genre_links}
        links = []
        for position, name in enumerate(dict.fromkeys(names)):
            link = existing.get(name) or MovieGenre(name=name)
            link.position = position
            links.append(link)
        self.genre_links = links


__all__ = ["Movie", "MovieGenre"]
