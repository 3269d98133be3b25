from __future__ import annotations

"""
👤 AKFlix — User (accounts & auth)
==================================

Principal record: login credentials, role, preferences and the two per-user
movie lists (watchlist, watched).

Design highlights
-----------------
• `email` is stored lowercased and is unique; `username` is unique.
• Only the bcrypt hash of the password is stored.
• Exactly one role per principal (`user` | `admin`).
• Watchlist / watched are ordered association tables; `selectin` loading
  keeps them usable inside async sessions.
"""

from typing import Any, Dict

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base, TimestampMixin, UUIDPKMixin, utcnow
from app.db.models.movie import Movie
from app.schemas.enums import RecommendationSetting, UserRole


def _movie_list_table(name: str) -> Table:
    return Table(
        name,
        Base.metadata,
        Column("user_id", Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        Column("movie_id", Uuid(as_uuid=True), ForeignKey("movies.id", ondelete="CASCADE"), primary_key=True),
        Column("added_at", DateTime(timezone=True), nullable=False, default=utcnow),
    )


user_watchlist = _movie_list_table("user_watchlist")
user_watched = _movie_list_table("user_watched")


class User(UUIDPKMixin, TimestampMixin, Base):
    __tablename__ = "users"

    # ── Identity & Authentication ─────────────────────────────────────────────
    username = Column(String(64), nullable=False, unique=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    hashed_password = Column(String, nullable=False, doc="bcrypt hash of the password")
    profile_pic = Column(String(2048), nullable=True)
    role = Column(String(16), nullable=False, default=UserRole.USER.value)

    # ── Preferences ───────────────────────────────────────────────────────────
    fav_genres = Column(JSON, nullable=False, default=list)
    recommendation_settings = Column(
        String(16), nullable=False, default=RecommendationSetting.ALL.value
    )

    # ── Movie lists ───────────────────────────────────────────────────────────
    watchlist = relationship(
        Movie,
        secondary=user_watchlist,
        lazy="selectin",
        order_by=user_watchlist.c.added_at,
    )
    watched = relationship(
        Movie,
        secondary=user_watched,
        lazy="selectin",
        order_by=user_watched.c.added_at,
    )

    def __init__(self, **kwargs: Any) -> None:
        # Start with loaded empty lists so a fresh row never lazy-loads them
        kwargs.setdefault("watchlist", [])
        kwargs.setdefault("watched", [])
        kwargs.setdefault("fav_genres", [])
        super().__init__(**kwargs)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def preferences(self) -> Dict[str, Any]:
        return {
            "fav_genres": list(self.fav_genres or []),
            "recommendation_settings": self.recommendation_settings,
        }


__all__ = ["User", "user_watchlist", "user_watched"]
