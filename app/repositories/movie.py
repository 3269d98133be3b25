from __future__ import annotations

"""Movie catalog repository.

Filtering, sorting and pagination for the public listing, genre aggregates for
the category endpoints and the admin stats, and CRUD for the admin routes.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.movie import Movie, MovieGenre
from app.db.models.user import user_watched, user_watchlist

logger = logging.getLogger(__name__)

# Public sort keys (camelCase as sent by clients, snake_case accepted too)
SORTABLE_FIELDS = {
    "createdAt": Movie.created_at,
    "created_at": Movie.created_at,
    "updatedAt": Movie.updated_at,
    "updated_at": Movie.updated_at,
    "title": Movie.title,
    "year": Movie.year,
    "rating": Movie.rating,
    "viewCount": Movie.view_count,
    "view_count": Movie.view_count,
}


class InvalidSortError(ValueError):
    pass


@dataclass
class MoviePage:
    items: List[Movie]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def parse_sort(sort: Optional[str]):
    """`"field:asc|desc"` → ORDER BY clause; default newest first."""
    if not sort:
        return Movie.created_at.desc()
    field, _, direction = sort.partition(":")
    column = SORTABLE_FIELDS.get(field.strip())
    if column is None:
        raise InvalidSortError(f"Cannot sort by '{field.strip()}'")
    return column.desc() if direction.strip().lower() == "desc" else column.asc()


class MovieRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── lookups ────────────────────────────────────────────────
    async def get(self, movie_id: UUID) -> Optional[Movie]:
        return await self.session.get(Movie, movie_id)

    async def search(
        self,
        *,
        genre: Optional[str] = None,
        year: Optional[int] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> MoviePage:
        order_by = parse_sort(sort)

        filters = []
        if genre:
            filters.append(Movie.genre_links.any(MovieGenre.name == genre))
        if year is not None:
            filters.append(Movie.year == year)
        if search:
            term = f"%{search.strip()}%"
            filters.append(or_(Movie.title.ilike(term), Movie.description.ilike(term)))

        total_stmt = select(func.count()).select_from(Movie).where(*filters)
        total = int((await self.session.execute(total_stmt)).scalar_one())

        stmt = (
            select(Movie)
            .where(*filters)
            .order_by(order_by, Movie.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        items = list((await self.session.execute(stmt)).scalars().all())
        return MoviePage(items=items, total=total, page=page, limit=limit)

    async def featured(self) -> List[Movie]:
        stmt = select(Movie).where(Movie.is_featured.is_(True)).order_by(Movie.created_at.desc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def in_category(self, category: str, limit: int) -> List[Movie]:
        stmt = (
            select(Movie)
            .where(Movie.genre_links.any(MovieGenre.name == category))
            .order_by(Movie.created_at.desc())
            .limit(limit)
        )
        return list((await self.session.execute(stmt)).scalars().all())

    # ── genre aggregates ───────────────────────────────────────
    async def categories(self) -> List[Dict[str, str]]:
        stmt = select(MovieGenre.name).distinct().order_by(MovieGenre.name)
        return [{"name": name} for name in (await self.session.execute(stmt)).scalars().all()]

    async def genre_counts(self) -> List[Dict[str, Any]]:
        count = func.count(MovieGenre.movie_id).label("count")
        stmt = select(MovieGenre.name, count).group_by(MovieGenre.name).order_by(count.desc(), MovieGenre.name)
        return [{"name": row.name, "count": int(row.count)} for row in (await self.session.execute(stmt)).all()]

    async def related_categories(self, category: str, limit: int) -> List[Dict[str, Any]]:
        """Genres that co-occur with `category`, most frequent first.

        Each entry carries up to `limit` sample movies (`{title, id}`).
        """
        in_category = select(MovieGenre.movie_id).where(MovieGenre.name == category)
        count = func.count(MovieGenre.movie_id).label("count")
        stmt = (
            select(MovieGenre.name, count)
            .where(MovieGenre.movie_id.in_(in_category), MovieGenre.name != category)
            .group_by(MovieGenre.name)
            .order_by(count.desc(), MovieGenre.name)
            .limit(limit)
        )
        groups = (await self.session.execute(stmt)).all()

        related: List[Dict[str, Any]] = []
        for row in groups:
            sample_stmt = (
                select(Movie.id, Movie.title)
                .join(MovieGenre, MovieGenre.movie_id == Movie.id)
                .where(MovieGenre.name == row.name, Movie.id.in_(in_category))
                .order_by(Movie.created_at)
                .limit(limit)
            )
            samples = (await self.session.execute(sample_stmt)).all()
            related.append(
                {
                    "name": row.name,
                    "count": int(row.count),
                    "movies": [{"title": s.title, "id": s.id} for s in samples],
                }
            )
        return related

    # ── stats ──────────────────────────────────────────────────
    async def count(self, *, featured: Optional[bool] = None) -> int:
        stmt = select(func.count()).select_from(Movie)
        if featured is not None:
            stmt = stmt.where(Movie.is_featured.is_(featured))
        return int((await self.session.execute(stmt)).scalar_one())

    async def most_viewed(self, limit: int = 5) -> List[Dict[str, Any]]:
        stmt = select(Movie).order_by(Movie.view_count.desc(), Movie.created_at.desc()).limit(limit)
        return [
            {"id": m.id, "title": m.title, "poster": m.poster, "year": m.year, "viewCount": m.view_count}
            for m in (await self.session.execute(stmt)).scalars().all()
        ]

    async def latest(self, limit: int = 5) -> List[Dict[str, Any]]:
        stmt = select(Movie).order_by(Movie.created_at.desc()).limit(limit)
        return [
            {"id": m.id, "title": m.title, "poster": m.poster, "year": m.year, "createdAt": m.created_at}
            for m in (await self.session.execute(stmt)).scalars().all()
        ]

    # ── writes ─────────────────────────────────────────────────
    async def create(self, data: Dict[str, Any]) -> Movie:
        movie = Movie(**data)
        self.session.add(movie)
        await self.session.commit()
        return movie

    async def update(self, movie: Movie, patch: Dict[str, Any]) -> Movie:
        for key, value in patch.items():
            setattr(movie, key, value)
        await self.session.commit()
        return movie

    async def delete(self, movie: Movie) -> None:
        # Drop list memberships explicitly; SQLite does not enforce FK cascades by default
        for table in (user_watchlist, user_watched):
            await self.session.execute(delete(table).where(table.c.movie_id == movie.id))
        await self.session.delete(movie)
        await self.session.commit()

    async def increment_views(self, movie: Movie) -> int:
        """Atomically add one view; returns the new count."""
        await self.session.execute(
            update(Movie)
            .where(Movie.id == movie.id)
            .values(view_count=Movie.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        await self.session.refresh(movie, attribute_names=["view_count", "updated_at"])
        return movie.view_count


__all__ = ["MovieRepository", "MoviePage", "InvalidSortError", "parse_sort", "SORTABLE_FIELDS"]
