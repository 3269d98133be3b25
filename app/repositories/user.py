from __future__ import annotations

"""
User repository (credential store).

Every query goes through the async session handed in by the request; write
helpers (`save`, `toggle_movie`) commit before returning.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base_class import utcnow
from app.db.models.movie import Movie
from app.db.models.user import User, user_watchlist
from app.schemas.enums import UserRole

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class UserRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── lookups ────────────────────────────────────────────────
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == normalize_email(email)))
        return result.scalars().first()

    async def find_by_email_or_username(self, email: Optional[str], username: Optional[str]) -> Optional[User]:
        clauses = []
        if email:
            clauses.append(User.email == normalize_email(email))
        if username:
            clauses.append(User.username == username.strip())
        if not clauses:
            return None
        result = await self.session.execute(select(User).where(or_(*clauses)))
        return result.scalars().first()

    async def list_all(self) -> List[User]:
        result = await self.session.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars().all())

    # ── writes ─────────────────────────────────────────────────
    async def save(self, user: User) -> User:
        self.session.add(user)
        await self.session.commit()
        return user

    async def toggle_movie(self, user: User, movie: Movie, *, list_name: str) -> List[UUID]:
        """Add `movie` to the user's `watchlist`/`watched` list, or remove it if present."""
        if list_name not in ("watchlist", "watched"):
            raise ValueError(f"unknown movie list: {list_name}")
        items = getattr(user, list_name)
        if movie in items:
            items.remove(movie)
        else:
            items.append(movie)
        # Membership lives in an association table; bump the row so it counts as activity
        user.updated_at = utcnow()
        await self.session.commit()
        return [m.id for m in items]

    # ── aggregates ─────────────────────────────────────────────
    async def count(self, *, role: Optional[UserRole] = None) -> int:
        stmt = select(func.count()).select_from(User)
        if role is not None:
            stmt = stmt.where(User.role == role.value)
        return int((await self.session.execute(stmt)).scalar_one())

    async def top_watchlists(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Users with the largest watchlists (users with none count as 0)."""
        wl_count = func.count(user_watchlist.c.movie_id).label("watchlist_count")
        stmt = (
            select(User.id, User.username, User.email, User.profile_pic, User.created_at, wl_count)
            .outerjoin(user_watchlist, user_watchlist.c.user_id == User.id)
            .group_by(User.id, User.username, User.email, User.profile_pic, User.created_at)
            .order_by(wl_count.desc(), User.created_at.asc())
            .limit(limit)
        )
        rows = (await self.session.execute(stmt)).all()
        return [
            {
                "id": row.id,
                "username": row.username,
                "email": row.email,
                "profilePic": row.profile_pic,
                "watchlistCount": int(row.watchlist_count),
                "createdAt": row.created_at,
            }
            for row in rows
        ]

    async def recently_active(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Most recently updated users; `updated_at` stands in for activity."""
        stmt = select(User).order_by(User.updated_at.desc()).limit(limit)
        users = (await self.session.execute(stmt)).scalars().all()
        return [
            {
                "id": u.id,
                "username": u.username,
                "email": u.email,
                "profilePic": u.profile_pic,
                "updatedAt": u.updated_at,
                "lastActive": u.updated_at,
            }
            for u in users
        ]


__all__ = ["UserRepository", "normalize_email"]
