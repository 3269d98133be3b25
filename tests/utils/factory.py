# tests/utils/factory.py

"""
Row factories for tests.

Each helper inserts one committed row with unique defaults; keyword overrides
win over the defaults.
"""

import uuid
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import get_password_hash
from app.db.models.movie import Movie
from app.db.models.user import User
from app.schemas.enums import UserRole

DEFAULT_PASSWORD = "password123"


async def create_user(
    session: AsyncSession,
    *,
    email: Optional[str] = None,
    username: Optional[str] = None,
    password: str = DEFAULT_PASSWORD,
    role: UserRole = UserRole.USER,
    **overrides: Any,
) -> User:
    suffix = uuid.uuid4().hex[:10]
    user = User(
        email=(email or f"user_{suffix}@example.com").lower(),
        username=username or f"user_{suffix}",
        hashed_password=get_password_hash(password),
        profile_pic=overrides.pop("profile_pic", "https://i.pravatar.cc/150?img=3"),
        role=role.value,
        **overrides,
    )
    session.add(user)
    await session.commit()
    return user


async def create_movie(session: AsyncSession, **overrides: Any) -> Movie:
    suffix = uuid.uuid4().hex[:8]
    data = {
        "title": f"Movie {suffix}",
        "description": "A test movie.",
        "year": 2020,
        "duration": "2h 0m",
        "rating": 7.5,
        "genres": ["Drama"],
        "director": "Jane Doe",
        "actors": ["Actor One"],
        "poster": "https://img.example.com/poster.jpg",
        "backdrop": "https://img.example.com/backdrop.jpg",
        "video_url": "https://media.example.com/videos/sample.mp4",
        "is_featured": False,
        "is_active": True,
        "type": "movie",
    }
    data.update(overrides)
    movie = Movie(**data)
    session.add(movie)
    await session.commit()
    return movie
