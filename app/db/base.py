# app/db/base.py
"""
AKFlix — SQLAlchemy Base registry
=================================

Import all ORM models so their tables are registered on `Base.metadata`
(used by `create_all` at startup and in tests).

Keep this file import-only; no runtime logic.
"""

from app.db.base_class import Base
from app.db.models import Movie, MovieGenre, User, user_watched, user_watchlist

__all__ = [
    "Base",
    "Movie",
    "MovieGenre",
    "User",
    "user_watchlist",
    "user_watched",
]
