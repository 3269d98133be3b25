# app/db/models/__init__.py
"""
AKFlix — ORM models

Importing this package registers every table on `Base.metadata`.
"""

from .movie import Movie, MovieGenre
from .user import User, user_watched, user_watchlist

__all__ = ["Movie", "MovieGenre", "User", "user_watchlist", "user_watched"]
