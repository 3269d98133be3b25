"""
🧭 AKFlix • API Router Aggregator
================================

Composes the four route groups into one `APIRouter`:

- `/auth`    registration, login, current principal, admin provisioning
- `/movies`  catalog browsing, stats, secure video URLs, admin CRUD
- `/users`   profile, password, watchlist/watched, admin user management
- `/videos`  signed-token byte-range proxy

Auth and rate limits live in the child routers; this module only composes.
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .movies import router as movies_router
from .users import router as users_router
from .videos import router as videos_router


def build_router() -> APIRouter:
    """Return a fresh router including every route group."""
    api = APIRouter()
    api.include_router(auth_router)
    api.include_router(movies_router)
    api.include_router(users_router)
    api.include_router(videos_router)
    return api


router = build_router()

__all__ = [
    "router",
    "build_router",
    "auth_router",
    "movies_router",
    "users_router",
    "videos_router",
]
