# app/core/dependencies.py
from __future__ import annotations

"""
Request dependencies — AKFlix
=============================

Providers for the collaborators routes depend on. Each one builds its object
from `settings` at the edge, so the components themselves never read global
configuration; tests replace any of them through `app.dependency_overrides`.

Providers
---------
- `get_session_tokens`      → `SessionTokenService`
- `get_video_token_codec`   → `SignedTokenCodec`
- `get_replay_guard`        → `ReplayGuard` or None (single-use disabled)
- `get_user_repository`     → `UserRepository` bound to the request session
- `get_movie_repository`    → `MovieRepository` bound to the request session
- `get_upstream_client`     → shared `httpx.AsyncClient`
"""

import logging
from datetime import timedelta
from typing import Optional
from uuid import UUID

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.jwt import SessionTokenService
from app.core.redis_client import redis_wrapper
from app.db.session import get_async_db
from app.repositories.movie import MovieRepository
from app.repositories.user import UserRepository
from app.services.replay_guard import ReplayGuard
from app.services.signing import SignedTokenCodec

logger = logging.getLogger(__name__)

__all__ = [
    "parse_uuid",
    "get_session_tokens",
    "get_video_token_codec",
    "get_replay_guard",
    "get_user_repository",
    "get_movie_repository",
    "get_upstream_client",
]


# ──────────────────────────────────────────────────────────────
# 🔧 Utility: UUID parsing
# ──────────────────────────────────────────────────────────────
def parse_uuid(value: object) -> Optional[UUID]:
    """Return a UUID for `value`, or None when it is not one.

    Path ids are parsed by hand so a malformed id reads as "not found"
    instead of a validation error.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


# ──────────────────────────────────────────────────────────────
# 🔐 Token services
# ──────────────────────────────────────────────────────────────
def get_session_tokens() -> SessionTokenService:
    return SessionTokenService(
        settings.JWT_SECRET_KEY.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        ttl=timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS),
    )


def get_video_token_codec() -> SignedTokenCodec:
    return SignedTokenCodec(
        settings.video_token_secret,
        default_ttl=settings.VIDEO_TOKEN_TTL_SECONDS,
    )


def get_replay_guard() -> Optional[ReplayGuard]:
    if not settings.VIDEO_TOKEN_SINGLE_USE:
        return None
    return ReplayGuard(redis_wrapper)


# ──────────────────────────────────────────────────────────────
# 🗄️ Repositories
# ──────────────────────────────────────────────────────────────
def get_user_repository(db: AsyncSession = Depends(get_async_db)) -> UserRepository:
    return UserRepository(db)


def get_movie_repository(db: AsyncSession = Depends(get_async_db)) -> MovieRepository:
    return MovieRepository(db)


# ──────────────────────────────────────────────────────────────
# 🌐 Outbound HTTP
# ──────────────────────────────────────────────────────────────
def get_upstream_client(request: Request) -> httpx.AsyncClient:
    """Shared client created in the app lifespan.

    When the lifespan did not run (e.g. an ASGI transport in tests), a client
    is created on first use and closed by the lifespan shutdown if any.
    """
    client = getattr(request.app.state, "http_client", None)
    if client is None:
        logger.debug("No shared http client on app.state; creating one")
        client = httpx.AsyncClient()
        request.app.state.http_client = client
    return client
