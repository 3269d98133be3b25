# app/core/redis_client.py
from __future__ import annotations

"""
AKFlix — Redis Client (Async)
=============================
Single place that owns the Redis connection.

Redis is optional for the API: it backs the single-use video-token guard
(when `VIDEO_TOKEN_SINGLE_USE` is on) and, through `RATELIMIT_STORAGE_URI`,
the SlowAPI limiter. Nothing else touches it.

Public API (imported as `redis_wrapper`)
----------------------------------------
- await redis_wrapper.connect() / await redis_wrapper.close() / await redis_wrapper.is_connected()
- redis_wrapper.client
- await redis_wrapper.set_once(key, ttl_seconds)
"""

import asyncio
import logging
import os
import random
from typing import Any, Optional, Protocol
from urllib.parse import urlparse

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger("app.redis")

# ─────────────────────────────────────────────────────────────────────────────
# Tunables (env-aware defaults)
# ─────────────────────────────────────────────────────────────────────────────
MAX_RETRIES = int(os.getenv("REDIS_CONNECT_MAX_RETRIES", "5"))
BASE_DELAY = float(os.getenv("REDIS_CONNECT_BASE_DELAY", "0.3"))  # seconds
HEALTH_CHECK_INTERVAL = int(os.getenv("REDIS_HEALTH_CHECK_INTERVAL", "30"))  # seconds
SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "3"))
SOCKET_CONNECT_TIMEOUT = float(os.getenv("REDIS_SOCKET_CONNECT_TIMEOUT", "3"))
POOL_MAX_CONNECTIONS = int(os.getenv("REDIS_POOL_MAX_CONNECTIONS", "64"))
CLIENT_NAME = os.getenv("REDIS_CLIENT_NAME", "akflix-api")


class _RedisProto(Protocol):
    async def ping(self) -> Any: ...
    async def set(self, name: str, value: Any, *, ex: Optional[int] = None, nx: Optional[bool] = None) -> Any: ...
    async def get(self, name: str) -> Any: ...
    async def delete(self, *names: Any) -> Any: ...
    async def close(self) -> Any: ...


# ─────────────────────────────────────────────────────────────────────────────
# Client
# ─────────────────────────────────────────────────────────────────────────────
class RedisClient:
    """Redis connection manager (asyncio) with backoff on connect."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self._client: Optional[_RedisProto] = None

    # ── lifecycle ────────────────────────────────────────────────────────────
    async def connect(self) -> None:
        """Connect with retries; reuse a healthy client when there is one."""
        if self._client:
            try:
                await self._client.ping()
                return
            except RedisError:
                self._client = None  # stale client → reconnect

        last_err: Optional[Exception] = None
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                self._client = self._build_client()
                await self._client.ping()
                logger.info("✅ Connected to Redis")
                return
            except (RedisError, OSError) as e:
                last_err = e
                delay = self._backoff(attempt)
                logger.warning(
                    "Redis connect attempt %s/%s failed: %r (retrying in %.2fs)",
                    attempt, MAX_RETRIES, e, delay,
                )
                await asyncio.sleep(delay)

        self._client = None
        logger.error("❌ Redis connection failed after %s retries.", MAX_RETRIES)
        raise RuntimeError("Redis connection failed") from last_err

    async def close(self) -> None:
        if not self._client:
            return
        try:
            await self._client.close()
            logger.info("🛑 Redis connection closed.")
        except RedisError as e:
            logger.warning("Error closing Redis connection: %s", e)
        finally:
            self._client = None

    async def is_connected(self) -> bool:
        """Return True if `PING` succeeds."""
        if not self._client:
            return False
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    @property
    def client(self) -> _RedisProto:
        """Low-level client; `connect()` must have run at startup."""
        if not self._client:
            raise RuntimeError("Redis client not initialized. Call connect() first.")
        return self._client

    # ── helpers ──────────────────────────────────────────────────────────────
    async def set_once(self, key: str, ttl_seconds: int) -> bool:
        """Atomically mark `key`; True only for the first caller within the TTL."""
        ok = await self.client.set(key, "1", ex=max(1, int(ttl_seconds)), nx=True)
        return bool(ok)

    # ── internals ───────────────────────────────────────────────────────────
    def _build_client(self) -> _RedisProto:
        parsed = urlparse(self.redis_url.strip())
        client_kwargs = dict(
            decode_responses=True,
            health_check_interval=HEALTH_CHECK_INTERVAL,
            socket_keepalive=True,
            socket_timeout=SOCKET_TIMEOUT,
            socket_connect_timeout=SOCKET_CONNECT_TIMEOUT,
            retry_on_timeout=True,
            max_connections=POOL_MAX_CONNECTIONS,
            client_name=CLIENT_NAME,
        )
        # TLS handling for rediss://
        if parsed.scheme == "rediss" and os.getenv("REDIS_SSL_CERT_REQS", "required").lower() == "none":
            client_kwargs["ssl_cert_reqs"] = None  # dev only
        return redis.Redis.from_url(self.redis_url.strip(), **client_kwargs)

    @staticmethod
    def _backoff(attempt: int) -> float:
        # Exponential backoff with jitter (cap at 3s)
        return min(3.0, BASE_DELAY * (2 ** (attempt - 1))) + random.uniform(0, 0.25)


# ─────────────────────────────────────────────────────────────────────────────
# Singleton instance
# ─────────────────────────────────────────────────────────────────────────────
redis_wrapper = RedisClient(settings.REDIS_URL)

__all__ = ["RedisClient", "redis_wrapper"]
