from __future__ import annotations

"""
Single-use enforcement for signed video tokens.

Off by default: a signed token stays replayable until it expires. When
`VIDEO_TOKEN_SINGLE_USE` is on, the first request that presents a token claims
it in Redis (`SET NX EX`) for the rest of its lifetime; later requests with the
same token are refused.

Players fetch a title as a series of `Range` requests (initial probe, seeks)
that all reuse one stream URL. With single-use on, every request after the
first gets a 401, so seeking and resumed playback break. Only enable it for
clients that download each token's bytes in one request.
"""

import hashlib
import logging
import time
from typing import Callable

from app.core.redis_client import RedisClient

logger = logging.getLogger("app.video.tokens")

KEY_PREFIX = "video:token:used:"


class ReplayGuard:
    def __init__(self, redis: RedisClient, *, clock: Callable[[], float] = time.time) -> None:
        self._redis = redis
        self._clock = clock

    @staticmethod
    def key_for(token: str) -> str:
        # Tokens embed the upstream URL; only a digest is stored
        return KEY_PREFIX + hashlib.sha256(token.encode("utf-8")).hexdigest()

    async def claim(self, token: str, expires_at: int) -> bool:
        """True if this is the first use of `token`; False on replay."""
        ttl = int(expires_at - self._clock())
        first = await self._redis.set_once(self.key_for(token), max(1, ttl))
        if not first:
            logger.info("Video token rejected (replayed)")
        return first


__all__ = ["ReplayGuard", "KEY_PREFIX"]
