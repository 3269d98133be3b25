from __future__ import annotations

"""
MockRedisClient (async) — test-grade, wrapper-compatible
========================================================
Covers the subset of Redis the app uses:

KV      : get/set (with `ex`/`px`/`nx`/`xx`)/setex/exists/ttl/expire
Delete  : delete/flushall/flushdb
Scan    : keys (glob match)
Health  : ping/close/aclose

Design notes
------------
- Values are stored exactly as written. TTLs are second precision.
- `now` is injectable so expiry can be tested without sleeping.
"""

import time
from fnmatch import fnmatch
from typing import Any, Callable, Dict, List, Optional


class MockRedisClient:
    def __init__(self, *, now: Callable[[], float] = time.time) -> None:
        self.store: Dict[str, Any] = {}
        self.expirations: Dict[str, Optional[float]] = {}
        self._now = now
        self._closed = False

    # ── internals ──────────────────────────────────────────────
    def _purge(self, key: str) -> None:
        exp = self.expirations.get(key)
        if exp is not None and exp <= self._now():
            self.store.pop(key, None)
            self.expirations.pop(key, None)

    def _alive(self, key: str) -> bool:
        self._purge(key)
        return key in self.store

    # ── KV ─────────────────────────────────────────────────────
    async def get(self, key: str) -> Any:
        return self.store.get(key) if self._alive(key) else None

    async def set(
        self,
        key: str,
        value: Any,
        ex: Optional[int] = None,
        px: Optional[int] = None,
        nx: bool = False,
        xx: bool = False,
    ) -> Optional[bool]:
        exists = self._alive(key)
        if (nx and exists) or (xx and not exists):
            return None
        self.store[key] = value
        if ex is not None:
            self.expirations[key] = self._now() + int(ex)
        elif px is not None:
            self.expirations[key] = self._now() + int(px) / 1000.0
        else:
            self.expirations[key] = None
        return True

    async def setex(self, key: str, seconds: int, value: Any) -> bool:
        return bool(await self.set(key, value, ex=seconds))

    async def exists(self, *keys: str) -> int:
        return sum(1 for k in keys if self._alive(k))

    async def ttl(self, key: str) -> int:
        if not self._alive(key):
            return -2
        exp = self.expirations.get(key)
        if exp is None:
            return -1
        return max(0, int(round(exp - self._now())))

    async def expire(self, key: str, seconds: int) -> bool:
        if not self._alive(key):
            return False
        self.expirations[key] = self._now() + int(seconds)
        return True

    # ── delete ─────────────────────────────────────────────────
    async def delete(self, *keys: str) -> int:
        removed = 0
        for k in keys:
            if self._alive(k):
                removed += 1
            self.store.pop(k, None)
            self.expirations.pop(k, None)
        return removed

    async def flushall(self) -> bool:
        self.store.clear()
        self.expirations.clear()
        return True

    flushdb = flushall

    async def keys(self, pattern: str = "*") -> List[str]:
        return [k for k in list(self.store) if self._alive(k) and fnmatch(k, pattern)]

    # ── health ─────────────────────────────────────────────────
    async def ping(self) -> bool:
        return not self._closed

    async def close(self) -> None:
        self._closed = True

    aclose = close


__all__ = ["MockRedisClient"]
