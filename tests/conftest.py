# tests/conftest.py
"""
Global test bootstrap
- Pins a test environment (SQLite, in-memory limiter storage, fixed keys)
  BEFORE the app is imported
- Mounts a mock Redis client into app.core.redis_client
- Makes SlowAPI rate-limiting test-friendly (bypass by default)
- Exposes a redis_client fixture + an opt-in single_use_tokens fixture
"""

from __future__ import annotations

import os
import random

import pytest

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set BEFORE importing the app/fixtures so it takes effect)
# ──────────────────────────────────────────────────────────────────────────────
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DB_CREATE_ALL"] = "false"
os.environ["ENABLE_HTTPS_REDIRECT"] = "false"
os.environ.setdefault("JWT_SECRET_KEY", "test-session-signing-key")
os.environ.setdefault("VIDEO_TOKEN_SECRET_KEY", "test-video-signing-key")
os.environ.setdefault("ADMIN_SETUP_KEY", "test-setup-key")
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_TEST_BYPASS", "1")
os.environ.setdefault("RATE_LIMIT_NAMESPACE", f"pytest-{random.getrandbits(32)}")
os.environ.setdefault("LOG_LEVEL", "WARNING")

# ──────────────────────────────────────────────────────────────────────────────
# 🧪 Install mock Redis globally before any tests run
# ──────────────────────────────────────────────────────────────────────────────
from app.core.config import settings  # noqa: E402
from app.core.redis_client import redis_wrapper  # noqa: E402
from tests.fixtures.mocks.redis import MockRedisClient  # noqa: E402

redis_wrapper._client = MockRedisClient()

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Pull in the rest of the fixtures (db, app, auth, movies, upstream)
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.db import *  # noqa: E402,F401,F403
from tests.fixtures.app import *  # noqa: E402,F401,F403
from tests.fixtures.auth import *  # noqa: E402,F401,F403
from tests.fixtures.movies import *  # noqa: E402,F401,F403
from tests.fixtures.upstream import *  # noqa: E402,F401,F403


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


# ──────────────────────────────────────────────────────────────────────────────
# 🔌 Redis fixture (function-scoped), cleared between tests
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
async def redis_client():
    """Use this when you want to inspect or modify Redis directly in a test."""
    client = redis_wrapper.client
    await client.flushall()
    yield client
    await client.flushall()


# ──────────────────────────────────────────────────────────────────────────────
# 🎟️ Opt-in single-use video tokens
# ──────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def single_use_tokens(monkeypatch, redis_client):
    """Enable `VIDEO_TOKEN_SINGLE_USE` for one test."""
    monkeypatch.setattr(settings, "VIDEO_TOKEN_SINGLE_USE", True)
    yield redis_client
