from __future__ import annotations

"""
AKFlix — HTTP Rate Limiting (SlowAPI)
=====================================

- **User/IP aware** keying: per-user when the auth gate set
  `request.state.user_id`, else per client IP (XFF/X-Real-IP/client.host).
- **Exemptions**: health/docs paths and configurable trusted IPs.
- **Test friendly**: `RATE_LIMIT_TEST_BYPASS` disables limits, and
  `RATE_LIMIT_NAMESPACE` prefixes keys so parallel runs don't collide.
- **Backends**: Redis via `RATELIMIT_STORAGE_URI`, else in-memory.

Environment
-----------
RATE_LIMIT_ENABLED           default: "true"
DEFAULT_RATE_LIMIT           default: "100/minute"
RATELIMIT_STORAGE_URI        default: "" (falls back to "memory://")
RATE_LIMIT_SKIP_PATHS        default: "/healthz,/readyz,/docs,/redoc,/openapi.json,/favicon.ico"
RATE_LIMIT_TRUSTED_IPS       default: "" (comma separated)
RATE_LIMIT_NAMESPACE         default: ""
RATE_LIMIT_TEST_BYPASS       default: ""

Usage
-----
    @router.post("/login")
    @rate_limit("10/minute")
    async def login(request: Request, response: Response, ...): ...

Routes decorated with `rate_limit` must accept `request` and `response`
parameters, and their modules must not use postponed annotations.
"""

import os
from typing import Callable, List, Optional, Set

from dotenv import load_dotenv
from fastapi import FastAPI
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request

# ──────────────────────────────────────────────────────────────
# ⚙️ Environment & defaults
# ──────────────────────────────────────────────────────────────
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() in _TRUTHY
DEFAULT_LIMIT = os.getenv("DEFAULT_RATE_LIMIT", "100/minute").strip()
STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "").strip()

SKIP_PATHS: List[str] = [
    p.strip()
    for p in os.getenv(
        "RATE_LIMIT_SKIP_PATHS",
        "/healthz,/readyz,/docs,/redoc,/openapi.json,/favicon.ico",
    ).split(",")
    if p.strip()
]

TRUSTED_IPS: Set[str] = {ip.strip() for ip in os.getenv("RATE_LIMIT_TRUSTED_IPS", "").split(",") if ip.strip()}
NAMESPACE = os.getenv("RATE_LIMIT_NAMESPACE", "").strip()


# ──────────────────────────────────────────────────────────────
# 🧠 Keying & exemptions
# ──────────────────────────────────────────────────────────────
def _client_ip(request: Request) -> str:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    xri = request.headers.get("x-real-ip")
    if xri:
        return xri.strip()
    return get_remote_address(request) or "unknown"


def _with_namespace(key: str) -> str:
    return f"{NAMESPACE}:{key}" if NAMESPACE else key


def get_user_rate_limit_key(request: Request) -> str:
    """`user:<id>` once authenticated, else `ip:<addr>`."""
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return _with_namespace(f"user:{user_id}")
    return _with_namespace(f"ip:{_client_ip(request)}")


def _path_is_skipped(path: str) -> bool:
    return any(path == p or path.startswith(p.rstrip("/") + "/") for p in SKIP_PATHS)


def should_exempt_request(request: Optional[Request]) -> bool:
    # Env is re-read per request so tests can toggle without re-importing
    if os.getenv("RATE_LIMIT_ENABLED", "true").strip().lower() not in _TRUTHY:
        return True
    if os.getenv("RATE_LIMIT_TEST_BYPASS", "").strip().lower() in _TRUTHY:
        return True
    if request is None:
        return False
    if _path_is_skipped(request.url.path):
        return True
    return _client_ip(request) in TRUSTED_IPS


# ──────────────────────────────────────────────────────────────
# 🧰 Limiter instance (Redis / memory)
# ──────────────────────────────────────────────────────────────
def _build_default_limits() -> List[str]:
    return [chunk.strip() for chunk in DEFAULT_LIMIT.split(",") if chunk.strip()]


def _exempt_when(request: Optional[Request] = None) -> bool:
    """
    SlowAPI calls `exempt_when` without arguments on some versions; fall back
    to the limiter's request context there.
    """
    req = request
    if req is None:
        ctx = getattr(limiter, "_request_context", None)
        req = ctx.get() if ctx is not None else None
    return should_exempt_request(req)


limiter = Limiter(
    key_func=get_user_rate_limit_key,
    default_limits=_build_default_limits(),
    headers_enabled=True,
    storage_uri=STORAGE_URI or "memory://",
    enabled=RATE_LIMIT_ENABLED,
)


# ──────────────────────────────────────────────────────────────
# 🎛 Decorators
# ──────────────────────────────────────────────────────────────
def rate_limit(*limits: str) -> Callable:
    """
    Apply per-route limits.

        @rate_limit("10/minute")
        @rate_limit("5/second", "100/minute")
    """
    selected = list(limits) if limits else _build_default_limits()

    def _apply(fn: Callable) -> Callable:
        for limit_value in reversed(selected):
            fn = limiter.limit(limit_value, exempt_when=_exempt_when)(fn)
        return fn

    return _apply


def rate_limit_exempt() -> Callable:
    """Explicitly exempt a route from limiting (default limits included)."""
    return limiter.exempt


# ──────────────────────────────────────────────────────────────
# 🔧 Installer
# ──────────────────────────────────────────────────────────────
def install_rate_limiter(app: FastAPI) -> None:
    """Attach the limiter, its 429 handler and the SlowAPI middleware."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    if not RATE_LIMIT_ENABLED:
        logger.info("RateLimiter disabled by env; middleware not installed")
        return
    app.add_middleware(SlowAPIMiddleware)
    logger.info(
        "✅ RateLimiter ready | default={} | storage={} | trusted_ips={} | ns={}",
        _build_default_limits(), STORAGE_URI or "memory://", len(TRUSTED_IPS), NAMESPACE,
    )


__all__ = ["limiter", "rate_limit", "rate_limit_exempt", "install_rate_limiter", "get_user_rate_limit_key"]
