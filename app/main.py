# app/main.py
"""
# AKFlix API — Application Entrypoint (FastAPI)

ASGI application factory and lifecycle for the AKFlix movie catalog and
signed-URL video proxy.

## Design Goals
- Deterministic, testable **app factory** (`create_app`) with explicit lifespan.
- Explicit **middleware order** (outermost first):
  1) request id → 2) security headers/HTTPS → 3) CORS → 4) rate limits →
  5) strip `Server` header.
- No response compression: proxied video bytes are relayed untouched.
- Centralized problem+json exception handling.
- Graceful local/dev behavior: Redis is best-effort unless single-use video
  tokens are enabled.

## Probes
- `/healthz` — liveness (process up).
- `/readyz` — readiness (DB and, when required, Redis).
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable
import logging
import os

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse, Response

# -- Logging bootstrap (Loguru + stdlib intercept) ----------------------------
from app.core import logger as _logsetup  # noqa: F401

from app.api.routers import router as api_router
from app.core.config import settings
from app.core.exception_handlers import (
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.core.limiter import install_rate_limiter, rate_limit_exempt
from app.core.redis_client import redis_wrapper
from app.db.session import async_engine, async_session_maker, create_all_tables, db_healthcheck
from app.middleware.request_id import RequestIDMiddleware
from app.repositories.user import UserRepository
from app.security_headers import configure_cors, install_security
from app.services.auth.admin_service import ensure_bootstrap_admin

logger = logging.getLogger("app")


# ─────────────────────────────────────────────────────────────────────────────
# 🔄 Lifespan: startup & shutdown
# ─────────────────────────────────────────────────────────────────────────────
async def _bootstrap_admin() -> None:
    """Create the configured admin account when it does not exist yet."""
    if not settings.ADMIN_EMAIL or settings.ADMIN_PASSWORD is None:
        return
    async with async_session_maker() as session:
        await ensure_bootstrap_admin(
            UserRepository(session),
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD.get_secret_value(),
            username=settings.ADMIN_USERNAME,
            profile_pic=settings.DEFAULT_PROFILE_PIC,
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifecycle manager.

    Startup:
        - Warn when video tokens share the session signing key.
        - Create missing tables (`DB_CREATE_ALL`) and the bootstrap admin.
        - Connect to Redis (required only for single-use video tokens).
        - Open the shared outbound HTTP client for the video proxy.

    Shutdown:
        - Close the HTTP client and Redis, dispose the DB engine.
    """
    logger.info("✅ %s starting up (env=%s)", settings.PROJECT_NAME, settings.ENV)

    if settings.video_token_key_shared:
        logger.warning("VIDEO_TOKEN_SECRET_KEY is not set; video tokens are signed with the session key")

    if settings.DB_CREATE_ALL:
        await create_all_tables()
    await _bootstrap_admin()

    try:
        await redis_wrapper.connect()
    except RuntimeError:
        if settings.VIDEO_TOKEN_SINGLE_USE:
            logger.error("Redis unavailable: single-use video tokens will be refused until it recovers")
        else:
            logger.warning("Redis unavailable (continuing in degraded mode)")

    app.state.http_client = httpx.AsyncClient()

    try:
        yield
    finally:
        client = getattr(app.state, "http_client", None)
        if client is not None:
            await client.aclose()
            app.state.http_client = None
        await redis_wrapper.close()
        await async_engine.dispose()
        logger.info("🛑 %s shutting down", settings.PROJECT_NAME)


# ─────────────────────────────────────────────────────────────────────────────
# 🏗️ App factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    """
    Build and configure the FastAPI app instance.

    Returns:
        FastAPI: fully wired application with middleware, exception handlers,
        routers, and health/readiness endpoints.
    """
    enable_docs = settings.ENABLE_DOCS
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if enable_docs else None,
        redoc_url="/redoc" if enable_docs else None,
        openapi_url="/openapi.json" if enable_docs else None,
        lifespan=lifespan,
    )

    # ── Middlewares (added innermost first) ─────────────────────────────────
    @app.middleware("http")
    async def _strip_server_header(request: Request, call_next: Callable) -> Response:
        """Remove the `Server` header to avoid leaking implementation details."""
        response: Response = await call_next(request)
        if "server" in response.headers:
            del response.headers["server"]
        return response

    install_rate_limiter(app)
    configure_cors(app)
    install_security(app)
    app.add_middleware(RequestIDMiddleware)

    # ── Exception handlers ──────────────────────────────────────────────────
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)  # type: ignore[arg-type]

    # ── Routers ─────────────────────────────────────────────────────────────
    app.include_router(api_router, prefix=settings.API_PREFIX)

    # ── Meta endpoints ──────────────────────────────────────────────────────
    @app.get("/healthz", tags=["meta"])
    @rate_limit_exempt()
    async def healthz() -> dict[str, bool]:
        """Liveness probe: `{"ok": true}` when the process is responsive."""
        return {"ok": True}

    @app.get("/readyz", tags=["meta"])
    @rate_limit_exempt()
    async def readyz() -> JSONResponse:
        """
        Readiness probe.

        Redis only gates readiness when single-use video tokens depend on it.
        """
        db_ok = await db_healthcheck()
        redis_ok = await redis_wrapper.is_connected()
        ready = db_ok and (redis_ok or not settings.VIDEO_TOKEN_SINGLE_USE)
        return JSONResponse(
            {"ready": ready, "checks": {"db": db_ok, "redis": redis_ok}},
            status_code=200 if ready else 503,
        )

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Minimal root that points to docs (when enabled)."""
        return JSONResponse(
            {
                "name": settings.PROJECT_NAME,
                "docs": app.docs_url or "",
                "version": settings.VERSION,
            }
        )

    return app


# ─────────────────────────────────────────────────────────────────────────────
# 🚀 Module-level ASGI app for Uvicorn/Gunicorn
# ─────────────────────────────────────────────────────────────────────────────
app = create_app()
__all__ = ["create_app", "app"]


# Local dev runner (prefer: `uvicorn app.main:app --reload`)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        reload=os.getenv("RELOAD", "1") == "1",
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
