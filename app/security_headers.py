# app/security_headers.py
from __future__ import annotations

"""
# AKFlix — Security Headers & CORS

Security headers and CORS for the API.

## What you get
- **Headers**: CSP, HSTS, CORP/COOP, Referrer-Policy, X-Content-Type-Options,
  X-Frame-Options, X-Permitted-Cross-Domain-Policies.
- **Media paths** (the video proxy) get `Cross-Origin-Resource-Policy:
  cross-origin` so a `<video>` element on the frontend origin can load them;
  their bodies and upstream headers are otherwise left alone.
- **CORS installer**: allow-list from `settings.FRONTEND_ORIGINS`, exposing
  the range headers video players read.
- **Cache helper**: `set_sensitive_cache()` marks token-issuing responses
  `no-store`.

## Quick start
    install_security(app)   # HTTPS redirect (production) + headers middleware
    configure_cors(app)

## Env knobs
- ENABLE_HTTPS_REDIRECT (default: on in production only)
- SECURITY_SKIP_PATHS (CSV; default "/healthz,/readyz,/docs,/redoc,/openapi.json")
- HSTS_MAX_AGE (31536000), HSTS_INCLUDE_SUBDOMAINS ("true")
- CSP_DEFAULT_SRC, CSP_FRAME_ANCESTORS
- REFERRER_POLICY (default "strict-origin-when-cross-origin")
"""

import os
from dataclasses import dataclass
from typing import List, Tuple

from fastapi import FastAPI, Response
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.config import settings

RawHeaders = List[Tuple[bytes, bytes]]


# ─────────────────────────────────────────────────────────────
# ⚙️ Configuration
# ─────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class SecurityHeadersConfig:
    hsts_max_age: int = int(os.getenv("HSTS_MAX_AGE", "31536000"))
    hsts_include_subdomains: bool = os.getenv("HSTS_INCLUDE_SUBDOMAINS", "true").lower() == "true"

    # A JSON API serves no documents; lock everything down
    csp_default_src: str = os.getenv("CSP_DEFAULT_SRC", "'none'")
    csp_frame_ancestors: str = os.getenv("CSP_FRAME_ANCESTORS", "'none'")

    referrer_policy: str = os.getenv("REFERRER_POLICY", "strict-origin-when-cross-origin")
    coop: str = os.getenv("CROSS_ORIGIN_OPENER_POLICY", "same-origin")
    corp: str = os.getenv("CROSS_ORIGIN_RESOURCE_POLICY", "same-origin")

    skip_paths_csv: str = os.getenv("SECURITY_SKIP_PATHS", "/healthz,/readyz,/docs,/redoc,/openapi.json")
    media_path_prefix: str = f"{settings.API_PREFIX}/videos/"


_CFG = SecurityHeadersConfig()


# ─────────────────────────────────────────────────────────────
# 🧩 Middleware
# ─────────────────────────────────────────────────────────────
class SecurityHeadersMiddleware:
    """
    Pure ASGI middleware that adds security headers at `http.response.start`
    without touching the body (streamed proxy responses pass through as is).
    Headers already present on the response are left alone.
    """

    def __init__(self, app: ASGIApp, cfg: SecurityHeadersConfig = _CFG) -> None:
        self.app = app
        self.cfg = cfg
        self._skip_prefixes: Tuple[str, ...] = tuple(
            p.strip() for p in (cfg.skip_paths_csv or "").split(",") if p.strip()
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        path = scope.get("path", "")
        if any(path.startswith(prefix) for prefix in self._skip_prefixes):
            return await self.app(scope, receive, send)
        is_media = path.startswith(self.cfg.media_path_prefix)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                raw_headers: RawHeaders = list(message.get("headers", []))
                _apply_headers_to_raw(raw_headers, self.cfg, media=is_media)
                message["headers"] = raw_headers
            await send(message)

        await self.app(scope, receive, send_wrapper)


def _has_header(raw_headers: RawHeaders, name: str) -> bool:
    lname = name.lower().encode("latin-1")
    return any(h[0].lower() == lname for h in raw_headers)


def _ensure_header(raw_headers: RawHeaders, name: str, value: str) -> None:
    if not _has_header(raw_headers, name):
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))


def _apply_headers_to_raw(raw_headers: RawHeaders, cfg: SecurityHeadersConfig, *, media: bool = False) -> None:
    hsts = f"max-age={cfg.hsts_max_age}"
    if cfg.hsts_include_subdomains:
        hsts += "; includeSubDomains"

    _ensure_header(raw_headers, "Strict-Transport-Security", hsts)
    _ensure_header(raw_headers, "X-Content-Type-Options", "nosniff")
    _ensure_header(raw_headers, "X-Frame-Options", "DENY")
    _ensure_header(raw_headers, "Referrer-Policy", cfg.referrer_policy)
    _ensure_header(raw_headers, "X-Permitted-Cross-Domain-Policies", "none")
    _ensure_header(raw_headers, "Cross-Origin-Opener-Policy", cfg.coop)
    _ensure_header(raw_headers, "Cross-Origin-Resource-Policy", "cross-origin" if media else cfg.corp)
    _ensure_header(
        raw_headers,
        "Content-Security-Policy",
        f"default-src {cfg.csp_default_src}; frame-ancestors {cfg.csp_frame_ancestors}",
    )


# ─────────────────────────────────────────────────────────────
# 🔓 Public helpers
# ─────────────────────────────────────────────────────────────
def set_sensitive_cache(response: Response) -> None:
    """Mark a response carrying credentials/tokens as non-cacheable."""
    response.headers.setdefault("Cache-Control", "no-store")
    response.headers.setdefault("Pragma", "no-cache")
    response.headers.setdefault("Expires", "0")


# ─────────────────────────────────────────────────────────────
# 🌐 CORS installer (allow-list, not '*')
# ─────────────────────────────────────────────────────────────
def configure_cors(app: FastAPI) -> None:
    origins = settings.frontend_origins_list
    origins_regex = settings.ALLOW_ORIGINS_REGEX or None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_origin_regex=origins_regex,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "Range", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Content-Range", "Accept-Ranges", "Content-Length", "Retry-After"],
        max_age=3600,
    )


# ─────────────────────────────────────────────────────────────
# 🔐 HTTPS redirect + headers middleware
# ─────────────────────────────────────────────────────────────
def _https_redirect_enabled() -> bool:
    flag = os.getenv("ENABLE_HTTPS_REDIRECT")
    if flag is None:
        return settings.is_production
    return flag.strip().lower() in {"1", "true", "yes", "on"}


def install_security(app: FastAPI) -> None:
    """Add HTTPS redirect (when enabled) and the security headers middleware."""
    if _https_redirect_enabled():
        app.add_middleware(HTTPSRedirectMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, cfg=_CFG)


__all__ = [
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "install_security",
    "configure_cors",
    "set_sensitive_cache",
]
