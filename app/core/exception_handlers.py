from __future__ import annotations

"""
Problem+JSON exception handlers (RFC 7807).

FastAPI integrates these via app/main.py. All HTTP errors are rendered as
application/problem+json with a stable schema; `AppException` subclasses add
their typed `code`/`details`. Headers attached to an exception (for example
`WWW-Authenticate`) are preserved. Request validation failures are a 400 whose
message joins the individual error messages.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import AppException
from app.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)


def _problem(
    title: str,
    detail: str,
    status_code: int,
    request: Request,
    *,
    headers: Optional[Dict[str, str]] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "type": "about:blank",
        "title": title,
        "detail": detail,
        "status": status_code,
        "instance": request.url.path,
        "success": False,
        "message": detail,
        "request_id": get_request_id(request) or "N/A",
    }
    if extra:
        content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers,
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:  # type: ignore
    title = exc.__class__.__name__.replace("Exception", "").strip() or "Error"
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    extra: Dict[str, Any] = {}
    if isinstance(exc, AppException):
        extra["code"] = exc.code
        if exc.details is not None:
            extra["details"] = exc.details
    return _problem(
        title,
        detail,
        exc.status_code,
        request,
        headers=getattr(exc, "headers", None),
        extra=extra,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore
    errors = exc.errors()
    messages = [str(e.get("msg", "")) for e in errors if e.get("msg")]
    return _problem(
        "Validation error",
        ", ".join(messages) or "Validation error",
        status.HTTP_400_BAD_REQUEST,
        request,
        extra={"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]},
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore
    # Hide internals from the client; keep the trace in the logs.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _problem(
        "Internal Server Error",
        "An unexpected error occurred.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        request,
    )


__all__ = [
    "http_exception_handler",
    "validation_exception_handler",
    "global_exception_handler",
]
