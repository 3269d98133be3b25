# app/core/exceptions.py
from __future__ import annotations

"""
AKFlix — Application Exceptions
===============================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
lets us attach structured metadata and integrate cleanly with the JSON error
shape from `app.core.exception_handlers`.

Taxonomy
--------
- `UnauthenticatedException`  401 — missing/invalid/expired session proof,
                              or principal no longer resolvable
- `ForbiddenException`        403 — authenticated but lacking the role
- `InvalidTokenException`     401 — malformed, tampered or expired video token
- `UpstreamFailureException`  500 — proxy could not reach the upstream resource
- `NotFoundException`         404 — referenced movie/user does not exist
- `BadRequestException`       400 — invalid input the schema cannot express

Token failures always carry one uniform client message; the precise reason is
only logged server-side.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "UnauthenticatedException",
    "ForbiddenException",
    "InvalidTokenException",
    "UpstreamFailureException",
    "NotFoundException",
    "BadRequestException",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code (e.g., 400/401/403/404/500).
    message : str
        Human-readable error message (serialized as `detail` as well).
    code : int
        Optional internal/typed error code. Defaults to `status_code`.
    details : dict | list | str | None
        Machine-readable details (e.g., ids, constraints).
    headers : dict | None
        Optional headers (e.g., `{"WWW-Authenticate": "Bearer"}`).
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        code: Optional[int] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.code: int = int(code or status_code)
        self.message: str = message
        self.details: Optional[Any] = details


# ──────────────────────────────────────────────────────────────
# 🔐 Authentication / authorization
# ──────────────────────────────────────────────────────────────
class UnauthenticatedException(AppException):
    """No usable session proof on the request (401)."""

    def __init__(self, message: str = "Not authorized to access this route") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(AppException):
    """Authenticated principal lacks the required role (403)."""

    def __init__(self, message: str = "Access denied. Admin role required") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, message=message)


# ──────────────────────────────────────────────────────────────
# 🎟️ Video tokens / proxy
# ──────────────────────────────────────────────────────────────
class InvalidTokenException(AppException):
    """Raised for any rejected video token. The message never varies."""

    def __init__(self, message: str = "Access denied: Invalid or expired token") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, message=message)


class UpstreamFailureException(AppException):
    """Upstream video resource unreachable (generic 500)."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Error streaming video",
        )


# ──────────────────────────────────────────────────────────────
# 📚 Catalog / accounts
# ──────────────────────────────────────────────────────────────
class NotFoundException(AppException):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, message=message)


class BadRequestException(AppException):
    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, message=message, details=details)
