# app/core/security.py
from __future__ import annotations

"""
AKFlix — Authentication & Security Helpers
==========================================
- bcrypt password hashing (passlib)
- `authenticate()` — resolve the principal behind a bearer token
- `get_current_user` — FastAPI dependency wrapping `authenticate()`

Any authentication failure (no header, bad/expired token, unknown
principal) is the same 401; the precise reason is only logged.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from app.core.dependencies import get_session_tokens, get_user_repository, parse_uuid
from app.core.exceptions import UnauthenticatedException
from app.core.jwt import SessionTokenService, get_bearer_token
from app.db.models.user import User
from app.repositories.user import UserRepository
from app.schemas.security import Rejected

# ───────────────────────────────────────────────
# 🔐 Security Constants and Setup
# ───────────────────────────────────────────────
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# auto_error=False: a missing header must be 401 (HTTPBearer would answer 403)
security = HTTPBearer(auto_error=False)
logger = logging.getLogger("app.auth")


# ───────────────────────────────────────────────
# 🔐 Password Hashing Utilities
# ───────────────────────────────────────────────
def get_password_hash(password: str) -> str:
    """Return a salted bcrypt hash."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Constant-time verify of a plaintext password against a stored hash."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


# ───────────────────────────────────────────────
# 🪪 Principal resolution
# ───────────────────────────────────────────────
async def authenticate(
    token: Optional[str],
    tokens: SessionTokenService,
    users: UserRepository,
) -> User:
    """Return the principal for `token` or raise `UnauthenticatedException`.

    Steps:
    1) Require a token.
    2) Verify signature, claims and expiry.
    3) Resolve the subject through the credential store.
    """
    if not token:
        raise UnauthenticatedException()

    result = tokens.verify(token)
    if isinstance(result, Rejected):
        logger.info("[Auth] Session token rejected: %s", result.reason.value)
        raise UnauthenticatedException()

    user_id = parse_uuid(result.value.sub)
    user = await users.get_by_id(user_id) if user_id else None
    if user is None:
        logger.info("[Auth] Token subject not found: %s", result.value.sub)
        raise UnauthenticatedException()
    return user


# ───────────────────────────────────────────────
# 👤 Dependency — Get Current User
# ───────────────────────────────────────────────
async def get_current_user(
    request: Request,
    _credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),  # declares the scheme in OpenAPI
    tokens: SessionTokenService = Depends(get_session_tokens),
    users: UserRepository = Depends(get_user_repository),
) -> User:
    """Authenticate the bearer token and attach the principal to `request.state`."""
    user = await authenticate(get_bearer_token(request), tokens, users)

    request.state.user = user
    request.state.user_id = user.id

    logger.debug("[Auth] Authenticated user_id=%s", user.id)
    return user


__all__ = [
    "pwd_context",
    "get_password_hash",
    "verify_password",
    "authenticate",
    "get_current_user",
]
