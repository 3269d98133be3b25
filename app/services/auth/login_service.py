# app/services/auth/login_service.py
"""
Login service — AKFlix
======================

Email + password login that answers every failure with the same 401
"Invalid credentials", so responses do not reveal which emails exist.
A password check runs even for unknown emails to keep timing uniform.
"""

import logging
from typing import Tuple

from app.core.exceptions import UnauthenticatedException
from app.core.jwt import SessionTokenService
from app.core.security import get_password_hash, verify_password
from app.db.models.user import User
from app.repositories.user import UserRepository
from app.schemas.auth import LoginRequest

logger = logging.getLogger("app.auth")

INVALID_CREDENTIALS = "Invalid credentials"

# Hash compared against when the email is unknown
_DUMMY_HASH = get_password_hash("akflix-timing-equalizer")


async def login_user(
    payload: LoginRequest,
    users: UserRepository,
    tokens: SessionTokenService,
) -> Tuple[str, User]:
    """Return `(token, user)` for valid credentials."""
    user = await users.get_by_email(payload.email)

    if user is None:
        verify_password(payload.password, _DUMMY_HASH)
        logger.info("Login failed: unknown email")
        raise UnauthenticatedException(INVALID_CREDENTIALS)

    if not verify_password(payload.password, user.hashed_password):
        logger.info("Login failed: password mismatch for user_id=%s", user.id)
        raise UnauthenticatedException(INVALID_CREDENTIALS)

    logger.info("Login succeeded user_id=%s", user.id)
    return tokens.issue(user.id, role=user.role), user


__all__ = ["login_user", "INVALID_CREDENTIALS"]
