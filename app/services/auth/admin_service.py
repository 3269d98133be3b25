"""
Admin provisioning
==================

- `create_admin()` backs `POST /auth/create-admin`: guarded by the
  configured `ADMIN_SETUP_KEY` (compared in constant time). An existing user
  matched by email or username is promoted/updated; otherwise a new admin is
  created.
- `ensure_bootstrap_admin()` runs at startup when `ADMIN_EMAIL` and
  `ADMIN_PASSWORD` are set. It creates the admin if missing and never
  overwrites an existing account's password.
"""

import hmac
import logging
from typing import Optional, Tuple

from pydantic import SecretStr
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import BadRequestException, ForbiddenException
from app.core.security import get_password_hash
from app.db.models.user import User
from app.repositories.user import UserRepository, normalize_email
from app.schemas.auth import CreateAdminRequest
from app.schemas.enums import UserRole
from app.services.auth.signup_service import DUPLICATE_USER_MESSAGE, random_avatar

logger = logging.getLogger("app.auth")


def setup_key_matches(presented: Optional[SecretStr], configured: Optional[SecretStr]) -> bool:
    """False when provisioning is disabled (no key configured) or keys differ."""
    if configured is None or presented is None:
        return False
    expected = configured.get_secret_value()
    if not expected:
        return False
    return hmac.compare_digest(
        presented.get_secret_value().encode("utf-8"),
        expected.encode("utf-8"),
    )


async def create_admin(
    payload: CreateAdminRequest,
    users: UserRepository,
    *,
    configured_key: Optional[SecretStr],
) -> Tuple[str, bool]:
    """Returns `(message, created)`."""
    if not payload.username or not payload.email or not payload.password:
        raise BadRequestException("Please provide username, email and password")

    if not setup_key_matches(payload.setup_key, configured_key):
        logger.warning("Admin creation refused: invalid setup key")
        raise ForbiddenException("Invalid setup key. Admin creation not authorized.")

    existing = await users.find_by_email_or_username(payload.email, payload.username)
    if existing is not None:
        was_admin = existing.role == UserRole.ADMIN.value
        existing.role = UserRole.ADMIN.value
        # Upgrading a regular account keeps its username
        if was_admin:
            existing.username = payload.username
        existing.hashed_password = get_password_hash(payload.password)
        try:
            await users.save(existing)
        except IntegrityError:
            await users.session.rollback()
            raise BadRequestException(DUPLICATE_USER_MESSAGE)
        logger.info("Admin provisioning updated user_id=%s (was_admin=%s)", existing.id, was_admin)
        if was_admin:
            return "Admin user updated successfully", False
        return f"User {payload.username} has been upgraded to admin", False

    user = User(
        username=payload.username,
        email=normalize_email(payload.email),
        hashed_password=get_password_hash(payload.password),
        profile_pic=random_avatar(),
        role=UserRole.ADMIN.value,
    )
    await users.save(user)
    logger.info("Admin created user_id=%s", user.id)
    return "Admin user created successfully", True


async def ensure_bootstrap_admin(
    users: UserRepository,
    *,
    email: str,
    password: str,
    username: str,
    profile_pic: str,
) -> User:
    existing = await users.get_by_email(email)
    if existing is not None:
        logger.info("Bootstrap admin already present id=%s", existing.id)
        return existing

    user = User(
        username=username,
        email=normalize_email(email),
        hashed_password=get_password_hash(password),
        profile_pic=profile_pic,
        role=UserRole.ADMIN.value,
    )
    await users.save(user)
    logger.info("Bootstrap admin created id=%s", user.id)
    return user


__all__ = ["create_admin", "ensure_bootstrap_admin", "setup_key_matches"]
