"""
Signup service
==============

Registers a new principal and issues its first session token.

Key behaviors
-------------
- **Normalized email** (trimmed, lowercased) and server-side bcrypt hashing.
- Duplicate email *or* username → **400**, including the race where two
  requests pass the pre-check and the unique constraint fires on commit.
- A random avatar is assigned when no profile picture is supplied.
"""

import logging
import secrets
from typing import Tuple

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import BadRequestException
from app.core.jwt import SessionTokenService
from app.core.security import get_password_hash
from app.db.models.user import User
from app.repositories.user import UserRepository, normalize_email
from app.schemas.auth import RegisterRequest
from app.schemas.enums import UserRole

logger = logging.getLogger("app.auth")

DUPLICATE_USER_MESSAGE = "User with this email or username already exists"


def random_avatar() -> str:
    return f"https://i.pravatar.cc/150?img={secrets.randbelow(70)}"


async def register_user(
    payload: RegisterRequest,
    users: UserRepository,
    tokens: SessionTokenService,
) -> Tuple[str, User]:
    """Create a `user`-role principal; returns `(token, user)`."""
    email = normalize_email(payload.email)

    if await users.find_by_email_or_username(email, payload.username):
        logger.info("Registration refused: duplicate email/username")
        raise BadRequestException(DUPLICATE_USER_MESSAGE)

    user = User(
        username=payload.username,
        email=email,
        hashed_password=get_password_hash(payload.password),
        profile_pic=payload.profile_pic or random_avatar(),
        role=UserRole.USER.value,
    )
    try:
        await users.save(user)
    except IntegrityError:
        await users.session.rollback()
        logger.info("Registration refused: unique constraint on commit")
        raise BadRequestException(DUPLICATE_USER_MESSAGE)

    logger.info("User registered id=%s", user.id)
    return tokens.issue(user.id, role=user.role), user


__all__ = ["register_user", "random_avatar", "DUPLICATE_USER_MESSAGE"]
