# app/services/auth/account_service.py
from __future__ import annotations

"""
Account Service — AKFlix
========================

Self-service and admin mutations of an existing principal.

Key properties
--------------
- **Profile updates** never touch the password hash or the role; a new email
  or username must not belong to another account (400).
- **Password change** re-verifies the current password (401 on mismatch) and
  stores a fresh bcrypt hash.
- **Role change** accepts exactly `user` or `admin` (400 otherwise).
- **Watchlist / watched** toggles require the movie to exist (404).
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from app.core.exceptions import BadRequestException, NotFoundException, UnauthenticatedException
from app.core.security import get_password_hash, verify_password
from app.db.models.movie import Movie
from app.db.models.user import User
from app.repositories.user import UserRepository, normalize_email
from app.schemas.enums import UserRole
from app.schemas.user import ChangePasswordRequest, ProfileUpdate

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────
# ⚙️ Constants
# ─────────────────────────────────────────────────────────────
MIN_PASSWORD_LENGTH = 6
EMAIL_OR_USERNAME_TAKEN = "Email or username is already in use"


# ─────────────────────────────────────────────────────────────
# 👤 Profile
# ─────────────────────────────────────────────────────────────
async def update_profile(user: User, payload: ProfileUpdate, users: UserRepository) -> User:
    """Apply the fields present in `payload` to `user`."""
    changes = payload.model_dump(mode="json", exclude_unset=True, exclude_none=True)

    email = normalize_email(changes["email"]) if "email" in changes else None
    username = changes.get("username")
    if (email and email != user.email) or (username and username != user.username):
        other = await users.find_by_email_or_username(
            email if email != user.email else None,
            username if username != user.username else None,
        )
        if other is not None and other.id != user.id:
            raise BadRequestException(EMAIL_OR_USERNAME_TAKEN)

    if username:
        user.username = username
    if email:
        user.email = email
    if "profile_pic" in changes:
        user.profile_pic = changes["profile_pic"]
    prefs = changes.get("preferences")
    if prefs is not None:
        if "fav_genres" in prefs:
            user.fav_genres = list(prefs["fav_genres"])
        if "recommendation_settings" in prefs:
            user.recommendation_settings = prefs["recommendation_settings"]

    try:
        await users.save(user)
    except IntegrityError:
        await users.session.rollback()
        raise BadRequestException(EMAIL_OR_USERNAME_TAKEN)

    logger.info("Profile updated user_id=%s fields=%s", user.id, sorted(changes))
    return user


# ─────────────────────────────────────────────────────────────
# 🔑 Password
# ─────────────────────────────────────────────────────────────
async def change_password(user: User, payload: ChangePasswordRequest, users: UserRepository) -> None:
    if not payload.current_password or not payload.new_password:
        raise BadRequestException("Current password and new password are required")
    if len(payload.new_password) < MIN_PASSWORD_LENGTH:
        raise BadRequestException(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if not verify_password(payload.current_password, user.hashed_password):
        logger.info("Password change refused: wrong current password user_id=%s", user.id)
        raise UnauthenticatedException("Current password is incorrect")

    user.hashed_password = get_password_hash(payload.new_password)
    await users.save(user)
    logger.info("Password changed user_id=%s", user.id)


# ─────────────────────────────────────────────────────────────
# 🛡️ Role (admin)
# ─────────────────────────────────────────────────────────────
def parse_role(value: str | None) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        raise BadRequestException("Invalid role specified")


async def set_role(target: User, role: UserRole, users: UserRepository, *, actor: User) -> User:
    previous = target.role
    target.role = role.value
    await users.save(target)
    logger.info("Role changed user_id=%s %s -> %s by admin_id=%s", target.id, previous, role.value, actor.id)
    return target


# ─────────────────────────────────────────────────────────────
# 🎞️ Watchlist / watched
# ─────────────────────────────────────────────────────────────
async def toggle_movie_list(
    user: User,
    movie: Movie | None,
    users: UserRepository,
    *,
    list_name: str,
) -> List[UUID]:
    """Flip membership of `movie` in the named list; returns the list's movie ids."""
    if movie is None:
        raise NotFoundException("Movie not found")
    ids = await users.toggle_movie(user, movie, list_name=list_name)
    logger.debug("Toggled %s user_id=%s movie_id=%s size=%d", list_name, user.id, movie.id, len(ids))
    return ids


__all__ = [
    "update_profile",
    "change_password",
    "parse_role",
    "set_role",
    "toggle_movie_list",
    "MIN_PASSWORD_LENGTH",
    "EMAIL_OR_USERNAME_TAKEN",
]
