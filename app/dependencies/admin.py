from __future__ import annotations

"""
Admin guards
------------
Authorization on top of `get_current_user`. Authentication failures stay 401;
an authenticated principal without the admin role gets 403.

Exports
- is_admin(user): role check
- authorize_admin(user): raise 401 for no principal, 403 for non-admin
- admin_user: FastAPI dependency returning the authenticated admin user
"""

import logging
from typing import Optional

from fastapi import Depends

from app.core.exceptions import ForbiddenException, UnauthenticatedException
from app.core.security import get_current_user
from app.db.models.user import User
from app.schemas.enums import UserRole

logger = logging.getLogger("app.auth")


def is_admin(user: User) -> bool:
    return getattr(user, "role", None) == UserRole.ADMIN.value


def authorize_admin(user: Optional[User]) -> User:
    if user is None:
        raise UnauthenticatedException()
    if not is_admin(user):
        logger.info("[Auth] Admin route refused for user_id=%s", user.id)
        raise ForbiddenException()
    return user


async def admin_user(current_user: User = Depends(get_current_user)) -> User:
    return authorize_admin(current_user)


__all__ = ["is_admin", "authorize_admin", "admin_user"]
