# app/api/routers/users.py
"""
Users API — AKFlix
==================

Authenticated
-------------
PUT  /users/profile               update own profile (password/role ignored)
PUT  /users/password              change own password
POST /users/watchlist/{movieId}   toggle a movie in the watchlist
POST /users/watched/{movieId}     toggle a movie in the watched list

Admin
-----
GET  /users                       all users, newest first
GET  /users/stats                 totals, top watchlists, recently active
GET  /users/{id}                  one user
PUT  /users/{id}/role             set role to `user` or `admin`

Static paths are declared before `/{user_id}`.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from app.core.dependencies import get_movie_repository, get_user_repository, parse_uuid
from app.core.exceptions import NotFoundException
from app.core.security import get_current_user
from app.db.models.user import User
from app.dependencies.admin import admin_user
from app.repositories.movie import MovieRepository
from app.repositories.user import UserRepository
from app.schemas.common import Envelope, ListEnvelope, MessageResponse
from app.schemas.enums import UserRole
from app.schemas.user import (
    ChangePasswordRequest,
    ProfileUpdate,
    RoleUpdate,
    UserOut,
    UserRoleOut,
    WatchedResponse,
    WatchlistResponse,
)
from app.services.auth.account_service import (
    change_password,
    parse_role,
    set_role,
    toggle_movie_list,
    update_profile,
)

router = APIRouter(prefix="/users", tags=["Users"])

USER_NOT_FOUND = "User not found"


async def _get_user_or_404(user_id: str, users: UserRepository) -> User:
    user_uuid = parse_uuid(user_id)
    user = await users.get_by_id(user_uuid) if user_uuid else None
    if user is None:
        raise NotFoundException(USER_NOT_FOUND)
    return user


async def _get_movie(movie_id: str, movies: MovieRepository):
    movie_uuid = parse_uuid(movie_id)
    return await movies.get(movie_uuid) if movie_uuid else None


# ──────────────────────────────────────────────────────────────
# 🛡️ Admin: list & stats
# ──────────────────────────────────────────────────────────────
@router.get("", response_model=ListEnvelope[UserOut], summary="List users")
async def list_users(
    _: User = Depends(admin_user),
    users: UserRepository = Depends(get_user_repository),
) -> ListEnvelope[UserOut]:
    items = await users.list_all()
    return ListEnvelope[UserOut](count=len(items), data=items)


@router.get("/stats", response_model=Envelope[Dict[str, Any]], summary="User statistics")
async def user_stats(
    _: User = Depends(admin_user),
    users: UserRepository = Depends(get_user_repository),
) -> Envelope[Dict[str, Any]]:
    return Envelope[Dict[str, Any]](
        data={
            "total": await users.count(),
            "admins": await users.count(role=UserRole.ADMIN),
            "topWatchlists": await users.top_watchlists(),
            "recentlyActive": await users.recently_active(),
        }
    )


# ──────────────────────────────────────────────────────────────
# 👤 Self-service
# ──────────────────────────────────────────────────────────────
@router.put("/profile", response_model=Envelope[UserOut], summary="Update own profile")
async def update_own_profile(
    payload: ProfileUpdate = Body(...),
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> Envelope[UserOut]:
    user = await update_profile(current_user, payload, users)
    return Envelope[UserOut](data=user)


@router.put("/password", response_model=MessageResponse, summary="Change own password")
async def update_own_password(
    payload: ChangePasswordRequest = Body(...),
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
) -> MessageResponse:
    await change_password(current_user, payload, users)
    return MessageResponse(message="Password updated successfully")


@router.post("/watchlist/{movie_id}", response_model=WatchlistResponse, summary="Toggle watchlist entry")
async def toggle_watchlist(
    movie_id: str,
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    movies: MovieRepository = Depends(get_movie_repository),
) -> WatchlistResponse:
    movie = await _get_movie(movie_id, movies)
    ids = await toggle_movie_list(current_user, movie, users, list_name="watchlist")
    return WatchlistResponse(watchlist=ids)


@router.post("/watched/{movie_id}", response_model=WatchedResponse, summary="Toggle watched entry")
async def toggle_watched(
    movie_id: str,
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    movies: MovieRepository = Depends(get_movie_repository),
) -> WatchedResponse:
    movie = await _get_movie(movie_id, movies)
    ids = await toggle_movie_list(current_user, movie, users, list_name="watched")
    return WatchedResponse(watched=ids)


# ──────────────────────────────────────────────────────────────
# 🛡️ Admin: single user
# ──────────────────────────────────────────────────────────────
@router.get("/{user_id}", response_model=Envelope[UserOut], summary="Get a user")
async def get_user(
    user_id: str,
    _: User = Depends(admin_user),
    users: UserRepository = Depends(get_user_repository),
) -> Envelope[UserOut]:
    return Envelope[UserOut](data=await _get_user_or_404(user_id, users))


@router.put("/{user_id}/role", response_model=Envelope[UserRoleOut], summary="Change a user's role")
async def update_role(
    user_id: str,
    payload: RoleUpdate = Body(...),
    admin: User = Depends(admin_user),
    users: UserRepository = Depends(get_user_repository),
) -> Envelope[UserRoleOut]:
    # Role is validated before the lookup: a bad role is a 400 even for unknown ids
    role = parse_role(payload.role)
    target = await _get_user_or_404(user_id, users)
    target = await set_role(target, role, users, actor=admin)
    return Envelope[UserRoleOut](data=target)


__all__ = ["router"]
