from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import EmailStr, Field, constr, field_validator

from app.schemas.common import CamelModel
from app.schemas.enums import RecommendationSetting, UserRole


class UserPreferences(CamelModel):
    fav_genres: List[str] = Field(default_factory=list)
    recommendation_settings: RecommendationSetting = RecommendationSetting.ALL


class UserOut(CamelModel):
    """Public view of a principal; the password hash is never serialized."""

    id: UUID
    username: str
    email: str
    profile_pic: Optional[str] = None
    role: UserRole
    watchlist: List[UUID] = Field(default_factory=list)
    watched: List[UUID] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("watchlist", "watched", mode="before")
    @classmethod
    def _movie_ids(cls, v: Any) -> List[Any]:
        # ORM relationships hold Movie rows; the API exposes their ids
        return [getattr(m, "id", m) for m in (v or [])]


class UserRoleOut(CamelModel):
    id: UUID
    username: str
    email: str
    role: UserRole


class ProfileUpdate(CamelModel):
    """Fields a user may change on their own profile (no password/role)."""

    username: Optional[constr(strip_whitespace=True, min_length=1, max_length=64)] = None
    email: Optional[EmailStr] = None
    profile_pic: Optional[constr(strip_whitespace=True, min_length=1, max_length=2048)] = None
    preferences: Optional[UserPreferences] = None


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


class RoleUpdate(CamelModel):
    role: Optional[str] = None


class WatchlistResponse(CamelModel):
    success: bool = True
    watchlist: List[UUID]


class WatchedResponse(CamelModel):
    success: bool = True
    watched: List[UUID]


__all__ = [
    "UserPreferences",
    "UserOut",
    "UserRoleOut",
    "ProfileUpdate",
    "ChangePasswordRequest",
    "RoleUpdate",
    "WatchlistResponse",
    "WatchedResponse",
]
