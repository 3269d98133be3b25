from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, constr

from app.schemas.common import CamelModel
from app.schemas.enums import MovieType


class MovieBase(CamelModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=256)
    description: constr(min_length=1)
    year: int = Field(..., ge=1870, le=2100)
    duration: constr(strip_whitespace=True, min_length=1, max_length=32)
    rating: float = Field(0, ge=0, le=10)
    genres: List[constr(strip_whitespace=True, min_length=1, max_length=64)] = Field(..., min_length=1)
    director: Optional[str] = None
    actors: List[str] = Field(default_factory=list)
    poster: constr(strip_whitespace=True, min_length=1)
    backdrop: constr(strip_whitespace=True, min_length=1)
    video_url: Optional[str] = None
    is_featured: bool = False
    is_active: bool = True
    type: MovieType = MovieType.MOVIE


class MovieCreate(MovieBase):
    pass


class MovieUpdate(CamelModel):
    """Partial update; only fields that are present are applied."""

    title: Optional[constr(strip_whitespace=True, min_length=1, max_length=256)] = None
    description: Optional[constr(min_length=1)] = None
    year: Optional[int] = Field(None, ge=1870, le=2100)
    duration: Optional[constr(strip_whitespace=True, min_length=1, max_length=32)] = None
    rating: Optional[float] = Field(None, ge=0, le=10)
    genres: Optional[List[constr(strip_whitespace=True, min_length=1, max_length=64)]] = Field(None, min_length=1)
    director: Optional[str] = None
    actors: Optional[List[str]] = None
    poster: Optional[constr(strip_whitespace=True, min_length=1)] = None
    backdrop: Optional[constr(strip_whitespace=True, min_length=1)] = None
    video_url: Optional[str] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    type: Optional[MovieType] = None


class MovieOut(MovieBase):
    id: UUID
    view_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MovieViewCount(CamelModel):
    id: UUID
    title: str
    view_count: int


class PaginatedMovies(CamelModel):
    success: bool = True
    count: int
    total: int
    page: int
    pages: int
    data: List[MovieOut]


class CategoryResponse(CamelModel):
    success: bool = True
    category: str
    count: int
    data: Any


class StatsResponse(CamelModel):
    success: bool = True
    data: Dict[str, Any]


__all__ = [
    "MovieBase",
    "MovieCreate",
    "MovieUpdate",
    "MovieOut",
    "MovieViewCount",
    "PaginatedMovies",
    "CategoryResponse",
    "StatsResponse",
]
