# app/api/routers/movies.py
"""
Movies API — AKFlix
===================

Public
------
GET  /movies                          filter (genre/year/search), sort, paginate
GET  /movies/featured                 featured titles, newest first
GET  /movies/categories               distinct genres
GET  /movies/categories/{category}    movies in a genre, or co-occurring genres
GET  /movies/{id}                     one movie (counts as a view)
POST /movies/{id}/view                add a view

Authenticated
-------------
GET  /movies/stats                    catalog statistics
GET  /movies/{id}/secure-video        short-lived signed stream URL

Admin
-----
POST /movies, PUT /movies/{id}, DELETE /movies/{id}

Static paths are declared before `/{movie_id}` so they are not captured by it.
Invalid and unknown ids are both a 404 "Movie not found".
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app.core.config import settings
from app.core.dependencies import get_movie_repository, get_video_token_codec, parse_uuid
from app.core.exceptions import BadRequestException, NotFoundException
from app.core.security import get_current_user
from app.db.models.movie import Movie
from app.db.models.user import User
from app.dependencies.admin import admin_user
from app.repositories.movie import InvalidSortError, MovieRepository
from app.schemas.common import Envelope, ListEnvelope
from app.schemas.movie import (
    CategoryResponse,
    MovieCreate,
    MovieOut,
    MovieUpdate,
    MovieViewCount,
    PaginatedMovies,
    StatsResponse,
)
from app.schemas.security import SecureVideoUrl
from app.services.signing import SignedTokenCodec, secure_stream_path

router = APIRouter(prefix="/movies", tags=["Movies"])
logger = logging.getLogger("app.movies")

MOVIE_NOT_FOUND = "Movie not found"

# Columns a partial update may clear explicitly
_NULLABLE_FIELDS = {"director", "video_url"}


async def _get_movie_or_404(movie_id: str, movies: MovieRepository) -> Movie:
    movie_uuid = parse_uuid(movie_id)
    movie = await movies.get(movie_uuid) if movie_uuid else None
    if movie is None:
        raise NotFoundException(MOVIE_NOT_FOUND)
    return movie


# ──────────────────────────────────────────────────────────────
# 📚 Public catalog
# ──────────────────────────────────────────────────────────────
@router.get("", response_model=PaginatedMovies, summary="List movies")
async def list_movies(
    genre: Optional[str] = Query(None),
    year: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    sort: Optional[str] = Query(None, description="`field:asc|desc`, e.g. `rating:desc`"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    movies: MovieRepository = Depends(get_movie_repository),
) -> PaginatedMovies:
    try:
        result = await movies.search(genre=genre, year=year, search=search, sort=sort, page=page, limit=limit)
    except InvalidSortError as exc:
        raise BadRequestException(str(exc))
    return PaginatedMovies(
        count=len(result.items),
        total=result.total,
        page=result.page,
        pages=result.pages,
        data=result.items,
    )


@router.get("/featured", response_model=ListEnvelope[MovieOut], summary="Featured movies")
async def featured_movies(movies: MovieRepository = Depends(get_movie_repository)) -> ListEnvelope[MovieOut]:
    items = await movies.featured()
    return ListEnvelope[MovieOut](count=len(items), data=items)


@router.get("/categories", response_model=ListEnvelope[Dict[str, str]], summary="Distinct genres")
async def categories(movies: MovieRepository = Depends(get_movie_repository)) -> ListEnvelope[Dict[str, str]]:
    items = await movies.categories()
    return ListEnvelope[Dict[str, str]](count=len(items), data=items)


@router.get("/categories/{category}", response_model=CategoryResponse, summary="Browse one genre")
async def category_detail(
    category: str,
    related: bool = Query(False, description="Return genres that co-occur with this one"),
    limit: int = Query(5, ge=1, le=50),
    movies: MovieRepository = Depends(get_movie_repository),
) -> CategoryResponse:
    """
    - `related=true`: co-occurring genres, most frequent first, each with a
      count and up to `limit` sample movies.
    - otherwise: up to `limit` movies tagged with `category`.
    """
    if related:
        groups = await movies.related_categories(category, limit)
        return CategoryResponse(category=category, count=len(groups), data=groups)

    items = await movies.in_category(category, limit)
    data: Dict[str, Any] = {
        "category": category,
        "movies": [MovieOut.model_validate(m).model_dump(mode="json", by_alias=True) for m in items],
    }
    return CategoryResponse(category=category, count=len(items), data=data)


# ──────────────────────────────────────────────────────────────
# 📊 Stats (authenticated)
# ──────────────────────────────────────────────────────────────
@router.get("/stats", response_model=StatsResponse, summary="Catalog statistics")
async def movie_stats(
    _: User = Depends(get_current_user),
    movies: MovieRepository = Depends(get_movie_repository),
) -> StatsResponse:
    return StatsResponse(
        data={
            "total": await movies.count(),
            "featured": await movies.count(featured=True),
            "byGenre": await movies.genre_counts(),
            "mostViewed": await movies.most_viewed(),
            "latestAdditions": await movies.latest(),
        }
    )


# ──────────────────────────────────────────────────────────────
# 🎬 Single movie
# ──────────────────────────────────────────────────────────────
@router.get("/{movie_id}", response_model=Envelope[MovieOut], summary="Get a movie")
async def get_movie(movie_id: str, movies: MovieRepository = Depends(get_movie_repository)) -> Envelope[MovieOut]:
    movie = await _get_movie_or_404(movie_id, movies)
    await movies.increment_views(movie)
    return Envelope[MovieOut](data=movie)


@router.post("/{movie_id}/view", response_model=Envelope[MovieViewCount], summary="Record a view")
async def record_view(
    movie_id: str,
    movies: MovieRepository = Depends(get_movie_repository),
) -> Envelope[MovieViewCount]:
    movie = await _get_movie_or_404(movie_id, movies)
    view_count = await movies.increment_views(movie)
    return Envelope[MovieViewCount](data=MovieViewCount(id=movie.id, title=movie.title, view_count=view_count))


@router.get(
    "/{movie_id}/secure-video",
    response_model=Envelope[SecureVideoUrl],
    summary="Mint a signed stream URL",
)
async def secure_video(
    movie_id: str,
    _: User = Depends(get_current_user),
    movies: MovieRepository = Depends(get_movie_repository),
    codec: SignedTokenCodec = Depends(get_video_token_codec),
) -> Envelope[SecureVideoUrl]:
    """Return `{secureUrl, expiresAt}`; the URL streams through `/videos/stream`."""
    movie = await _get_movie_or_404(movie_id, movies)
    if not movie.video_url:
        raise NotFoundException("No video available for this movie")

    token, expires_at = codec.issue(str(movie.id), movie.video_url)
    logger.info("Issued video token movie_id=%s expires_at=%s", movie.id, expires_at)
    return Envelope[SecureVideoUrl](
        data=SecureVideoUrl(
            secure_url=secure_stream_path(token, api_prefix=settings.API_PREFIX),
            expires_at=expires_at,
        )
    )


# ──────────────────────────────────────────────────────────────
# 🛠️ Admin CRUD
# ──────────────────────────────────────────────────────────────
@router.post(
    "",
    response_model=Envelope[MovieOut],
    status_code=status.HTTP_201_CREATED,
    summary="Create a movie",
)
async def create_movie(
    payload: MovieCreate = Body(...),
    admin: User = Depends(admin_user),
    movies: MovieRepository = Depends(get_movie_repository),
) -> Envelope[MovieOut]:
    movie = await movies.create(payload.model_dump(mode="json"))
    logger.info("Movie created id=%s by admin_id=%s", movie.id, admin.id)
    return Envelope[MovieOut](data=movie)


@router.put("/{movie_id}", response_model=Envelope[MovieOut], summary="Update a movie")
async def update_movie(
    movie_id: str,
    payload: MovieUpdate = Body(...),
    admin: User = Depends(admin_user),
    movies: MovieRepository = Depends(get_movie_repository),
) -> Envelope[MovieOut]:
    movie = await _get_movie_or_404(movie_id, movies)
    patch = {
        key: value
        for key, value in payload.model_dump(mode="json", exclude_unset=True).items()
        if value is not None or key in _NULLABLE_FIELDS
    }
    movie = await movies.update(movie, patch)
    logger.info("Movie updated id=%s fields=%s by admin_id=%s", movie.id, sorted(patch), admin.id)
    return Envelope[MovieOut](data=movie)


@router.delete("/{movie_id}", response_model=Envelope[Dict[str, Any]], summary="Delete a movie")
async def delete_movie(
    movie_id: str,
    admin: User = Depends(admin_user),
    movies: MovieRepository = Depends(get_movie_repository),
) -> Envelope[Dict[str, Any]]:
    movie = await _get_movie_or_404(movie_id, movies)
    deleted_id = movie.id
    await movies.delete(movie)
    logger.info("Movie deleted id=%s by admin_id=%s", deleted_id, admin.id)
    return Envelope[Dict[str, Any]](data={})


__all__ = ["router"]
