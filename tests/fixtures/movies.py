# tests/fixtures/movies.py

from typing import Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.movie import Movie
from tests.utils.factory import create_movie


@pytest.fixture()
def create_test_movie(db_session: AsyncSession) -> Callable:
    """Factory fixture: `await create_test_movie(title=..., genres=[...])`."""

    async def _create(**overrides) -> Movie:
        return await create_movie(db_session, **overrides)

    return _create


__all__ = ["create_test_movie"]
