# tests/fixtures/db.py
"""
DB fixtures for tests (async, SQLite via aiosqlite):
- One in-memory database per test (StaticPool keeps the single connection)
- Tables created from the model metadata, dropped afterwards
- Function-scoped session shared with the app through a dependency override
"""

from typing import AsyncGenerator, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    async with session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


def get_override_get_db(session: AsyncSession) -> Callable[[], AsyncGenerator[AsyncSession, None]]:
    """Dependency override yielding the test session."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield session

    return _override_get_db


__all__ = ["db_session", "get_override_get_db"]
