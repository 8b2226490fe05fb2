"""Pytest configuration and shared fixtures."""

import os

# Set test environment variables before any imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_reeldeck.db"
os.environ["TMDB_BEARER_TOKEN"] = "test_token"
os.environ["TMDB_REGION"] = "ES"
os.environ["DECAY_HALF_LIFE_DAYS"] = "90"
os.environ["MIN_SCORE_TO_KEEP"] = "0.1"
os.environ["TOP_GENRES_COUNT"] = "3"
os.environ["SAMPLE_PAGE_COUNT"] = "3"
os.environ["REFILL_THRESHOLD"] = "10"

from typing import Any
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from reeldeck.providers.schemas import DiscoverPage
from reeldeck.providers.tmdb_client import TMDBClient
from reeldeck.storage.db import Base
from reeldeck.storage import models  # noqa: F401


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
async def engine(tmp_path):
    """Create a file-backed test database engine."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test_reeldeck.db'}",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def session(engine):
    """Create test database session."""
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


def entry(content_id: int, poster: str | None = "/p.jpg", genres: list[int] | None = None) -> dict[str, Any]:
    """Build a TMDB listing row."""
    return {
        "id": content_id,
        "title": f"Title {content_id}",
        "poster_path": poster,
        "genre_ids": genres if genres is not None else [28],
    }


def page(rows: list[dict[str, Any]], total_pages: int = 1) -> DiscoverPage:
    """Build a parsed listing page."""
    return DiscoverPage.from_payload({"results": rows, "total_pages": total_pages})


@pytest.fixture
def catalog():
    """Mocked catalog client; tests set ``discover.side_effect``."""
    client = AsyncMock(spec=TMDBClient)
    client.fetch_popular.return_value = page([])
    client.get_details.return_value = {"genres": []}
    return client
