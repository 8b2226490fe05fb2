"""Database engine and session configuration."""

import os

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def _get_database_url() -> str:
    """Get database URL from environment or config."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    from reeldeck.config import config
    return config.database_url


def get_engine() -> AsyncEngine:
    """Get or create the database engine.

    Returns:
        AsyncEngine bound to the local document store
    """
    global _engine

    if _engine is None:
        from reeldeck.config import config
        from reeldeck.logging import get_logger
        logger = get_logger(__name__)

        database_url = _get_database_url()
        logger.info(f"Creating database engine for {database_url}")
        _engine = create_async_engine(
            database_url,
            echo=config.log_level == "DEBUG",
            pool_pre_ping=True,
        )

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )

    return _session_factory


async def init_db() -> None:
    """Create missing tables. Idempotent."""
    from reeldeck.storage import models  # noqa: F401  registers tables

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_engine() -> None:
    """Close the database engine and dispose connections."""
    global _engine, _session_factory

    if _engine is not None:
        from reeldeck.logging import get_logger
        get_logger(__name__).info("Closing database engine")
        await _engine.dispose()
        _engine = None
        _session_factory = None
