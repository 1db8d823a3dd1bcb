"""Async SQLAlchemy engine and session factory builders.

Nothing is cached here: the caller that builds an engine owns it and
disposes it (the server lifespan, the seed CLI).
"""

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mission_survey_db.config import get_async_url


def build_engine(url: str | None = None) -> AsyncEngine:
    """Create an engine for ``url`` (default: ``DATABASE_URL`` / ``PG_*``).

    Pool size follows ``PG_POOL_SIZE`` and ``PG_MAX_OVERFLOW``.
    """
    return create_async_engine(
        url or get_async_url(),
        echo=False,
        pool_size=int(os.getenv("PG_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("PG_MAX_OVERFLOW", "10")),
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
