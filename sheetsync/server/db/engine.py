"""Engine, session factory and schema bootstrap for the content service."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from sheetsync.server.db.tables import Base

# Sizing for the default QueuePool; skipped when a caller picks another pool class.
_POOL_SIZING: dict[str, Any] = {"pool_size": 5, "max_overflow": 10, "pool_recycle": 1800}


def create_engine(database_url: str, **kwargs: Any) -> AsyncEngine:
    """Build an async engine for a ``postgresql+psycopg://`` URL.

    Connections are pinged before use so a restarted database does not surface
    as a failed content request.  Keyword arguments override the defaults;
    passing ``poolclass`` (e.g. ``NullPool`` in tests) drops the pool sizing.
    """
    options: dict[str, Any] = {"pool_pre_ping": True}
    if "poolclass" not in kwargs:
        options.update(_POOL_SIZING)
    options.update(kwargs)
    return create_async_engine(database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Records are returned to the caller after commit; keep them loaded.
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_schema(engine: AsyncEngine) -> None:
    """Create the users, sessions and content tables if they are missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
