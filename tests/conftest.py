"""Shared fixtures for content service integration tests.

One PostgreSQL container (testcontainers, Docker required) is started per
test run and the schema is created with ``init_schema``.  Every test then
runs inside a transaction that is rolled back afterwards.  Tests that need
the database are marked ``@pytest.mark.integration``; nothing else touches
Docker.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncIterator, Iterator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer

from sheetsync.server.db.engine import create_engine, init_schema
from sheetsync.settings import get_settings


@pytest.fixture(scope="session")
def pg_container() -> Iterator[PostgresContainer]:
    with PostgresContainer(
        image="postgres:17",
        username="sheetsync",
        password="sheetsync",
        dbname="sheetsync_test",
        driver="psycopg",
    ) as pg:
        yield pg


@pytest.fixture(scope="session")
def database_url(pg_container: PostgresContainer) -> str:
    """psycopg URL of the test database, with all tables created."""
    url = pg_container.get_connection_url()
    os.environ["SHEETSYNC_DATABASE_URL"] = url
    get_settings.cache_clear()

    async def _create() -> None:
        engine = create_engine(url, poolclass=NullPool)
        try:
            await init_schema(engine)
        finally:
            await engine.dispose()

    asyncio.run(_create())
    return url


@pytest.fixture
async def db_session(database_url: str) -> AsyncIterator[AsyncSession]:
    """Session whose commits only release savepoints; everything is rolled back at teardown.

    A fresh unpooled engine per test keeps connections on the test's own
    event loop.
    """
    engine = create_engine(database_url, poolclass=NullPool)
    async with engine.connect() as conn:
        await conn.begin()
        session = AsyncSession(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
        try:
            yield session
        finally:
            await session.close()
            await conn.rollback()
    await engine.dispose()
