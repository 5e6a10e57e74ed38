"""Fixtures for driving the content service over HTTP."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.server.app import app
from sheetsync.server.db.tables import User
from sheetsync.server.deps import get_db
from sheetsync.server.managers.users import create_user, issue_session
from sheetsync.settings import get_settings


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Client for the app with every request bound to the rolled-back test session.

    Lifespan does not run under ``ASGITransport``, so the app state is
    cleared to make any stray use of the real session factory fail loudly.
    """

    async def _test_db() -> AsyncIterator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_db] = _test_db
    app.state.db_engine = None
    app.state.db_session_factory = None
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "octocat", github_id="583231", display_name="The Octocat")


@pytest.fixture
async def token(db_session: AsyncSession, user: User) -> str:
    return await issue_session(db_session, user.user_id)


@pytest.fixture
def authed_client(client: AsyncClient, token: str) -> AsyncClient:
    client.cookies.set(get_settings().cookie_name, token)
    return client
