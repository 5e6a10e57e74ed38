"""Integration tests for session status and logout."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from sheetsync.server.db.tables import User

pytestmark = pytest.mark.integration


async def test_status_anonymous(client: AsyncClient) -> None:
    resp = await client.get("/auth/status")
    assert resp.status_code == 200
    assert resp.json() == {"authenticated": False, "user": None}


async def test_status_signed_in(authed_client: AsyncClient, user: User) -> None:
    resp = await authed_client.get("/auth/status")
    body = resp.json()
    assert body["authenticated"] is True
    assert body["user"]["userId"] == user.user_id
    assert body["user"]["username"] == "octocat"
    assert body["user"]["displayName"] == "The Octocat"


async def test_logout_revokes_session(authed_client: AsyncClient, token: str) -> None:
    resp = await authed_client.post("/auth/logout")
    assert resp.status_code == 204

    # The token is gone server-side even if a client still sends it.
    authed_client.cookies.set("sheetsync_session", token)
    assert (await authed_client.get("/api/content")).status_code == 401
    assert (await authed_client.get("/auth/status")).json()["authenticated"] is False


async def test_logout_without_session_is_noop(client: AsyncClient) -> None:
    resp = await client.post("/auth/logout")
    assert resp.status_code == 204
