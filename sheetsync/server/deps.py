"""Request dependencies: a database session and the signed-in user.

The session credential is an opaque token, read from the session cookie
or an ``Authorization: Bearer`` header.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.server.db.tables import User
from sheetsync.server.managers.users import get_user_by_token
from sheetsync.settings import get_settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """One session per request.  Managers commit; anything uncommitted is rolled back on close."""
    factory = getattr(request.app.state, "db_session_factory", None)
    if factory is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail="Content storage is not configured")
    async with factory() as session:
        yield session


def get_session_token(request: Request) -> str | None:
    """Extract the session token from the cookie or bearer header, if any."""
    token = request.cookies.get(get_settings().cookie_name)
    if token:
        return token
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


DbSession = Annotated[AsyncSession, Depends(get_db)]
"""Annotated dependency: async SQLAlchemy session (auto-closed after request)."""

SessionToken = Annotated[str | None, Depends(get_session_token)]


async def get_optional_user(db: DbSession, token: SessionToken) -> User | None:
    if token is None:
        return None
    return await get_user_by_token(db, token)


async def get_current_user(user: Annotated[User | None, Depends(get_optional_user)]) -> User:
    if user is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


OptionalUser = Annotated[User | None, Depends(get_optional_user)]
"""Annotated dependency: the signed-in user, or None."""

CurrentUser = Annotated[User, Depends(get_current_user)]
"""Annotated dependency: the signed-in user; 401 when there is none."""
