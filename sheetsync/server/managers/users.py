"""User and session-token operations.

The OAuth handshake that normally creates users and sessions lives outside
this service; these helpers cover what the content API needs (token
lookup, logout) plus the CLI's development login.
"""

from __future__ import annotations

import secrets
import uuid

from sqlalchemy import delete, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.server.db.tables import AuthSession, User


class UserNotFoundError(LookupError):
    """Raised when a user is not found."""


async def create_user(
    db: AsyncSession,
    username: str,
    *,
    github_id: str | None = None,
    display_name: str | None = None,
    avatar_url: str | None = None,
    email: str | None = None,
) -> User:
    user = User(
        user_id=uuid.uuid4().hex,
        username=username,
        github_id=github_id,
        display_name=display_name,
        avatar_url=avatar_url,
        email=email,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def issue_session(db: AsyncSession, user_id: str) -> str:
    """Create a session for *user_id* and return its opaque token."""
    user = await db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    token = secrets.token_urlsafe(32)
    db.add(AuthSession(token=token, user_id=user_id))
    await db.execute(update(User).where(User.user_id == user_id).values(last_login=func.now()))
    await db.commit()
    return token


async def get_user_by_token(db: AsyncSession, token: str) -> User | None:
    session = await db.get(AuthSession, token)
    if session is None:
        return None
    return await db.get(User, session.user_id)


async def revoke_session(db: AsyncSession, token: str) -> None:
    """Delete a session.  No-op if the token is unknown."""
    await db.execute(delete(AuthSession).where(AuthSession.token == token))
    await db.commit()
