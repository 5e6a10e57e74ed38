"""Session status and logout.

Sign-in itself (the OAuth round trip) is handled outside this service; by
the time a request reaches these endpoints it either carries a valid
session token or it doesn't.
"""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from sheetsync.models.api import AuthStatus, UserInfo
from sheetsync.server.deps import DbSession, OptionalUser, SessionToken
from sheetsync.server.managers.users import revoke_session
from sheetsync.settings import get_settings

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/status", response_model=AuthStatus)
async def handle_status(user: OptionalUser) -> AuthStatus:
    if user is None:
        return AuthStatus(authenticated=False)
    return AuthStatus(authenticated=True, user=UserInfo.model_validate(user))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def handle_logout(db: DbSession, token: SessionToken, response: Response) -> None:
    if token is not None:
        await revoke_session(db, token)
    response.delete_cookie(get_settings().cookie_name)
