"""Content endpoints: the signed-in user's remote document.

Thin HTTP adapter -- delegates to the content manager.
"""

from __future__ import annotations

from fastapi import APIRouter

from sheetsync.models.api import ContentResponse, ContentUpdate
from sheetsync.server.db.tables import Content
from sheetsync.server.deps import CurrentUser, DbSession
from sheetsync.server.managers.content import get_or_create_content, update_content

router = APIRouter(prefix="/content", tags=["content"])


@router.get("", response_model=ContentResponse)
async def handle_get_content(db: DbSession, user: CurrentUser) -> Content:
    """Get the user's content, creating the default record on first access."""
    return await get_or_create_content(db, user.user_id)


@router.put("", response_model=ContentResponse)
async def handle_put_content(body: ContentUpdate, db: DbSession, user: CurrentUser) -> Content:
    """Store the user's content.  Fields absent from the body are left unchanged."""
    return await update_content(db, user.user_id, body)
