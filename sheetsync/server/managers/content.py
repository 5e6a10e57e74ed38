"""Content record operations.

Each user has exactly one content record.  It is created lazily with
default values the first time it is read or written, so clients never have
to special-case "new user".
"""

from __future__ import annotations

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sheetsync.models.api import ContentUpdate
from sheetsync.server.db.tables import Content


async def get_or_create_content(db: AsyncSession, user_id: str) -> Content:
    """Return the user's content record, creating the default one if absent."""
    content = await db.get(Content, user_id)
    if content is not None:
        return content

    content = Content(user_id=user_id)
    db.add(content)
    try:
        await db.commit()
    except IntegrityError:
        # A concurrent request created it first.
        await db.rollback()
        existing = await db.get(Content, user_id)
        if existing is None:
            raise
        return existing
    await db.refresh(content)
    logger.info("Created default content record for user {}", user_id)
    return content


async def update_content(db: AsyncSession, user_id: str, body: ContentUpdate) -> Content:
    """Apply the fields set in *body*.  Unset fields keep their stored value."""
    content = await get_or_create_content(db, user_id)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return content

    for key, value in changes.items():
        setattr(content, key, value)

    await db.commit()
    await db.refresh(content)
    return content
