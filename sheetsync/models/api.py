"""Request / response schemas for the content service.

Shared by the FastAPI routers (server side) and the httpx clients in
``sheetsync.sync.remote`` (editor side), so both ends agree on the wire
format.  Field names are camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sheetsync.models.document import (
    DEFAULT_COLUMNS,
    DEFAULT_FONT_SIZE,
    MAX_COLUMNS,
    MAX_FONT_SIZE,
    MIN_COLUMNS,
    MIN_FONT_SIZE,
    Document,
    clamp_column_count,
    clamp_font_size,
)

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class ContentResponse(BaseModel):
    """The remote content record as returned by ``GET``/``PUT /api/content``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    text: str = ""
    column_count: int = DEFAULT_COLUMNS
    font_size: int = DEFAULT_FONT_SIZE
    updated_at: datetime | None = None

    def to_document(self) -> Document:
        """Convert to a local document, clamping layout values into range."""
        return Document(
            text=self.text,
            column_count=clamp_column_count(self.column_count),
            font_size=clamp_font_size(self.font_size),
        )


class ContentUpdate(BaseModel):
    """Body of ``PUT /api/content``.  Unset fields keep their stored value."""

    model_config = _CAMEL

    text: str | None = None
    column_count: int | None = Field(default=None, ge=MIN_COLUMNS, le=MAX_COLUMNS)
    font_size: int | None = Field(default=None, ge=MIN_FONT_SIZE, le=MAX_FONT_SIZE)

    @classmethod
    def from_document(cls, document: Document) -> ContentUpdate:
        return cls(text=document.text, column_count=document.column_count, font_size=document.font_size)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class UserInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    user_id: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None


class AuthStatus(BaseModel):
    model_config = _CAMEL

    authenticated: bool = False
    user: UserInfo | None = None
