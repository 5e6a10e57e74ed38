"""Workspace backup file formats.

Two shapes exist.  The current one carries a single ``content`` string::

    {"version": "2.0", "timestamp": "...", "columns": 2, "fontSize": 14, "content": "..."}

The legacy one predates the unified document and kept one string per
column::

    {"version": "1.0", "columns": 2, "currentColumn": 0, "fontSize": 14,
     "columnContents": ["...", "...", "..."]}

Both are accepted on import (see ``sheetsync.portability``); only the
current shape is ever written.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sheetsync.models.document import DEFAULT_COLUMNS, DEFAULT_FONT_SIZE
from sheetsync.models.enums import WorkspaceVersion

LEGACY_COLUMN_SEPARATOR = "\n\n"


class WorkspaceSnapshot(BaseModel):
    """Current (v2.0) workspace file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: WorkspaceVersion = WorkspaceVersion.CURRENT
    timestamp: datetime | None = None
    columns: int = DEFAULT_COLUMNS
    font_size: int = DEFAULT_FONT_SIZE
    content: str


class LegacyWorkspaceSnapshot(BaseModel):
    """Legacy (v1.0) per-column workspace file."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: str | None = None
    timestamp: datetime | None = None
    columns: int = DEFAULT_COLUMNS
    current_column: int = 0
    font_size: int = DEFAULT_FONT_SIZE
    column_contents: list[str] = Field(default_factory=list)

    def merged_content(self) -> str:
        """Join the non-empty columns, in column order, with a blank line."""
        return LEGACY_COLUMN_SEPARATOR.join(c for c in self.column_contents if c)
