"""Workspace backup and restore.

Export always writes the current (v2.0) format.  Import accepts both the
current format and the legacy per-column format, migrating the latter into
a single text.  Import is a pure function: it returns a new ``Document``
or raises ``WorkspaceFormatError`` and never touches editor state, so a
rejected file leaves the document exactly as it was.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from functools import partial
from pathlib import Path
from typing import Any

from anyio import to_thread
from loguru import logger
from pydantic import ValidationError

from sheetsync.models.document import Document, clamp_column_count, clamp_font_size
from sheetsync.models.enums import WorkspaceVersion
from sheetsync.models.workspace import LEGACY_COLUMN_SEPARATOR, LegacyWorkspaceSnapshot, WorkspaceSnapshot

MAX_MARKDOWN_FILES = 3


class WorkspaceFormatError(ValueError):
    """Raised when a workspace payload is malformed or of an unknown shape."""


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


def export_workspace(document: Document, now: datetime | None = None) -> WorkspaceSnapshot:
    return WorkspaceSnapshot(
        version=WorkspaceVersion.CURRENT,
        timestamp=now or datetime.now(UTC),
        columns=document.column_count,
        font_size=document.font_size,
        content=document.text,
    )


def dump_workspace(snapshot: WorkspaceSnapshot) -> str:
    return snapshot.model_dump_json(by_alias=True, indent=2)


def workspace_filename(now: datetime | None = None) -> str:
    day = (now or datetime.now(UTC)).date().isoformat()
    return f"cheatsheet-workspace-{day}.json"


def export_markdown(document: Document) -> str:
    """Raw markdown for a plain ``.md`` save."""
    return document.text


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def _coerce_payload(payload: Mapping[str, Any] | str | bytes) -> Mapping[str, Any]:
    if isinstance(payload, str | bytes):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            msg = f"Workspace file is not valid JSON: {exc}"
            raise WorkspaceFormatError(msg) from None
    if not isinstance(payload, Mapping):
        msg = "Workspace file must contain a JSON object"
        raise WorkspaceFormatError(msg)
    return payload


def import_workspace(payload: Mapping[str, Any] | str | bytes) -> Document:
    """Parse a workspace payload (mapping, JSON text or bytes) into a Document.

    - ``version == "2.0"`` with a ``content`` string: loaded directly.
    - a ``columnContents`` list: legacy, non-empty columns are joined with a
      blank line.
    - anything else: ``WorkspaceFormatError``.

    Missing ``columns``/``fontSize`` default to 2/14; out-of-range values
    are clamped.
    """
    data = _coerce_payload(payload)

    try:
        if data.get("version") == WorkspaceVersion.CURRENT and isinstance(data.get("content"), str):
            snapshot = WorkspaceSnapshot.model_validate(data)
            text, columns, font_size = snapshot.content, snapshot.columns, snapshot.font_size
        elif isinstance(data.get("columnContents"), list):
            legacy = LegacyWorkspaceSnapshot.model_validate(data)
            text, columns, font_size = legacy.merged_content(), legacy.columns, legacy.font_size
            logger.info("Migrating legacy workspace (version={}) to {}", legacy.version, WorkspaceVersion.CURRENT)
        else:
            msg = "Unrecognized workspace format: expected a 2.0 'content' field or legacy 'columnContents'"
            raise WorkspaceFormatError(msg)
    except ValidationError as exc:
        msg = f"Invalid workspace file: {exc.error_count()} field error(s)"
        raise WorkspaceFormatError(msg) from exc

    return Document(text=text, column_count=clamp_column_count(columns), font_size=clamp_font_size(font_size))


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


async def write_workspace_file(document: Document, directory: str | Path, now: datetime | None = None) -> Path:
    """Write a backup into *directory*.  Returns the file path."""
    now = now or datetime.now(UTC)
    path = Path(directory) / workspace_filename(now)
    data = dump_workspace(export_workspace(document, now))
    await to_thread.run_sync(partial(path.write_text, data, encoding="utf-8"))
    return path


async def read_workspace_file(path: str | Path) -> Document:
    """Read and parse a backup.  Raises ``WorkspaceFormatError`` on bad content."""
    raw = await to_thread.run_sync(Path(path).read_bytes)
    return import_workspace(raw)


async def load_markdown_files(paths: Sequence[str | Path]) -> str:
    """Concatenate up to three markdown files into one text, in order."""
    contents: list[str] = []
    for path in list(paths)[:MAX_MARKDOWN_FILES]:
        contents.append(await to_thread.run_sync(partial(Path(path).read_text, encoding="utf-8")))
    return LEGACY_COLUMN_SEPARATOR.join(c for c in contents if c)
