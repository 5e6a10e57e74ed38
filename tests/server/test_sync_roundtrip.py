"""End-to-end: two editors syncing through the real content service."""

from __future__ import annotations

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from sheetsync.editor import Editor
from sheetsync.models.document import Document
from sheetsync.models.enums import SyncStatus
from sheetsync.server.app import app
from sheetsync.settings import SheetSettings

pytestmark = pytest.mark.integration


def _settings(data_root: Path, token: str) -> SheetSettings:
    return SheetSettings(
        data_root=str(data_root),
        remote_url="http://test",
        session_token=token,
        debounce_seconds=0.01,
        retry_base_seconds=0.01,
    )


async def test_edit_on_one_device_loads_on_another(client: AsyncClient, token: str, tmp_path: Path) -> None:
    # ``client`` installs the test DB session on the app.
    laptop = Editor.from_settings(_settings(tmp_path / "laptop", token), transport=ASGITransport(app=app))
    laptop.open()

    assert await laptop.login() is True
    # Fresh account: the default remote record replaces the local example text.
    assert laptop.document == Document(text="", column_count=2, font_size=14)

    laptop.edit("# Shared\n\n- one")
    laptop.set_columns(3)
    assert laptop.sync is not None
    await laptop.sync.wait_until_idle()
    assert laptop.sync_status == SyncStatus.SYNCED
    await laptop.aclose()

    desktop = Editor.from_settings(_settings(tmp_path / "desktop", token), transport=ASGITransport(app=app))
    desktop.open()
    assert await desktop.login() is True
    assert desktop.document == Document(text="# Shared\n\n- one", column_count=3, font_size=14)
    await desktop.aclose()


async def test_signed_out_editor_stays_local(client: AsyncClient, tmp_path: Path) -> None:
    editor = Editor.from_settings(_settings(tmp_path, "bogus-token"), transport=ASGITransport(app=app))
    editor.open()
    editor.edit("mine")

    assert await editor.login() is False
    assert editor.document.text == "mine"
    assert editor.sync_status == SyncStatus.OFFLINE
    await editor.aclose()
