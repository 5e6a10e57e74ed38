"""Editor facade -- wires document state, image store, preview and sync.

This is the object a UI (or the CLI) drives.  Each user action maps to one
method; local persistence and sync scheduling follow from the
``DocumentState`` mutation each method performs.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import httpx
from loguru import logger

from sheetsync.images import paste_image, sweep_unreferenced
from sheetsync.models.document import Document, ImageBlob
from sheetsync.models.enums import SyncStatus
from sheetsync.models.workspace import WorkspaceSnapshot
from sheetsync.persistence import FileKeyValueStore, KeyValueStore
from sheetsync.portability import export_workspace, import_workspace
from sheetsync.preview import PreviewRenderer, RenderedPreview
from sheetsync.settings import SheetSettings
from sheetsync.state import DocumentState
from sheetsync.store.base import BlobStore
from sheetsync.store.local import LocalBlobStore
from sheetsync.store.memory import MemoryBlobStore
from sheetsync.sync.engine import SyncEngine
from sheetsync.sync.remote import AuthClient, RemoteContentClient, RemoteUnavailableError, create_http_client


def create_blob_store(settings: SheetSettings) -> BlobStore:
    """Create the image store backend based on configuration."""
    if settings.blob_store == "memory":
        return MemoryBlobStore()
    if settings.blob_store == "s3":
        from sheetsync.store.s3 import S3BlobStore

        if not (settings.s3_endpoint and settings.s3_bucket and settings.s3_access_key and settings.s3_secret_key):
            msg = "S3 blob store requires SHEETSYNC_S3_ENDPOINT, _BUCKET, _ACCESS_KEY and _SECRET_KEY"
            raise ValueError(msg)
        return S3BlobStore(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key.get_secret_value(),
            prefix=settings.data_prefix,
            region=settings.s3_region,
            path_style=settings.s3_path_style,
        )
    return LocalBlobStore(settings.data_root, prefix=settings.data_prefix)


def local_state_path(settings: SheetSettings) -> Path:
    base = Path(settings.data_root)
    if settings.data_prefix:
        base = base / settings.data_prefix
    return base / "local-state.json"


class Editor:
    """One editing session over a single document."""

    def __init__(
        self,
        kv: KeyValueStore,
        store: BlobStore,
        *,
        sync: SyncEngine | None = None,
        auth: AuthClient | None = None,
        remote: RemoteContentClient | None = None,
    ) -> None:
        self.state = DocumentState(kv)
        self.store = store
        self.preview = PreviewRenderer(store)
        self.sync = sync
        self.auth = auth
        self.remote = remote
        self._http: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: SheetSettings, *, transport: httpx.AsyncBaseTransport | None = None) -> Editor:
        """Build an editor from configuration.  Sync is enabled when ``remote_url`` is set."""
        editor = cls(FileKeyValueStore(local_state_path(settings)), create_blob_store(settings))
        if settings.remote_url:
            token = settings.session_token.get_secret_value() if settings.session_token else None
            http = create_http_client(
                settings.remote_url,
                session_token=token,
                cookie_name=settings.cookie_name,
                timeout=settings.request_timeout,
                transport=transport,
            )
            editor._http = http
            editor.auth = AuthClient(http)
            editor.remote = RemoteContentClient(http)
            editor.sync = SyncEngine(
                editor.state,
                editor.remote,
                debounce_seconds=settings.debounce_seconds,
                max_retries=settings.push_max_retries,
                retry_base_seconds=settings.retry_base_seconds,
            )
        return editor

    @property
    def document(self) -> Document:
        return self.state.document

    @property
    def sync_status(self) -> SyncStatus:
        return self.sync.status if self.sync is not None else SyncStatus.OFFLINE

    def open(self) -> Document:
        """Load the locally persisted document (defaults on first use)."""
        return self.state.load()

    # -- Editing ---------------------------------------------------------------

    def edit(self, text: str) -> Document:
        return self.state.set_text(text)

    def set_columns(self, column_count: int) -> Document:
        return self.state.set_column_count(column_count)

    def set_font_size(self, font_size: int) -> Document:
        return self.state.set_font_size(font_size)

    async def paste_image(self, blob: ImageBlob, *, position: int | None = None, alt: str = "image") -> str:
        return await paste_image(self.state, self.store, blob, position=position, alt=alt)

    async def render(self) -> RenderedPreview:
        return await self.preview.render(self.document)

    # -- Workspace -------------------------------------------------------------

    def export_workspace(self) -> WorkspaceSnapshot:
        return export_workspace(self.document)

    def import_workspace(self, payload: Mapping[str, Any] | str | bytes) -> Document:
        """Load a backup.  ``WorkspaceFormatError`` leaves the document untouched."""
        document = import_workspace(payload)
        return self.state.replace(document)

    def new_workspace(self) -> Document:
        return self.state.new_workspace()

    def restore_defaults(self) -> Document:
        return self.state.restore_defaults()

    async def clean_up_images(self) -> set[str]:
        return await sweep_unreferenced(self.store, self.document.text)

    # -- Session ---------------------------------------------------------------

    async def login(self) -> bool:
        """Check the session with the auth service and hydrate if signed in.

        Returns whether the session is authenticated.  An unreachable service
        counts as signed out; the editor keeps working locally.
        """
        if self.auth is None or self.sync is None:
            return False
        try:
            status = await self.auth.status()
        except RemoteUnavailableError as exc:
            logger.warning("Auth status unavailable, staying offline: {}", exc)
            return False
        if status.authenticated and status.user is not None:
            logger.info("Signed in as {}", status.user.username)
        await self.sync.set_authenticated(status.authenticated)
        return status.authenticated

    async def upload(self) -> None:
        """Replace the remote copy with the local document right away.

        Raises ``RemoteUnavailableError`` when sync is not configured, the
        session is not signed in, or the service cannot be reached.
        """
        if self.auth is None or self.remote is None:
            msg = "Cloud sync is not configured"
            raise RemoteUnavailableError(msg)
        status = await self.auth.status()
        if not status.authenticated:
            msg = "Not signed in"
            raise RemoteUnavailableError(msg)
        await self.remote.push(self.document)

    async def logout(self) -> None:
        if self.sync is not None:
            await self.sync.flush()
            await self.sync.set_authenticated(False)
        if self.auth is not None:
            try:
                await self.auth.logout()
            except RemoteUnavailableError as exc:
                logger.warning("Logout request failed: {}", exc)

    async def aclose(self) -> None:
        if self.sync is not None:
            await self.sync.aclose()
        if self._http is not None:
            await self._http.aclose()
