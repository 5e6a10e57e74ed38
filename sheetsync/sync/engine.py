"""Sync engine -- debounced push of the local document to the content service.

State machine::

    idle --edit--> pending_push --timer--> pushing --done/failed--> idle
      \\                                                          /
       `--login--> hydrating --fetched/fallback-------------------'

Rules:

- **Load is remote-wins.**  When the user becomes authenticated the remote
  record overwrites the local document wholesale.  If the fetch fails the
  built-in default document is loaded instead, so the editor never waits
  on the network.
- **Write is local-wins.**  Each edit (re)arms a single debounce timer;
  when it fires the *whole* current document is sent.  Only the state after
  a quiet period is guaranteed to reach the server.
- **Stale responses are dropped.**  Pushes are numbered; a response is only
  applied if it belongs to the newest push issued.  Hydrate and logout
  invalidate everything in flight the same way.
- **Failures retry with backoff**, at most ``max_retries`` times.  A new
  edit resets the attempt counter.

Unauthenticated edits never reach this engine's timer; local persistence
is handled by ``DocumentState`` regardless.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from sheetsync.models.document import Document
from sheetsync.models.enums import SyncState, SyncStatus
from sheetsync.sync.remote import RemoteUnavailableError

if TYPE_CHECKING:
    from sheetsync.models.api import ContentResponse
    from sheetsync.state import DocumentState


class ContentRemote(Protocol):
    async def fetch(self) -> ContentResponse: ...

    async def push(self, document: Document) -> ContentResponse: ...


class SyncEngine:
    """Keeps one ``DocumentState`` eventually consistent with the remote record.

    Must be used from a running event loop: edits arm timers with
    ``asyncio.get_running_loop()``.
    """

    def __init__(
        self,
        state: DocumentState,
        remote: ContentRemote,
        *,
        debounce_seconds: float = 2.0,
        max_retries: int = 3,
        retry_base_seconds: float = 1.0,
    ) -> None:
        self._state = state
        self._remote = remote
        self._debounce = debounce_seconds
        self._max_retries = max_retries
        self._retry_base = retry_base_seconds

        self._authenticated = False
        self._sync_state = SyncState.IDLE
        self._status = SyncStatus.OFFLINE
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()
        self._issued_seq = 0
        self._attempt = 0

        self.remote_updated_at: datetime | None = None
        """``updatedAt`` of the last remote record applied locally."""

        self._unsubscribe = state.subscribe(self._on_document_changed)

    # -- Introspection ---------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._sync_state

    @property
    def status(self) -> SyncStatus:
        if not self._authenticated:
            return SyncStatus.OFFLINE
        return self._status

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    def _set_state(self, new: SyncState) -> None:
        if new != self._sync_state:
            logger.debug("Sync: {} -> {}", self._sync_state, new)
            self._sync_state = new

    def _settle(self) -> None:
        self._set_state(SyncState.PENDING_PUSH if self._timer is not None else SyncState.IDLE)

    # -- Authentication --------------------------------------------------------

    async def set_authenticated(self, authenticated: bool) -> None:
        """Track the auth collaborator.  Becoming authenticated triggers a hydrate."""
        if authenticated == self._authenticated:
            return
        self._authenticated = authenticated
        if authenticated:
            await self.hydrate()
        else:
            self._cancel_timer()
            self._invalidate_in_flight()
            self._attempt = 0
            self._set_state(SyncState.IDLE)
            logger.info("Sync disabled (signed out)")

    async def hydrate(self) -> Document:
        """Overwrite the local document with the remote record (remote-wins).

        Any fetch failure falls back to the default document; the engine
        always leaves ``HYDRATING``.
        """
        self._cancel_timer()
        self._invalidate_in_flight()
        self._set_state(SyncState.HYDRATING)
        try:
            try:
                record = await self._remote.fetch()
            except RemoteUnavailableError as exc:
                logger.warning("Could not load remote content, using default document: {}", exc)
                document = Document.default()
                self._status = SyncStatus.ERROR
            except Exception:
                logger.exception("Unexpected error loading remote content, using default document")
                document = Document.default()
                self._status = SyncStatus.ERROR
            else:
                document = record.to_document()
                self.remote_updated_at = record.updated_at
                self._status = SyncStatus.SYNCED
                logger.info("Loaded remote content ({} chars)", len(document.text))

            # Edits typed while the fetch was in flight are superseded by the load.
            self._cancel_timer()
            self._state.replace(document, notify=False)
        finally:
            self._set_state(SyncState.IDLE)
        return document

    # -- Scheduling ------------------------------------------------------------

    def _on_document_changed(self, _document: Document) -> None:
        if not self._authenticated or self._sync_state == SyncState.HYDRATING:
            return
        self._attempt = 0
        self._status = SyncStatus.PENDING
        self._arm_timer(self._debounce)

    def _arm_timer(self, delay: float) -> None:
        self._cancel_timer()
        self._timer = asyncio.get_running_loop().create_task(self._run_timer(delay))
        self._set_state(SyncState.PENDING_PUSH)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _invalidate_in_flight(self) -> None:
        """Make every outstanding push response stale."""
        self._issued_seq += 1

    async def _run_timer(self, delay: float) -> None:
        await asyncio.sleep(delay)
        task = asyncio.current_task()
        if self._timer is task:
            # Past this point a new edit arms a fresh timer instead of
            # cancelling the push below.
            self._timer = None
        if task is not None:
            self._in_flight.add(task)
        try:
            await self._push()
        except Exception:
            logger.exception("Unexpected error while pushing content")
            self._status = SyncStatus.ERROR
            self._settle()
        finally:
            if task is not None:
                self._in_flight.discard(task)

    # -- Push ------------------------------------------------------------------

    async def _push(self) -> None:
        self._issued_seq += 1
        seq = self._issued_seq
        document = self._state.document
        self._set_state(SyncState.PUSHING)

        try:
            record = await self._remote.push(document)
        except RemoteUnavailableError as exc:
            if seq != self._issued_seq:
                logger.debug("Ignoring failure of superseded push #{}", seq)
                return
            logger.warning("Push #{} failed: {}", seq, exc)
            self._status = SyncStatus.ERROR
            self._schedule_retry()
            self._settle()
            return

        if seq != self._issued_seq:
            logger.debug("Discarding stale response for push #{} (latest #{})", seq, self._issued_seq)
            return

        self.remote_updated_at = record.updated_at
        self._attempt = 0
        self._status = SyncStatus.PENDING if self._timer is not None else SyncStatus.SYNCED
        logger.debug("Push #{} stored ({} chars)", seq, len(document.text))
        self._settle()

    def _schedule_retry(self) -> None:
        if self._timer is not None:
            # A newer edit already re-armed the debounce; that push covers it.
            return
        if self._attempt >= self._max_retries:
            if self._max_retries:
                logger.warning("Giving up on push after {} retries", self._max_retries)
            return
        delay = self._retry_base * 2**self._attempt
        self._attempt += 1
        logger.info("Retrying push in {:.1f}s (attempt {}/{})", delay, self._attempt, self._max_retries)
        self._arm_timer(delay)

    # -- Lifecycle -------------------------------------------------------------

    async def flush(self) -> None:
        """Push right away if a push is pending, then wait for in-flight pushes."""
        if self._timer is not None and self._authenticated:
            self._cancel_timer()
            await self._push()
        await self._wait_in_flight()

    async def wait_until_idle(self) -> None:
        """Wait for the armed timer (including retries) and in-flight pushes to finish."""
        while True:
            tasks = [t for t in (self._timer, *self._in_flight) if t is not None]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _wait_in_flight(self) -> None:
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    async def aclose(self) -> None:
        self._cancel_timer()
        await self._wait_in_flight()
        self._unsubscribe()
