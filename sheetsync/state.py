"""In-memory document state and its local mirror.

``DocumentState`` owns the one ``Document`` the editor works on.  Every
mutation writes the local key/value store *synchronously* and then notifies
listeners (the sync engine subscribes here to schedule pushes).  Because
the write happens before any await point, local persistence is strictly
ordered with edits.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from sheetsync.models.document import (
    DEFAULT_COLUMNS,
    DEFAULT_FONT_SIZE,
    Document,
    clamp_column_count,
    clamp_font_size,
)
from sheetsync.persistence import COLUMNS_KEY, CONTENT_KEY, FONT_SIZE_KEY, KeyValueStore

Listener = Callable[[Document], None]


def _parse_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid persisted value {!r}, using {}", raw, default)
        return default


class DocumentState:
    """The editable document plus its persisted mirror."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv
        self._document = Document.default()
        self._listeners: list[Listener] = []

    @property
    def document(self) -> Document:
        return self._document

    # -- Load ------------------------------------------------------------------

    def load(self) -> Document:
        """Load from local persistence.  First use gets the default document."""
        text = self._kv.get(CONTENT_KEY)
        if text is None:
            self._document = Document.default()
            self._persist()
            logger.debug("No local document found, starting from defaults")
            return self._document

        self._document = Document(
            text=text,
            column_count=clamp_column_count(_parse_int(self._kv.get(COLUMNS_KEY), DEFAULT_COLUMNS)),
            font_size=clamp_font_size(_parse_int(self._kv.get(FONT_SIZE_KEY), DEFAULT_FONT_SIZE)),
        )
        return self._document

    # -- Mutation --------------------------------------------------------------

    def set_text(self, text: str) -> Document:
        return self.replace(self._document.model_copy(update={"text": text}))

    def set_column_count(self, column_count: int) -> Document:
        return self.replace(self._document.model_copy(update={"column_count": clamp_column_count(column_count)}))

    def set_font_size(self, font_size: int) -> Document:
        return self.replace(self._document.model_copy(update={"font_size": clamp_font_size(font_size)}))

    def replace(self, document: Document, *, notify: bool = True) -> Document:
        """Swap in a whole document.

        ``notify=False`` persists without telling listeners; hydrate uses it
        so a document loaded from the remote store is not pushed straight back.
        """
        self._document = document
        self._persist()
        if notify:
            for listener in list(self._listeners):
                listener(document)
        return document

    def new_workspace(self) -> Document:
        """Clear local persistence and start from an empty document."""
        self._kv.clear()
        return self.replace(Document.empty())

    def restore_defaults(self) -> Document:
        return self.replace(Document.default())

    # -- Listeners -------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener* for mutations.  Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _persist(self) -> None:
        doc = self._document
        self._kv.set(CONTENT_KEY, doc.text)
        self._kv.set(COLUMNS_KEY, str(doc.column_count))
        self._kv.set(FONT_SIZE_KEY, str(doc.font_size))
