"""Local key/value persistence for the editor's document.

The editor mirrors every edit to a small key/value store synchronously,
before anything else happens, so a crash or reload never loses typed text.
Values are strings, one per stable key.

``FileKeyValueStore`` keeps the whole map in one JSON file and rewrites it
atomically on every change.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

CONTENT_KEY = "cheatsheet-content"
COLUMNS_KEY = "cheatsheet-columns"
FONT_SIZE_KEY = "cheatsheet-font-size"


def write_text_atomic(path: Path, text: str) -> None:
    """Replace *path* with *text* so readers see either the old or the new file.

    The data goes to a sibling temp file first and is moved over the target
    with ``os.replace``.  The temp file never outlives a failed write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class MemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def as_dict(self) -> dict[str, str]:
        return dict(self._data)


class FileKeyValueStore:
    """JSON-file backed key/value store.

    The file is read once at construction.  A corrupt file raises
    ``ValueError`` instead of being silently discarded.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, str] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            msg = f"Corrupt local state file {self._path}: {exc}"
            raise ValueError(msg) from None
        if not isinstance(data, dict):
            msg = f"Corrupt local state file {self._path}: expected an object"
            raise ValueError(msg)  # noqa: TRY004
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()

    def clear(self) -> None:
        self._data.clear()
        self._path.unlink(missing_ok=True)

    def _flush(self) -> None:
        write_text_atomic(self._path, json.dumps(self._data, indent=2, ensure_ascii=False))
