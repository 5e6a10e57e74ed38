"""Image blobs on the local filesystem.

One JSON file per image (the serialized ``ImageBlob``)::

    {data_root}[/{prefix}]/images/{image_id}.json

File I/O runs in anyio's worker threads.  Files are replaced atomically, so
an interrupted paste never leaves a half-written image behind.
"""

from __future__ import annotations

from pathlib import Path

from anyio import to_thread

from sheetsync.models.document import ImageBlob
from sheetsync.persistence import write_text_atomic
from sheetsync.store.base import validate_image_id

_SUFFIX = ".json"


class LocalBlobStore:
    """BlobStore backed by a directory.  *prefix* namespaces several profiles under one root."""

    def __init__(self, data_root: str | Path, prefix: str | None = None) -> None:
        root = Path(data_root) / prefix if prefix else Path(data_root)
        self._dir = root / "images"

    def _path_for(self, image_id: str) -> Path:
        return self._dir / (validate_image_id(image_id) + _SUFFIX)

    async def put(self, image_id: str, blob: ImageBlob) -> str:
        path = self._path_for(image_id)
        await to_thread.run_sync(write_text_atomic, path, blob.model_dump_json())
        return image_id

    async def get(self, image_id: str) -> ImageBlob | None:
        raw = await to_thread.run_sync(_read_or_none, self._path_for(image_id))
        return None if raw is None else ImageBlob.model_validate_json(raw)

    async def delete(self, image_id: str) -> None:
        path = self._path_for(image_id)
        await to_thread.run_sync(lambda: path.unlink(missing_ok=True))

    async def list_ids(self) -> set[str]:
        return await to_thread.run_sync(self._scan)

    def _scan(self) -> set[str]:
        if not self._dir.is_dir():
            return set()
        return {p.name.removesuffix(_SUFFIX) for p in self._dir.glob(f"*{_SUFFIX}") if p.is_file()}


def _read_or_none(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
