"""In-memory blob store (tests, throwaway editors)."""

from __future__ import annotations

from sheetsync.models.document import ImageBlob
from sheetsync.store.base import validate_image_id


class MemoryBlobStore:
    """Dict-backed implementation of the BlobStore protocol."""

    def __init__(self) -> None:
        self._blobs: dict[str, ImageBlob] = {}

    async def put(self, image_id: str, blob: ImageBlob) -> str:
        self._blobs[validate_image_id(image_id)] = blob
        return image_id

    async def get(self, image_id: str) -> ImageBlob | None:
        return self._blobs.get(validate_image_id(image_id))

    async def delete(self, image_id: str) -> None:
        self._blobs.pop(validate_image_id(image_id), None)

    async def list_ids(self) -> set[str]:
        return set(self._blobs)

    def __len__(self) -> int:
        return len(self._blobs)
