"""Blob store interface for pasted images.

Images pasted into the editor are kept out of the markdown text: the text
only carries an ``indexeddb://<id>`` reference and the payload lives here,
keyed by that id.  The store is a plain keyed map -- ids are minted by the
caller (see ``sheetsync.images.new_image_id``).

The interface is async because backends may be slow (filesystem, S3).
There is no eviction: the store only shrinks through explicit deletes or
``sheetsync.images.sweep_unreferenced``.
"""

from __future__ import annotations

import re
from typing import Protocol, runtime_checkable

from sheetsync.models.document import ImageBlob

IMAGE_ID_PATTERN = r"[A-Za-z0-9_-]+"
_IMAGE_ID_RE = re.compile(rf"^{IMAGE_ID_PATTERN}$")


def validate_image_id(image_id: str) -> str:
    """Return *image_id* unchanged.  Raises ``ValueError`` if it is not a valid id.

    Ids end up in file names and object keys, so anything outside
    ``[A-Za-z0-9_-]`` is rejected.
    """
    if not _IMAGE_ID_RE.match(image_id):
        msg = f"Invalid image id: {image_id!r}"
        raise ValueError(msg)
    return image_id


@runtime_checkable
class BlobStore(Protocol):
    """Async protocol for storing image payloads by id."""

    async def put(self, image_id: str, blob: ImageBlob) -> str:
        """Store (or overwrite) a blob.  Returns *image_id*."""
        ...

    async def get(self, image_id: str) -> ImageBlob | None:
        """Return the blob, or ``None`` if no blob is stored under *image_id*."""
        ...

    async def delete(self, image_id: str) -> None:
        """Delete a blob.  No-op if not found."""
        ...

    async def list_ids(self) -> set[str]:
        """Return the ids of all stored blobs."""
        ...
