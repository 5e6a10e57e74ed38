"""Image blob store implementations."""

from sheetsync.store.base import BlobStore, validate_image_id
from sheetsync.store.local import LocalBlobStore
from sheetsync.store.memory import MemoryBlobStore

__all__ = ["BlobStore", "LocalBlobStore", "MemoryBlobStore", "validate_image_id"]
