"""S3BlobStore against a live bucket (marker ``s3``).

Skipped unless these are set; every run writes under a fresh random prefix
and deletes what it wrote::

    SHEETSYNC_S3_ENDPOINT
    SHEETSYNC_S3_BUCKET
    SHEETSYNC_S3_ACCESS_KEY
    SHEETSYNC_S3_SECRET_KEY
"""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncIterator

import pytest

from sheetsync.models.document import ImageBlob
from sheetsync.store.s3 import S3BlobStore

_S3_ENDPOINT = os.environ.get("SHEETSYNC_S3_ENDPOINT")
_S3_BUCKET = os.environ.get("SHEETSYNC_S3_BUCKET")
_S3_ACCESS_KEY = os.environ.get("SHEETSYNC_S3_ACCESS_KEY")
_S3_SECRET_KEY = os.environ.get("SHEETSYNC_S3_SECRET_KEY")

_s3_configured = all([_S3_ENDPOINT, _S3_BUCKET, _S3_ACCESS_KEY, _S3_SECRET_KEY])
_skip_reason = "S3 tests require SHEETSYNC_S3_ENDPOINT, _BUCKET, _ACCESS_KEY and _SECRET_KEY"

pytestmark = [pytest.mark.s3, pytest.mark.skipif(not _s3_configured, reason=_skip_reason)]

PNG = ImageBlob(content_type="image/png", data=b"\x89PNG\r\n\x1a\nfake")


@pytest.fixture
async def s3_store() -> AsyncIterator[S3BlobStore]:
    """S3 store with a unique test prefix; every blob is removed afterwards."""
    assert _S3_ENDPOINT and _S3_BUCKET and _S3_ACCESS_KEY and _S3_SECRET_KEY
    store = S3BlobStore(
        bucket=_S3_BUCKET,
        endpoint_url=_S3_ENDPOINT,
        access_key=_S3_ACCESS_KEY,
        secret_key=_S3_SECRET_KEY,
        prefix=f"test-{uuid.uuid4().hex[:8]}",
        region=os.environ.get("SHEETSYNC_S3_REGION"),
        path_style=os.environ.get("SHEETSYNC_S3_PATH_STYLE", "").lower() in ("1", "true"),
    )
    yield store
    for image_id in await store.list_ids():
        await store.delete(image_id)


async def test_put_get_delete(s3_store: S3BlobStore) -> None:
    await s3_store.put("img-1", PNG)
    assert await s3_store.get("img-1") == PNG
    assert await s3_store.list_ids() == {"img-1"}

    await s3_store.delete("img-1")
    assert await s3_store.get("img-1") is None


async def test_get_missing_returns_none(s3_store: S3BlobStore) -> None:
    assert await s3_store.get("never-stored") is None


async def test_delete_missing_is_noop(s3_store: S3BlobStore) -> None:
    await s3_store.delete("never-stored")
