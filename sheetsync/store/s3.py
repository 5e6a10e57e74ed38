"""S3 blob store.

Each image is one JSON object (the serialized ``ImageBlob``)::

    s3://{bucket}/{prefix}/images/{image_id}.json

or ``s3://{bucket}/images/{image_id}.json`` without a prefix.  boto3 is
synchronous, so every call runs in the anyio worker thread pool.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from typing import Any

import boto3
from anyio import to_thread
from botocore.config import Config
from botocore.exceptions import ClientError

from sheetsync.models.document import ImageBlob
from sheetsync.store.base import validate_image_id

_SUFFIX = ".json"
_MISSING_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class S3BlobStore:
    """S3 (or any S3-compatible service) implementation of the BlobStore protocol.

    Set *path_style* for MinIO and similar services that do not support
    virtual-hosted bucket addressing.  *client* overrides the boto3 client
    (tests, custom sessions).
    """

    def __init__(
        self,
        bucket: str,
        endpoint_url: str,
        access_key: str,
        secret_key: str,
        prefix: str | None = None,
        region: str | None = None,
        path_style: bool = False,
        *,
        client: Any = None,
    ) -> None:
        self._bucket = bucket
        self._key_prefix = f"{prefix}/images/" if prefix else "images/"
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            config=Config(
                request_checksum_calculation="when_required",
                response_checksum_validation="when_required",
                s3={"addressing_style": "path" if path_style else "auto"},
            ),
        )

    def _key(self, image_id: str) -> str:
        return f"{self._key_prefix}{validate_image_id(image_id)}{_SUFFIX}"

    async def _run(self, fn: Callable[..., Any], **kwargs: Any) -> Any:
        return await to_thread.run_sync(partial(fn, **kwargs))

    # -- BlobStore -------------------------------------------------------------

    async def put(self, image_id: str, blob: ImageBlob) -> str:
        await self._run(
            self._client.put_object,
            Bucket=self._bucket,
            Key=self._key(image_id),
            Body=blob.model_dump_json().encode("utf-8"),
            ContentType="application/json",
        )
        return image_id

    async def get(self, image_id: str) -> ImageBlob | None:
        raw = await self._run(self._read, key=self._key(image_id))
        if raw is None:
            return None
        return ImageBlob.model_validate_json(raw)

    async def delete(self, image_id: str) -> None:
        # DeleteObject succeeds for keys that do not exist.
        await self._run(self._client.delete_object, Bucket=self._bucket, Key=self._key(image_id))

    async def list_ids(self) -> set[str]:
        return await self._run(self._list)

    # -- Sync helpers (run in thread pool) -------------------------------------

    def _read(self, key: str) -> bytes | None:
        """Fetch an object body, or ``None`` if the key does not exist.

        The streaming body is read in the same worker thread that issued the
        request.
        """
        try:
            resp = self._client.get_object(Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise
        return resp["Body"].read()

    def _list(self) -> set[str]:
        ids: set[str] = set()
        pages = self._client.get_paginator("list_objects_v2").paginate(Bucket=self._bucket, Prefix=self._key_prefix)
        for page in pages:
            for obj in page.get("Contents", []):
                name = obj["Key"].removeprefix(self._key_prefix)
                if "/" not in name and name.endswith(_SUFFIX):
                    ids.add(name.removesuffix(_SUFFIX))
        return ids
