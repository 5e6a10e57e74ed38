"""Pasted images: minting references and sweeping unreferenced blobs."""

from __future__ import annotations

import re
import uuid

from loguru import logger

from sheetsync.models.document import ImageBlob
from sheetsync.preview import LOCAL_IMAGE_SCHEME
from sheetsync.state import DocumentState
from sheetsync.store.base import IMAGE_ID_PATTERN, BlobStore

_REFERENCE_RE = re.compile(rf"{LOCAL_IMAGE_SCHEME}://({IMAGE_ID_PATTERN})")


def new_image_id() -> str:
    return f"img-{uuid.uuid4().hex}"


def image_reference(image_id: str) -> str:
    return f"{LOCAL_IMAGE_SCHEME}://{image_id}"


def referenced_ids(text: str) -> set[str]:
    """All image ids referenced anywhere in *text*."""
    return set(_REFERENCE_RE.findall(text))


async def paste_image(
    state: DocumentState,
    store: BlobStore,
    blob: ImageBlob,
    *,
    position: int | None = None,
    alt: str = "image",
) -> str:
    """Store *blob* under a fresh id and insert a markdown reference to it.

    The reference goes at character offset *position*, or on its own line at
    the end of the text when *position* is None.  The blob is stored before
    the text changes so the reference never points at nothing.
    """
    image_id = await store.put(new_image_id(), blob)
    markdown = f"![{alt}]({image_reference(image_id)})"

    text = state.document.text
    if position is None:
        prefix = text if not text or text.endswith("\n") else f"{text}\n"
        new_text = f"{prefix}{markdown}\n"
    else:
        position = max(0, min(position, len(text)))
        new_text = f"{text[:position]}{markdown}{text[position:]}"

    state.set_text(new_text)
    logger.debug("Pasted image {} ({}, {} bytes)", image_id, blob.content_type, len(blob.data))
    return image_id


async def sweep_unreferenced(store: BlobStore, text: str) -> set[str]:
    """Delete every stored blob that *text* no longer references.

    Returns the deleted ids.  Only the given text is considered live, so
    callers must pass the full current document.
    """
    live = referenced_ids(text)
    stale = await store.list_ids() - live
    for image_id in sorted(stale):
        await store.delete(image_id)
    if stale:
        logger.info("Removed {} unreferenced image(s) from the local store", len(stale))
    return stale
