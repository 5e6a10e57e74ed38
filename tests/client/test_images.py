"""Tests for pasting images and sweeping unreferenced blobs."""

from __future__ import annotations

import re

import pytest

from sheetsync.images import image_reference, new_image_id, paste_image, referenced_ids, sweep_unreferenced
from sheetsync.models.document import ImageBlob
from sheetsync.persistence import MemoryKeyValueStore
from sheetsync.preview import PreviewRenderer
from sheetsync.state import DocumentState
from sheetsync.store.memory import MemoryBlobStore

PNG = ImageBlob.from_data_url("data:image/png;base64,iVBORw0KGgo=")


@pytest.fixture
def state() -> DocumentState:
    state = DocumentState(MemoryKeyValueStore())
    state.replace(state.document.model_copy(update={"text": "# Notes"}))
    return state


def test_new_image_id_matches_grammar() -> None:
    image_id = new_image_id()
    assert re.fullmatch(r"[A-Za-z0-9_-]+", image_id)
    assert image_id != new_image_id()


def test_referenced_ids() -> None:
    text = f"![a]({image_reference('img-1')}) and ![b]({image_reference('img-2')}) and https://x/img-3"
    assert referenced_ids(text) == {"img-1", "img-2"}


async def test_paste_then_preview(state: DocumentState) -> None:
    store = MemoryBlobStore()

    image_id = await paste_image(state, store, PNG)

    assert len(store) == 1
    assert state.document.text == f"# Notes\n![image](indexeddb://{image_id})\n"
    assert state.document.text.count("indexeddb://") == 1

    preview = await PreviewRenderer(store).render(state.document)
    assert PNG.to_data_url() in preview.html
    assert "indexeddb://" not in preview.html


async def test_paste_at_position(state: DocumentState) -> None:
    store = MemoryBlobStore()
    image_id = await paste_image(state, store, PNG, position=2, alt="logo")
    assert state.document.text == f"# ![logo](indexeddb://{image_id})Notes"


async def test_paste_into_empty_document() -> None:
    state = DocumentState(MemoryKeyValueStore())
    state.replace(state.document.model_copy(update={"text": ""}))
    image_id = await paste_image(state, MemoryBlobStore(), PNG)
    assert state.document.text == f"![image](indexeddb://{image_id})\n"


async def test_sweep_only_removes_unreferenced() -> None:
    store = MemoryBlobStore()
    await store.put("img-keep", PNG)
    await store.put("img-drop", PNG)

    removed = await sweep_unreferenced(store, "![x](indexeddb://img-keep)")

    assert removed == {"img-drop"}
    assert await store.list_ids() == {"img-keep"}


async def test_deleting_reference_does_not_delete_blob(state: DocumentState) -> None:
    store = MemoryBlobStore()
    image_id = await paste_image(state, store, PNG)

    state.set_text("# Notes")
    assert await store.get(image_id) == PNG
