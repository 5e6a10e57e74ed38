"""Tests for markdown rendering, image resolution and sanitization."""

from __future__ import annotations

import asyncio

import pytest

from sheetsync.models.document import Document, ImageBlob
from sheetsync.preview import (
    MISSING_IMAGE_CLASS,
    PLACEHOLDER_IMAGE,
    PreviewRenderer,
    find_local_image_ids,
    render_markdown,
    resolve_image_references,
    sanitize_html,
)
from sheetsync.store.memory import MemoryBlobStore

GIF = ImageBlob(content_type="image/gif", data=b"GIF89a")


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


# -- Markdown ----------------------------------------------------------------------


def test_single_newlines_become_breaks() -> None:
    html = sanitize_html(render_markdown("line one\nline two"))
    assert "line one<br>" in html


def test_tables_and_strikethrough() -> None:
    html = sanitize_html(render_markdown("| a | b |\n|---|---|\n| 1 | ~~2~~ |"))
    assert "<table>" in html
    assert "<td>1</td>" in html
    assert "<s>2</s>" in html


def test_fenced_code_keeps_language_class() -> None:
    html = sanitize_html(render_markdown("```python\nprint(1)\n```"))
    assert 'class="language-python"' in html


# -- Sanitizer ---------------------------------------------------------------------


def test_sanitizer_strips_scripts_and_handlers() -> None:
    html = sanitize_html('<p onclick="x()">hi</p><script>alert(1)</script><img src="x.png" onerror="alert(1)">')
    assert "<script" not in html
    assert "alert" not in html
    assert "onclick" not in html
    assert "onerror" not in html
    assert "<p>hi</p>" in html


def test_sanitizer_strips_javascript_urls() -> None:
    html = sanitize_html('<a href="javascript:alert(1)">x</a>')
    assert "javascript" not in html


def test_sanitizer_allows_data_urls_only_on_images() -> None:
    html = sanitize_html(f'<img src="{GIF.to_data_url()}"><a href="data:text/html;base64,PHNjcmlwdD4=">x</a>')
    assert f'src="{GIF.to_data_url()}"' in html
    assert "data:text/html" not in html


def test_sanitizer_rejects_non_image_data_on_img() -> None:
    html = sanitize_html('<img src="data:text/html;base64,PHNjcmlwdD4=">')
    assert "data:text/html" not in html


# -- Image references ----------------------------------------------------------------


def test_find_local_image_ids() -> None:
    html = render_markdown("![a](indexeddb://img-1) ![b](indexeddb://img-2) ![c](indexeddb://img-1) ![d](x.png)")
    assert find_local_image_ids(html) == {"img-1", "img-2"}


def test_references_in_code_are_left_alone() -> None:
    html = render_markdown("`![a](indexeddb://img-1)`")
    assert find_local_image_ids(html) == set()


async def test_resolve_found_and_missing(store: MemoryBlobStore) -> None:
    await store.put("img-ok", GIF)
    html = render_markdown("![ok](indexeddb://img-ok)\n\n![gone](indexeddb://img-gone)")

    resolved, missing = await resolve_image_references(html, store)

    assert missing == {"img-gone"}
    assert GIF.to_data_url() in resolved
    assert PLACEHOLDER_IMAGE in resolved
    assert "indexeddb://" not in resolved
    assert f'class="{MISSING_IMAGE_CLASS}"' in resolved
    assert 'data-missing-id="img-gone"' in resolved


async def test_missing_class_is_appended_to_existing_class(store: MemoryBlobStore) -> None:
    resolved, _ = await resolve_image_references('<img class="wide" src="indexeddb://img-x">', store)
    assert f'class="wide {MISSING_IMAGE_CLASS}"' in resolved


async def test_only_the_real_src_attribute_is_resolved(store: MemoryBlobStore) -> None:
    await store.put("real", GIF)
    html = '<p><img data-src="indexeddb://decoy" alt="src=indexeddb://other" src="indexeddb://real"></p>'

    assert find_local_image_ids(html) == {"real"}
    resolved, missing = await resolve_image_references(html, store)

    assert missing == set()
    assert f'src="{GIF.to_data_url()}"' in resolved
    assert 'data-src="indexeddb://decoy"' in resolved
    assert MISSING_IMAGE_CLASS not in resolved


async def test_data_class_is_not_mistaken_for_class(store: MemoryBlobStore) -> None:
    resolved, _ = await resolve_image_references("<img data-class='x' src='indexeddb://img-x'>", store)
    assert resolved.startswith(f'<img class="{MISSING_IMAGE_CLASS}" data-missing-id="img-x"')
    assert "data-class='x'" in resolved
    assert f'src="{PLACEHOLDER_IMAGE}"' in resolved


async def test_no_references_skips_store() -> None:
    class _ExplodingStore(MemoryBlobStore):
        async def get(self, image_id: str) -> ImageBlob | None:
            raise AssertionError("store should not be consulted")

    html = render_markdown("plain text")
    assert await resolve_image_references(html, _ExplodingStore()) == (html, set())


async def test_failing_lookup_only_affects_its_own_image(store: MemoryBlobStore) -> None:
    class _FlakyStore(MemoryBlobStore):
        async def get(self, image_id: str) -> ImageBlob | None:
            if image_id == "img-bad":
                raise OSError("disk on fire")
            return await super().get(image_id)

    flaky = _FlakyStore()
    await flaky.put("img-good", GIF)
    html = render_markdown("![g](indexeddb://img-good) ![b](indexeddb://img-bad)")

    resolved, missing = await resolve_image_references(html, flaky)
    assert missing == {"img-bad"}
    assert GIF.to_data_url() in resolved


async def test_lookups_run_concurrently() -> None:
    """Every lookup is started before any of them completes."""

    class _BarrierStore(MemoryBlobStore):
        def __init__(self, expected: int) -> None:
            super().__init__()
            self.started = 0
            self.expected = expected
            self.all_started = asyncio.Event()

        async def get(self, image_id: str) -> ImageBlob | None:
            self.started += 1
            if self.started == self.expected:
                self.all_started.set()
            await self.all_started.wait()
            return GIF

    barrier = _BarrierStore(expected=3)
    html = render_markdown(" ".join(f"![i](indexeddb://img-{n})" for n in range(3)))

    resolved, missing = await asyncio.wait_for(resolve_image_references(html, barrier), timeout=2)
    assert missing == set()
    assert resolved.count(GIF.to_data_url()) == 3


# -- Renderer ----------------------------------------------------------------------


async def test_render_document(store: MemoryBlobStore) -> None:
    await store.put("img-1", GIF)
    doc = Document(text="# Title\n\n![pic](indexeddb://img-1)\n\n<script>bad()</script>", column_count=3, font_size=18)

    preview = await PreviewRenderer(store).render(doc)

    assert "<h1>Title</h1>" in preview.html
    assert GIF.to_data_url() in preview.html
    assert "<script" not in preview.html
    assert preview.style == "font-size: 18px; column-count: 3;"
    assert preview.missing_ids == set()
    assert preview.word_count == doc.word_count


async def test_render_page_wraps_fragment(store: MemoryBlobStore) -> None:
    preview = await PreviewRenderer(store).render(Document(text="hello"))
    page = preview.to_page()
    assert page.startswith("<!DOCTYPE html>")
    assert f'style="{preview.style}"' in page
    assert "<p>hello</p>" in page


async def test_render_page_escapes_title(store: MemoryBlobStore) -> None:
    preview = await PreviewRenderer(store).render(Document(text="x"))
    assert "<title>&lt;b&gt;Notes&lt;/b&gt;</title>" in preview.to_page(title="<b>Notes</b>")
