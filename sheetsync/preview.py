"""Preview rendering: markdown -> resolved, sanitized HTML.

Pipeline for every render:

1. markdown -> HTML (markdown-it-py, CommonMark + GFM tables/strikethrough,
   soft line breaks rendered as ``<br>``);
2. collect the distinct ``indexeddb://<id>`` image sources;
3. look all ids up in the blob store concurrently;
4. swap each found id for the blob's ``data:`` URI;
5. swap each missing (or failed) id for a blank placeholder image and tag
   the ``<img>`` with ``class="image-missing"``;
6. sanitize with nh3.

Nothing is returned until every step is done, so the display layer never
sees half-resolved markup.
"""

from __future__ import annotations

import asyncio
import html as html_lib
import re
from dataclasses import dataclass, field

import jinja2
import nh3
from loguru import logger
from markdown_it import MarkdownIt

from sheetsync.models.document import Document, ImageBlob, word_count
from sheetsync.store.base import IMAGE_ID_PATTERN, BlobStore

LOCAL_IMAGE_SCHEME = "indexeddb"
PLACEHOLDER_IMAGE = "data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"
MISSING_IMAGE_CLASS = "image-missing"

_IMG_TAG_RE = re.compile(r"""<img\b(?:[^>"']|"[^"]*"|'[^']*')*>""", re.IGNORECASE)
# One attribute, matched from the position right after the previous one.
_ATTR_RE = re.compile(r"""\s+(?P<name>[^\s"'>/=]+)(?:\s*=\s*(?P<value>"[^"]*"|'[^']*'|[^\s"'=<>`]+))?""")
_LOCAL_URL_RE = re.compile(rf"{LOCAL_IMAGE_SCHEME}://(?P<id>{IMAGE_ID_PATTERN})", re.IGNORECASE)

# -- Sanitizer policy ----------------------------------------------------------

_TAGS = set(nh3.ALLOWED_TAGS)
_ATTRIBUTES: dict[str, set[str]] = {tag: set(attrs) for tag, attrs in nh3.ALLOWED_ATTRIBUTES.items()}
_ATTRIBUTES.setdefault("img", set()).update({"src", "alt", "title", "width", "height", "class", "data-missing-id"})
_ATTRIBUTES.setdefault("code", set()).add("class")
_ATTRIBUTES.setdefault("pre", set()).add("class")
_ATTRIBUTES.setdefault("th", set()).add("style")
_ATTRIBUTES.setdefault("td", set()).add("style")
_URL_SCHEMES = set(nh3.ALLOWED_URL_SCHEMES) | {"data", LOCAL_IMAGE_SCHEME}
_IMAGE_ONLY_PREFIXES = ("data:", f"{LOCAL_IMAGE_SCHEME}:")


def _attribute_filter(element: str, attribute: str, value: str) -> str | None:
    """Confine ``data:`` and local-reference URLs to ``<img src>``.

    nh3 applies its URL scheme allow-list to every URL attribute; the two
    image-only schemes are admitted there and narrowed back down here.
    """
    lowered = value.strip().lower()
    if not lowered.startswith(_IMAGE_ONLY_PREFIXES):
        return value
    if element != "img" or attribute != "src":
        return None
    if lowered.startswith("data:") and not lowered.startswith("data:image/"):
        return None
    return value


def sanitize_html(raw_html: str) -> str:
    return nh3.clean(
        raw_html,
        tags=_TAGS,
        attributes=_ATTRIBUTES,
        url_schemes=_URL_SCHEMES,
        attribute_filter=_attribute_filter,
        filter_style_properties={"text-align"},
    )


# -- Markdown ------------------------------------------------------------------

_md = MarkdownIt("commonmark", {"breaks": True, "html": True}).enable("table").enable("strikethrough")


def render_markdown(text: str) -> str:
    """Convert markdown to (unsanitized) HTML."""
    return _md.render(text or "")


# -- Reference resolution --------------------------------------------------------


def _attribute(tag: str, name: str) -> re.Match[str] | None:
    """Return the first ``name=value`` attribute of an ``<img ...>`` tag.

    Attributes are walked in order, so ``data-src=`` or an ``src=`` inside
    another attribute's value never matches ``src``.
    """
    pos = len("<img")
    while (attr := _ATTR_RE.match(tag, pos)) is not None:
        if attr["name"].lower() == name and attr["value"] is not None:
            return attr
        pos = attr.end()
    return None


def _unquote(value: str) -> str:
    return value[1:-1] if value[:1] in ("'", '"') else value


def _local_image_id(tag: str) -> tuple[str, re.Match[str]] | None:
    src = _attribute(tag, "src")
    if src is None:
        return None
    url = _LOCAL_URL_RE.fullmatch(html_lib.unescape(_unquote(src["value"])).strip())
    return (url["id"], src) if url is not None else None


def find_local_image_ids(raw_html: str) -> set[str]:
    """Return the distinct ids referenced by ``<img src="indexeddb://...">`` tags."""
    ids: set[str] = set()
    for tag in _IMG_TAG_RE.finditer(raw_html):
        local = _local_image_id(tag.group(0))
        if local is not None:
            ids.add(local[0])
    return ids


async def _lookup_all(store: BlobStore, image_ids: set[str]) -> dict[str, ImageBlob]:
    """Fan out one lookup per id.  A failing lookup only loses its own id."""
    ordered = sorted(image_ids)
    results = await asyncio.gather(*(store.get(i) for i in ordered), return_exceptions=True)

    found: dict[str, ImageBlob] = {}
    for image_id, result in zip(ordered, results, strict=True):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.opt(exception=result).warning("Image lookup failed for {}", image_id)
        elif result is None:
            logger.debug("Image {} not found in local store", image_id)
        else:
            found[image_id] = result
    return found


def _mark_missing(tag: str, image_id: str) -> str:
    marker = f' data-missing-id="{html_lib.escape(image_id)}"'
    class_attr = _attribute(tag, "class")
    if class_attr is None:
        return f'<img class="{MISSING_IMAGE_CLASS}"{marker}{tag[4:]}'
    value = f"{html_lib.unescape(_unquote(class_attr['value']))} {MISSING_IMAGE_CLASS}".strip()
    tag = f'{tag[: class_attr.start("value")]}"{html_lib.escape(value)}"{tag[class_attr.end("value") :]}'
    return f"<img{marker}{tag[4:]}"


async def resolve_image_references(raw_html: str, store: BlobStore) -> tuple[str, set[str]]:
    """Replace local image references with displayable data.

    Returns the rewritten HTML and the set of ids that could not be resolved.
    """
    image_ids = find_local_image_ids(raw_html)
    if not image_ids:
        return raw_html, set()

    found = await _lookup_all(store, image_ids)
    data_urls = {image_id: blob.to_data_url() for image_id, blob in found.items()}
    missing = image_ids - found.keys()

    def _rewrite(match: re.Match[str]) -> str:
        tag = match.group(0)
        local = _local_image_id(tag)
        if local is None:
            return tag
        image_id, src = local
        url = data_urls.get(image_id, PLACEHOLDER_IMAGE)
        tag = f'{tag[: src.start("value")]}"{url}"{tag[src.end("value") :]}'
        if image_id in missing:
            tag = _mark_missing(tag, image_id)
        return tag

    return _IMG_TAG_RE.sub(_rewrite, raw_html), missing


# -- Renderer ------------------------------------------------------------------


@dataclass
class RenderedPreview:
    """Display-ready preview of a document."""

    html: str
    style: str
    missing_ids: set[str] = field(default_factory=set)
    word_count: int = 0

    def to_page(self, title: str = "Cheatsheet") -> str:
        """Wrap the fragment in a standalone HTML page (used by the CLI)."""
        return _PAGE_TEMPLATE.render(
            title=title,
            style=self.style,
            body=self.html,
            missing_class=MISSING_IMAGE_CLASS,
        )


# ``body`` is already sanitized; everything else is escaped.
_PAGE_TEMPLATE = jinja2.Environment(autoescape=True, keep_trailing_newline=True).from_string(
    """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>
.preview-wrapper img{max-width:100%}
.{{ missing_class }}{outline:2px dashed #c0392b;min-width:2em;min-height:2em}
</style>
</head>
<body>
<div class="preview-wrapper" style="{{ style }}">
{{ body | safe }}</div>
</body>
</html>
"""
)


def preview_style(document: Document) -> str:
    return f"font-size: {document.font_size}px; column-count: {document.column_count};"


class PreviewRenderer:
    """Renders documents for display, resolving images from *store*."""

    def __init__(self, store: BlobStore) -> None:
        self._store = store

    async def render(self, document: Document) -> RenderedPreview:
        raw_html = render_markdown(document.text)
        resolved, missing = await resolve_image_references(raw_html, self._store)
        if missing:
            logger.info("Preview rendered with {} missing image(s)", len(missing))
        return RenderedPreview(
            html=sanitize_html(resolved),
            style=preview_style(document),
            missing_ids=missing,
            word_count=word_count(document.text),
        )
