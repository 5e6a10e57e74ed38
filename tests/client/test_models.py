"""Tests for the document and image blob models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sheetsync.models.document import DEFAULT_TEXT, Document, ImageBlob, clamp_column_count, clamp_font_size


def test_default_document() -> None:
    doc = Document.default()
    assert doc.text == DEFAULT_TEXT
    assert doc.column_count == 2
    assert doc.font_size == 14


def test_empty_document() -> None:
    doc = Document.empty()
    assert doc.text == ""
    assert doc.word_count == 0


def test_word_count() -> None:
    assert Document(text="  hello   world\n\nthree ").word_count == 3


def test_camel_case_aliases() -> None:
    doc = Document.model_validate({"text": "x", "columnCount": 3, "fontSize": 20})
    assert doc.column_count == 3
    assert doc.model_dump(by_alias=True) == {"text": "x", "columnCount": 3, "fontSize": 20}


@pytest.mark.parametrize("field", [{"column_count": 0}, {"column_count": 4}, {"font_size": 9}, {"font_size": 25}])
def test_out_of_range_layout_rejected(field: dict) -> None:
    with pytest.raises(ValidationError):
        Document(**field)


def test_clamps() -> None:
    assert clamp_column_count(0) == 1
    assert clamp_column_count(7) == 3
    assert clamp_font_size(2) == 10
    assert clamp_font_size(99) == 24
    assert clamp_font_size(16) == 16


def test_image_blob_data_url() -> None:
    blob = ImageBlob(content_type="image/gif", data=b"GIF89a")
    url = blob.to_data_url()
    assert url == "data:image/gif;base64,R0lGODlh"
    assert ImageBlob.from_data_url(url) == blob


@pytest.mark.parametrize("bad", ["https://example.com/a.png", "data:image/png,raw", "data:image/png;base64,@@@"])
def test_image_blob_rejects_bad_data_url(bad: str) -> None:
    with pytest.raises(ValueError):
        ImageBlob.from_data_url(bad)


def test_image_blob_json_is_base64() -> None:
    blob = ImageBlob(data=b"\x00\xff")
    assert '"AP8="' in blob.model_dump_json()
    assert ImageBlob.model_validate_json(blob.model_dump_json()) == blob
