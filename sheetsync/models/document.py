"""Document and image blob models.

The editor works on exactly one ``Document`` at a time: one markdown text
plus two layout preferences.  ``column_count`` is a rendering hint only --
the preview flows the single text across CSS columns, it never splits it.
"""

from __future__ import annotations

import base64
import binascii
import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MIN_COLUMNS = 1
MAX_COLUMNS = 3
DEFAULT_COLUMNS = 2

MIN_FONT_SIZE = 10
MAX_FONT_SIZE = 24
DEFAULT_FONT_SIZE = 14

DEFAULT_TEXT = """\
# Cheatsheet Editor - Quick Start

Welcome! Type in the editor on the left and the preview updates as you go.

## Basic Markdown

### Headers
```markdown
# Big Header
## Medium Header
### Small Header
```

### Lists
- Bullet point 1
- Bullet point 2
  - Nested item

1. Numbered item
2. Another item

### Code
Use triple backticks with a language for syntax highlighting, or single
backticks for inline code: `variableName`.

## Layout

| Control | Action |
|---------|--------|
| **1 / 2 / 3 Columns** | Flow the cheatsheet across columns |
| **A- / A+** | Decrease / increase font size |

## Images

Paste an image straight into the editor. It is kept in your browser's
image store and referenced from the text, so it shows in the preview and
the PDF export.

## Saving Your Work

- **Auto-save**: everything is saved locally as you type.
- **Cloud sync**: sign in with GitHub and your cheatsheet follows you.
- **Backup / Restore**: download the whole workspace as a JSON file and
  load it back later.

## Export

Click **Export PDF** for a print-ready copy.

---

**Now start creating! Delete this text and write your own cheatsheet.**
"""

_DATA_URL_RE = re.compile(r"^data:(?P<type>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def clamp_column_count(value: int) -> int:
    return max(MIN_COLUMNS, min(MAX_COLUMNS, value))


def clamp_font_size(value: int) -> int:
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, value))


def word_count(text: str) -> int:
    """Whitespace-delimited word count.  Blank text counts as zero."""
    return len(text.split())


class Document(BaseModel):
    """The single editable cheatsheet.

    Python attributes are snake_case; the wire format (remote content
    service, persisted payloads) uses camelCase aliases.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    text: str = ""
    column_count: int = Field(default=DEFAULT_COLUMNS, ge=MIN_COLUMNS, le=MAX_COLUMNS)
    font_size: int = Field(default=DEFAULT_FONT_SIZE, ge=MIN_FONT_SIZE, le=MAX_FONT_SIZE)

    @classmethod
    def default(cls) -> Document:
        """Built-in placeholder content shown on first use."""
        return cls(text=DEFAULT_TEXT)

    @classmethod
    def empty(cls) -> Document:
        return cls()

    @property
    def word_count(self) -> int:
        return word_count(self.text)


class ImageBlob(BaseModel):
    """A pasted image payload as kept in the blob store."""

    model_config = ConfigDict(ser_json_bytes="base64", val_json_bytes="base64")

    content_type: str = "image/png"
    data: bytes

    def to_data_url(self) -> str:
        """Materialize as an inline ``data:`` URI the preview can display."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"

    @classmethod
    def from_data_url(cls, data_url: str) -> ImageBlob:
        """Parse a base64 ``data:`` URI, the form a clipboard image paste arrives in.

        Raises ``ValueError`` for anything else.
        """
        match = _DATA_URL_RE.match(data_url.strip())
        if match is None:
            msg = "Not a base64 data URL"
            raise ValueError(msg)
        try:
            data = base64.b64decode(match["data"], validate=True)
        except binascii.Error as exc:
            msg = f"Invalid base64 payload: {exc}"
            raise ValueError(msg) from None
        return cls(content_type=match["type"], data=data)
