"""Markup-to-text normalization for scraped table cells."""
from __future__ import annotations

import re
from typing import Optional

__all__ = ("html_to_text",)

_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")

# &amp; goes last so that "&amp;lt;" stays the literal text "&lt;"
_ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&amp;", "&"),
)


def html_to_text(fragment: Optional[str]) -> str:
    """Collapse an HTML fragment into one readable line.

    ``<br>`` becomes ``", "``, other tags become whitespace, the common entities are
    decoded and whitespace runs are squeezed. ``None`` and ``""`` give ``""``.
    """
    if not fragment:
        return ""
    text = _BR_RE.sub(", ", fragment)
    text = _TAG_RE.sub(" ", text)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return _SPACE_RE.sub(" ", text).strip()
