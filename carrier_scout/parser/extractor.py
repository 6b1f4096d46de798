"""Label-anchored field extraction from carrier snapshot pages.

Snapshot pages are semi-structured tables: every field is a ``<th>`` holding an
anchor with the label text (``Legal Name:``), followed by a ``<td>`` with the value.
Classification blocks are nested tables where a ``queryfield`` cell holding ``X``
marks the item named in the neighbouring cell.

Two interchangeable strategies implement :class:`FieldExtractor`:

* :class:`RegexFieldExtractor` – pattern matching on the raw markup (fast, default).
* :class:`SoupFieldExtractor` – DOM traversal with BeautifulSoup.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from bs4 import BeautifulSoup
from bs4.element import Tag

from carrier_scout.parser.text import html_to_text

__all__: Sequence[str] = (
    "FieldExtractor",
    "RegexFieldExtractor",
    "SoupFieldExtractor",
    "infer_operation_category",
    "extract_mc_number",
    "authority_type",
)

_MARK = "X"
_MC_RE = re.compile(r"MC-(\d{3,9})", re.IGNORECASE)
_AUTHORITY_TYPE_RE = re.compile(r"AUTHORIZED FOR (PROPERTY|PASSENGER|HHG)", re.IGNORECASE)
_MARKED_ROW_RE = re.compile(
    r'<td class="queryfield"[^>]*>\s*(?-i:X)\s*</td>\s*<td[^>]*>\s*(?:<font[^>]*>)?([^<]+)(?:</font>)?\s*</td>',
    re.IGNORECASE,
)

#: checked in priority order, first hit wins
_CATEGORY_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("property", "Property"),
    ("passenger", "Passenger"),
    ("broker", "Broker"),
)


@runtime_checkable
class FieldExtractor(Protocol):
    """Capability set the pipeline needs from a page parser."""

    def extract_by_label(self, page: str, label: str) -> str: ...

    def extract_marked_section(self, page: str, section_label: str) -> Tuple[str, ...]: ...


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(item for item in items if item))


# --------------------------------------------------------------------------- #
# Regex strategy                                                              #
# --------------------------------------------------------------------------- #


class RegexFieldExtractor:
    """Pattern-matching extractor; compiled patterns are cached per label."""

    def __init__(self) -> None:
        self._label_cache: Dict[str, re.Pattern[str]] = {}
        self._section_cache: Dict[str, re.Pattern[str]] = {}

    def extract_by_label(self, page: str, label: str) -> str:
        pattern = self._label_cache.get(label)
        if pattern is None:
            pattern = re.compile(
                rf">{re.escape(label)}</a></th>\s*<td[^>]*>(.*?)</td>",
                re.IGNORECASE | re.DOTALL,
            )
            self._label_cache[label] = pattern
        match = pattern.search(page or "")
        return html_to_text(match.group(1)) if match else ""

    def extract_marked_section(self, page: str, section_label: str) -> Tuple[str, ...]:
        pattern = self._section_cache.get(section_label)
        if pattern is None:
            pattern = re.compile(
                rf"{re.escape(section_label)}</a></td>.*?<table(.*?)</table>",
                re.IGNORECASE | re.DOTALL,
            )
            self._section_cache[section_label] = pattern
        page = page or ""
        match = pattern.search(page)
        # the first classification table on some pages has no nested-table wrapper
        scope = match.group(1) if match else page
        return _unique(html_to_text(m.group(1)) for m in _MARKED_ROW_RE.finditer(scope))


# --------------------------------------------------------------------------- #
# BeautifulSoup strategy                                                      #
# --------------------------------------------------------------------------- #


@lru_cache(maxsize=16)
def _soup(page: str) -> BeautifulSoup:
    return BeautifulSoup(page, "html.parser")


def _find_anchor(soup: BeautifulSoup, label: str, parent: str) -> Optional[Tag]:
    wanted = label.lower()
    for a in soup.find_all("a"):
        if not isinstance(a, Tag) or a.parent is None or a.parent.name != parent:
            continue
        if a.get_text(strip=True).lower() == wanted:
            return a
    return None


class SoupFieldExtractor:
    """DOM-traversal extractor built on BeautifulSoup's ``html.parser``."""

    def extract_by_label(self, page: str, label: str) -> str:
        anchor = _find_anchor(_soup(page or ""), label, "th")
        if anchor is None:
            return ""
        cell = anchor.parent.find_next_sibling("td")
        if not isinstance(cell, Tag):
            return ""
        return html_to_text(cell.decode_contents())

    def extract_marked_section(self, page: str, section_label: str) -> Tuple[str, ...]:
        soup = _soup(page or "")
        scope: Tag = soup
        anchor = _find_anchor(soup, section_label, "td")
        if anchor is not None:
            table = anchor.find_next("table")
            if isinstance(table, Tag):
                scope = table
        labels: List[str] = []
        for cell in scope.find_all("td", class_="queryfield"):
            if cell.get_text(strip=True) != _MARK:
                continue
            neighbour = cell.find_next_sibling("td")
            if isinstance(neighbour, Tag):
                labels.append(" ".join(neighbour.get_text(" ", strip=True).split()))
        return _unique(labels)


# --------------------------------------------------------------------------- #
# Derived fields                                                              #
# --------------------------------------------------------------------------- #


def infer_operation_category(markers: Iterable[str], authority_status: str = "") -> str:
    """Map marked classification items (then the authority text) to a category."""
    lowered = [m.lower() for m in markers]
    for keyword, category in _CATEGORY_KEYWORDS:
        if any(keyword in m for m in lowered):
            return category
    status = (authority_status or "").lower()
    for keyword, category in _CATEGORY_KEYWORDS:
        if keyword in status:
            return category
    return ""


def extract_mc_number(page: str) -> str:
    match = _MC_RE.search(page or "")
    return match.group(1) if match else ""


def authority_type(authority_status: str) -> str:
    match = _AUTHORITY_TYPE_RE.search(authority_status or "")
    if not match:
        return ""
    kind = match.group(1).upper()
    return kind if kind == "HHG" else kind.title()
