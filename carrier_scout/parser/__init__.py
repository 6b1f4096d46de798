"""carrier_scout.parser: normalization, address splitting and field extraction."""
from __future__ import annotations

from carrier_scout.parser.address import Address, parse_address
from carrier_scout.parser.extractor import (
    FieldExtractor,
    RegexFieldExtractor,
    SoupFieldExtractor,
    authority_type,
    extract_mc_number,
    infer_operation_category,
)
from carrier_scout.parser.text import html_to_text

_STRATEGIES = {
    "regex": RegexFieldExtractor,
    "soup": SoupFieldExtractor,
}


def build_extractor(name: str = "regex") -> FieldExtractor:
    """Instantiate the extraction strategy registered under *name*."""
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown extractor strategy: {name!r}") from None


__all__ = [
    "Address",
    "FieldExtractor",
    "RegexFieldExtractor",
    "SoupFieldExtractor",
    "authority_type",
    "build_extractor",
    "extract_mc_number",
    "html_to_text",
    "infer_operation_category",
    "parse_address",
]
