"""Free-text US address decomposition."""
from __future__ import annotations

import re
from typing import NamedTuple, Optional

__all__ = ("Address", "parse_address")

_CITY_STATE_ZIP_RE = re.compile(r"([^,]+),\s*([A-Z]{2})\s*,?\s*(\d{5}(?:-\d{4})?)")


class Address(NamedTuple):
    city: str = ""
    state: str = ""
    zip: str = ""


def parse_address(text: Optional[str]) -> Address:
    """Split ``"<street>, <city>, <ST> <zip>"`` into its city, state and zip parts.

    Falls back to the last two comma-separated segments (no zip) when the pattern
    does not match.
    """
    if not text:
        return Address()
    match = _CITY_STATE_ZIP_RE.search(text)
    if match:
        return Address(match.group(1).strip(), match.group(2), match.group(3))
    parts = text.split(",")
    if len(parts) >= 2:
        state_tokens = parts[-1].split()
        return Address(parts[-2].strip(), state_tokens[0] if state_tokens else "")
    return Address()
