"""carrier_scout.eligibility: ordered accept/reject rules for a snapshot page."""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

from carrier_scout.models import Rejection, RejectReason
from carrier_scout.parser.extractor import FieldExtractor

__all__ = ["EligibilityFilter", "parse_form_date", "parse_count", "DATE_FORMATS"]

LABEL_AUTHORITY = "Operating Authority Status:"
LABEL_FORM_DATE = "MCS-150 Form Date:"
LABEL_POWER_UNITS = "Power Units:"
LABEL_DRIVERS = "Drivers:"

_COUNT_RE = re.compile(r"[0-9]+")

_MISSING_MARKERS = ("RECORD NOT FOUND", "RECORD INACTIVE")

DATE_FORMATS: Sequence[str] = ("%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d", "%B %d, %Y", "%b %d, %Y")


def parse_form_date(text: str) -> Optional[date]:
    """Parse a registration-form date in any of :data:`DATE_FORMATS`, else None."""
    text = (text or "").strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_count(text: str) -> Optional[int]:
    """``"1,024"`` -> 1024; None unless only ASCII digits remain once commas are removed."""
    digits = (text or "").replace(",", "").strip()
    if not _COUNT_RE.fullmatch(digits):
        return None
    return int(digits)


class EligibilityFilter:
    """Evaluates the predicates in a fixed order; the first failure wins.

    1. the record exists and is not inactive
    2. operating authority is granted
    3. the registration form is at least ``min_age_days`` old
    4. at least one power unit
    5. at least one driver
    """

    def __init__(
        self,
        extractor: FieldExtractor,
        *,
        min_age_days: int = 180,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.extractor = extractor
        self.min_age_days = min_age_days
        self._today = today
        self._checks: List[Callable[[str], Optional[Rejection]]] = [
            self._check_exists,
            self._check_authorized,
            self._check_age,
            self._check_fleet,
            self._check_drivers,
        ]

    def evaluate(self, page: str) -> Optional[Rejection]:
        """None when *page* passes every rule, otherwise the first :class:`Rejection`."""
        for check in self._checks:
            rejection = check(page)
            if rejection is not None:
                return rejection
        return None

    # Predicates ---------------------------------------------------------------

    def _check_exists(self, page: str) -> Optional[Rejection]:
        upper = (page or "").upper()
        for marker in _MISSING_MARKERS:
            if marker in upper:
                return Rejection(RejectReason.NOT_FOUND, marker.title())
        return None

    def _check_authorized(self, page: str) -> Optional[Rejection]:
        status = self.extractor.extract_by_label(page, LABEL_AUTHORITY).upper()
        if "NOT AUTHORIZED" in status or "AUTHORIZED" not in status:
            return Rejection(RejectReason.NOT_AUTHORIZED, status or "N/A")
        return None

    def _check_age(self, page: str) -> Optional[Rejection]:
        raw = self.extractor.extract_by_label(page, LABEL_FORM_DATE)
        form_date = parse_form_date(raw)
        if form_date is None:
            return Rejection(RejectReason.MISSING_REGISTRATION_DATE, raw or "N/A")
        age = abs((self._today() - form_date).days)
        if age < self.min_age_days:
            return Rejection(RejectReason.TOO_NEW, f"{age} days (< {self.min_age_days})")
        return None

    def _check_fleet(self, page: str) -> Optional[Rejection]:
        raw = self.extractor.extract_by_label(page, LABEL_POWER_UNITS)
        count = parse_count(raw)
        if count is None or count < 1:
            return Rejection(RejectReason.INSUFFICIENT_FLEET, f"{raw or 'N/A'} power units")
        return None

    def _check_drivers(self, page: str) -> Optional[Rejection]:
        raw = self.extractor.extract_by_label(page, LABEL_DRIVERS)
        count = parse_count(raw)
        if count is None or count < 1:
            return Rejection(RejectReason.INSUFFICIENT_DRIVERS, f"{raw or 'N/A'} drivers")
        return None
