"""
Data models for the CarrierScout pipeline.
"""
from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class RejectReason(str, Enum):
    """Why an identifier did not produce a row."""

    NOT_FOUND = "not-found"
    NOT_AUTHORIZED = "not-authorized"
    TOO_NEW = "too-new"
    INSUFFICIENT_FLEET = "insufficient-fleet"
    INSUFFICIENT_DRIVERS = "insufficient-drivers"
    FETCH_FAILURE = "fetch-failure"
    MISSING_REGISTRATION_DATE = "missing-registration-date"
    UNEXPECTED_ERROR = "unexpected-error"


@dataclass(slots=True, frozen=True)
class CarrierRecord:
    """Normalized snapshot of one eligible carrier."""

    identifier: str
    source_url: str
    mc_number: str = ""
    usdot_number: str = ""
    legal_name: str = ""
    dba_name: str = ""
    entity_type: str = ""
    usdot_status: str = ""
    authority_status: str = ""
    status: str = ""
    authority_type: str = ""
    form_date: str = ""
    power_units: str = ""
    drivers: str = ""
    physical_address: str = ""
    physical_city: str = ""
    physical_state: str = ""
    physical_zip: str = ""
    mailing_address: str = ""
    mailing_city: str = ""
    mailing_state: str = ""
    mailing_zip: str = ""
    phone: str = ""
    email: str = ""
    operation_category: str = ""
    operation_classification: Tuple[str, ...] = ()
    carrier_operation: Tuple[str, ...] = ()
    cargo_carried: Tuple[str, ...] = ()

    def as_row(self) -> Dict[str, str]:
        """Flatten into ``{csv header: text}``; multi-value fields are joined with ``", "``."""
        row: Dict[str, str] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = ", ".join(value)
            row[CSV_HEADERS[f.name]] = value
        return row


#: attribute name -> CSV column, in column order
CSV_HEADERS: Dict[str, str] = {
    "identifier": "Identifier",
    "source_url": "Source_URL",
    "mc_number": "MC_Number",
    "usdot_number": "USDOT_Number",
    "legal_name": "Legal_Name",
    "dba_name": "DBA_Name",
    "entity_type": "Entity_Type",
    "usdot_status": "USDOT_Status",
    "authority_status": "Authority_Status",
    "status": "Status",
    "authority_type": "Authority_Type",
    "form_date": "MCS150_Form_Date",
    "power_units": "Power_Units",
    "drivers": "Drivers",
    "physical_address": "Physical_Address",
    "physical_city": "City",
    "physical_state": "State",
    "physical_zip": "Zip",
    "mailing_address": "Mailing_Address",
    "mailing_city": "Mailing_City",
    "mailing_state": "Mailing_State",
    "mailing_zip": "Mailing_Zip",
    "phone": "Phone",
    "email": "Email",
    "operation_category": "Operation_Category",
    "operation_classification": "Operation_Classification",
    "carrier_operation": "Operation_Type",
    "cargo_carried": "Cargo_Carried",
}


@dataclass(slots=True, frozen=True)
class Rejection:
    """First failing eligibility stage and a short human-readable detail."""

    reason: RejectReason
    detail: str = ""


@dataclass(slots=True, frozen=True)
class Accepted:
    identifier: str
    url: str
    record: Optional[CarrierRecord] = None


@dataclass(slots=True, frozen=True)
class Rejected:
    identifier: str
    url: str
    reason: RejectReason
    detail: str = ""


Verdict = Union[Accepted, Rejected]


@dataclass(slots=True)
class BatchResult:
    """Accumulator for one run. ``add`` is the only mutation point."""

    records: List[CarrierRecord] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)
    rejections: Counter = field(default_factory=Counter)
    processed: int = 0
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    async def add(self, verdict: Verdict) -> None:
        async with self._lock:
            self.processed += 1
            if isinstance(verdict, Accepted):
                self.urls.append(verdict.url)
                if verdict.record is not None:
                    self.records.append(verdict.record)
            else:
                self.rejections[verdict.reason] += 1

    @property
    def accepted(self) -> int:
        return len(self.urls)
