"""carrier_scout.pipeline: one identifier in, one verdict out."""
from __future__ import annotations

from typing import Optional

from carrier_scout.config import OperatingMode
from carrier_scout.deep_fetch import DeepFetchResolver
from carrier_scout.eligibility import (
    LABEL_AUTHORITY,
    LABEL_DRIVERS,
    LABEL_FORM_DATE,
    LABEL_POWER_UNITS,
    EligibilityFilter,
)
from carrier_scout.fetcher import FetchExhausted, PageFetcher
from carrier_scout.logger import identifier_context, logger
from carrier_scout.models import Accepted, CarrierRecord, Rejected, RejectReason, Verdict
from carrier_scout.parser import (
    FieldExtractor,
    authority_type,
    extract_mc_number,
    infer_operation_category,
    parse_address,
)
from carrier_scout.utils import snapshot_url

__all__ = ["CarrierPipeline"]


class CarrierPipeline:
    """Fetch → filter → (optionally) extract and deep-fetch, for a single identifier.

    :meth:`process` never raises: every outcome, including network failures, is
    returned as :class:`~carrier_scout.models.Accepted` or
    :class:`~carrier_scout.models.Rejected`.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: FieldExtractor,
        eligibility: EligibilityFilter,
        resolver: Optional[DeepFetchResolver],
        *,
        url_template: str,
        mode: OperatingMode = OperatingMode.FULL,
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor
        self.eligibility = eligibility
        self.resolver = resolver
        self.url_template = url_template
        self.mode = mode

    async def process(self, identifier: str) -> Verdict:
        identifier = identifier.strip()
        url = snapshot_url(self.url_template, identifier)
        try:
            with identifier_context(identifier):
                return await self._process(identifier, url)
        except FetchExhausted as exc:
            logger.warning("Fetch error %s → %s", identifier, exc)
            return Rejected(identifier, url, RejectReason.FETCH_FAILURE, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error while processing %s", identifier)
            return Rejected(identifier, url, RejectReason.UNEXPECTED_ERROR, repr(exc))

    async def _process(self, identifier: str, url: str) -> Verdict:
        page = await self.fetcher.fetch(url, label="snapshot")
        rejection = self.eligibility.evaluate(page)
        if rejection is not None:
            logger.info("SKIPPING (%s: %s) %s", rejection.reason.value, rejection.detail, identifier)
            return Rejected(identifier, url, rejection.reason, rejection.detail)

        if not self.mode.wants_records:
            logger.info("ACCEPTED %s → %s", identifier, url)
            return Accepted(identifier, url)

        record = await self.build_record(identifier, url, page)
        logger.info(
            "SAVED → %s | %s | Cargo: %s",
            record.mc_number or identifier,
            record.legal_name or "(no name)",
            ", ".join(record.cargo_carried) or "N/A",
        )
        return Accepted(identifier, url, record)

    async def build_record(self, identifier: str, url: str, page: str) -> CarrierRecord:
        """Extract every field of an already-accepted snapshot page."""
        def field(label: str) -> str:
            return self.extractor.extract_by_label(page, label)

        usdot_status = field("USDOT Status:")
        authority_status = field(LABEL_AUTHORITY)
        physical_address = field("Physical Address:")
        mailing_address = field("Mailing Address:")
        physical = parse_address(physical_address)
        mailing = parse_address(mailing_address)
        classification = self.extractor.extract_marked_section(page, "Operation Classification:")
        operation = self.extractor.extract_marked_section(page, "Carrier Operation:")
        cargo = self.extractor.extract_marked_section(page, "Cargo Carried:")

        upper_usdot = usdot_status.upper()
        active = "ACTIVE" in upper_usdot and "INACTIVE" not in upper_usdot
        status = "Active" if active and "AUTHORIZED" in authority_status.upper() else "Inactive"

        email = ""
        if self.resolver is not None:
            outcome = await self.resolver.resolve(page, url)
            email = outcome.email or ""

        return CarrierRecord(
            identifier=identifier,
            source_url=url,
            mc_number=extract_mc_number(page),
            usdot_number=field("USDOT Number:"),
            legal_name=field("Legal Name:"),
            dba_name=field("DBA Name:"),
            entity_type=field("Entity Type:"),
            usdot_status=usdot_status,
            authority_status=authority_status,
            status=status,
            authority_type=authority_type(authority_status),
            form_date=field(LABEL_FORM_DATE),
            power_units=field(LABEL_POWER_UNITS),
            drivers=field(LABEL_DRIVERS),
            physical_address=physical_address,
            physical_city=physical.city,
            physical_state=physical.state,
            physical_zip=physical.zip,
            mailing_address=mailing_address,
            mailing_city=mailing.city,
            mailing_state=mailing.state,
            mailing_zip=mailing.zip,
            phone=field("Phone:"),
            email=email,
            operation_category=infer_operation_category(classification + operation, authority_status),
            operation_classification=classification,
            carrier_operation=operation,
            cargo_carried=cargo,
        )
