# File: tests/conftest.py
from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Union

import pytest
from aiohttp import ClientError

from carrier_scout.config import ScraperConfig
from carrier_scout.fetcher import FetchExhausted
from carrier_scout.parser import build_extractor

SNAPSHOT_TEMPLATE = "https://safer.example/query.asp?query_string={identifier}"
TODAY = date(2024, 6, 1)

SMS_URL = "https://ai.example/SMS/Carrier/1234567/CarrierOverview.aspx"
REGISTRATION_URL = "https://ai.example/SMS/Carrier/1234567/CarrierRegistration.aspx"


def days_ago(days: int) -> str:
    """Form date *days* before :data:`TODAY` in the MM/DD/YYYY layout of snapshot pages."""
    return (TODAY - timedelta(days=days)).strftime("%m/%d/%Y")


def _row(label: str, value: str) -> str:
    return (
        '<tr><th scope="row" class="querylabelbkg">'
        f'<a class="querylabel" href="saferhelp.aspx#{label}">{label}</a></th>\n'
        f'  <td class="queryfield" valign="top" colspan="3">{value}</td></tr>\n'
    )


def _section(label: str, items: Dict[str, bool]) -> str:
    cells = "".join(
        f'<tr><td class="queryfield" width="5%">{"X" if marked else "&nbsp;"}</td>'
        f'<td><font style="font-size:80%">{name}</font></td></tr>\n'
        for name, marked in items.items()
    )
    return (
        f'<tr><td class="queryfield" colspan="4"><a class="querylabel" href="saferhelp.aspx#sec">{label}</a></td></tr>\n'
        f'<tr><td colspan="4"><table border="0">\n{cells}</table></td></tr>\n'
    )


def make_snapshot(
    *,
    authority: str = "AUTHORIZED FOR Property",
    form_date: str = "01/15/2020",
    power_units: str = "5",
    drivers: str = "3",
    legal_name: str = "ACME TRUCKING LLC",
    sms_href: str | None = SMS_URL,
    banner: str = "",
) -> str:
    """Snapshot page shaped like the public SAFER company snapshot."""
    sms_link = f'<a href="{sms_href}">SMS Results</a>' if sms_href else ""
    return (
        "<html><head><title>SAFER Web - Company Snapshot</title></head><body>\n"
        f"{banner}\n"
        '<table border="1" cellpadding="4">\n'
        + _row("Entity Type:", "CARRIER&nbsp;")
        + _row("USDOT Status:", "ACTIVE")
        + _row(
            "Operating Authority Status:",
            f'{authority}<br><a href="https://li.example/">For Licensing &amp; Insurance details click here.</a>',
        )
        + _row("MC/MX/FF Number(s):", '<a href="https://li.example/mc">MC-123456</a>')
        + _row("MCS-150 Form Date:", form_date)
        + _row("Legal Name:", legal_name)
        + _row("DBA Name:", "&nbsp;")
        + _row("Physical Address:", "123 MAIN ST<br>SPRINGFIELD, IL &nbsp; 62701")
        + _row("Phone:", "(555) 123-4567")
        + _row("Mailing Address:", "PO BOX 9<br>PEORIA, IL 61601-0009")
        + _row("USDOT Number:", "1234567")
        + '<tr><th class="querylabelbkg"><a class="querylabel" href="#pu">Power Units:</a></th>'
        f'<td class="queryfield">{power_units}</td>'
        '<th class="querylabelbkg"><a class="querylabel" href="#dr">Drivers:</a></th>'
        f'<td class="queryfield">{drivers}</td></tr>\n'
        + _section(
            "Operation Classification:",
            {"Auth. For Hire": True, "Exempt For Hire": False, "Private(Property)": False},
        )
        + _section("Carrier Operation:", {"Interstate": True, "Intrastate Only (HM)": False})
        + _section(
            "Cargo Carried:",
            {"General Freight": True, "Household Goods": True, "Passengers": False},
        )
        + "</table>\n"
        f"{sms_link}\n"
        "</body></html>"
    )


SMS_PAGE = (
    "<html><body><h1>Carrier Overview</h1>"
    '<a href="CarrierRegistration.aspx">Carrier Registration Details</a></body></html>'
)
REGISTRATION_PAGE = (
    "<html><body><ul><li>Phone: (555) 123-4567</li>"
    "<li>Email Address: DISPATCH@ACME-TRUCKING.COM</li></ul></body></html>"
)


class FakeFetcher:
    """In-memory page source: a missing URL or a stored exception is raised as a failure."""

    def __init__(self, pages: Dict[str, Union[str, BaseException]]) -> None:
        self.pages = pages
        self.calls: List[str] = []

    async def fetch(self, url: str, label: str = "fetch") -> str:
        self.calls.append(url)
        value = self.pages.get(url)
        if value is None:
            raise FetchExhausted(url, 1, ClientError("HTTP 404"))
        if isinstance(value, BaseException):
            raise value
        return value


class SleepRecorder:
    """Drop-in for ``asyncio.sleep`` that only records the requested delays."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture()
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture(params=["regex", "soup"])
def extractor(request):
    """Every extraction test runs against both strategies."""
    return build_extractor(request.param)


@pytest.fixture()
def snapshot_page() -> str:
    return make_snapshot()


@pytest.fixture()
def basic_config(tmp_path) -> ScraperConfig:
    return ScraperConfig(
        snapshot_url=SNAPSHOT_TEMPLATE,
        concurrency=2,
        delay_ms=50,
        fetch_timeout_ms=2000,
        max_attempts=2,
        backoff_base_ms=0,
        politeness_delay_ms=0,
        output_dir=tmp_path / "output",
    )
