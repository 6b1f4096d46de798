# File: tests/test_report.py
import csv
from datetime import datetime

import pytest

from carrier_scout.config import OperatingMode, with_overrides
from carrier_scout.models import CSV_HEADERS, BatchResult, CarrierRecord
from carrier_scout.report import output_paths, render_csv, render_urls, write_result

NOW = datetime(2024, 6, 1, 12, 30, 45)


@pytest.fixture()
def tricky_record() -> CarrierRecord:
    return CarrierRecord(
        identifier="MC-1",
        source_url="https://safer.example/query.asp?a=1&b=2",
        legal_name='ACME "ROADRUNNER" HAULING, LLC',
        dba_name="line one\nline two",
        physical_address="1 MAIN ST, SPRINGFIELD, IL 62701",
        email="ops@acme.example",
        cargo_carried=("General Freight", "Metal: sheets, coils, rolls"),
    )


def test_csv_round_trip(tmp_path, tricky_record):
    path = render_csv([tricky_record], tmp_path / "out" / "rows.csv")

    with path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))

    assert rows == [tricky_record.as_row()]
    assert rows[0]["Legal_Name"] == 'ACME "ROADRUNNER" HAULING, LLC'
    assert rows[0]["Cargo_Carried"] == "General Freight, Metal: sheets, coils, rolls"


def test_csv_quotes_every_field_and_doubles_quotes(tmp_path, tricky_record):
    text = render_csv([tricky_record], tmp_path / "rows.csv").read_text(encoding="utf-8")

    header, first = text.split("\n")[:2]
    assert header == ",".join(f'"{h}"' for h in CSV_HEADERS.values())
    assert '"ACME ""ROADRUNNER"" HAULING, LLC"' in text
    assert first.startswith('"MC-1","https://safer.example/query.asp?a=1&b=2"')


def test_csv_without_records_has_header_only(tmp_path):
    text = render_csv([], tmp_path / "empty.csv").read_text(encoding="utf-8")
    assert text.count("\n") == 1
    assert text.startswith('"Identifier"')


def test_render_urls(tmp_path):
    path = render_urls(["https://a.example/1", "https://a.example/2"], tmp_path / "urls.txt")
    assert path.read_text(encoding="utf-8") == "https://a.example/1\nhttps://a.example/2\n"


def test_output_paths(tmp_path):
    csv_path, urls_path = output_paths(tmp_path, 3, NOW)
    assert csv_path == tmp_path / "carriers_batch_3_2024-06-01T12-30-45.csv"
    assert urls_path == tmp_path / "carriers_batch_3_2024-06-01T12-30-45_urls.txt"


@pytest.mark.parametrize(
    "mode,suffixes",
    [
        (OperatingMode.FULL, [".csv"]),
        (OperatingMode.URLS, [".txt"]),
        (OperatingMode.BOTH, [".csv", ".txt"]),
    ],
)
def test_write_result_per_mode(basic_config, tricky_record, mode, suffixes):
    config = with_overrides(basic_config, mode=mode)
    result = BatchResult(records=[tricky_record], urls=[tricky_record.source_url])

    written = write_result(result, config, NOW)

    assert [p.suffix for p in written] == suffixes
    assert all(p.parent == config.output_dir and p.exists() for p in written)
