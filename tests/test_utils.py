# File: tests/test_utils.py
import pytest

from carrier_scout.config import DEFAULT_SNAPSHOT_URL
from carrier_scout.utils import (
    discover_input,
    normalize_identifier,
    read_identifiers,
    snapshot_url,
)


def test_discover_prefers_batch_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "mc_list.txt").write_text("MC-1\n", encoding="utf-8")
    (tmp_path / "batch.txt").write_text("MC-2\n", encoding="utf-8")

    assert discover_input().name == "batch.txt"


def test_discover_falls_back_to_mc_list(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "mc_list.txt").write_text("MC-1\n", encoding="utf-8")

    assert discover_input().name == "mc_list.txt"


def test_discover_explicit_path(tmp_path):
    ids = tmp_path / "ids.txt"
    ids.write_text("MC-1\n", encoding="utf-8")

    assert discover_input(ids) == ids


@pytest.mark.parametrize("explicit", [None, "missing.txt"])
def test_discover_missing_raises(tmp_path, monkeypatch, explicit):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        discover_input(explicit)


def test_read_identifiers_skips_blank_lines(tmp_path):
    ids = tmp_path / "ids.txt"
    ids.write_text("MC-1\n\n   \n  MC-2  \r\nMC-3", encoding="utf-8")

    assert read_identifiers(ids) == ["MC-1", "MC-2", "MC-3"]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("MC-123", "MC-123"),
        (" MC 123\t", "MC123"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_identifier(raw, expected):
    assert normalize_identifier(raw) == expected


def test_snapshot_url_encodes_identifier():
    url = snapshot_url("https://safer.example/q?s={identifier}", " MC 12/3&x ")
    assert url == "https://safer.example/q?s=MC12%2F3%26x"


def test_snapshot_url_default_template():
    url = snapshot_url(DEFAULT_SNAPSHOT_URL, "MC-1")
    assert "MC-1" in url
    assert "{identifier}" not in url
