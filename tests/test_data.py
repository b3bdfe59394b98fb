import pandas as pd
import pytest
import requests

from variantdynamics.data import (
    get_aliases,
    get_daily_cases,
    get_regional_delta,
    get_table,
    get_weekly_lineages,
)
from variantdynamics.data.api import fetch, is_url


class FakeResponse:
    def __init__(self, status_code, content=b""):
        self.status_code = status_code
        self.content = content

    def raise_for_status(self):
        raise requests.HTTPError(f"{self.status_code} Error")


def test_get_aliases():
    aliases = get_aliases()

    assert aliases["AY"] == "B.1.617.2"
    assert aliases["Q"] == "B.1.1.7"
    assert aliases["BA"] == "B.1.1.529"
    assert aliases["EG"] == "XBB.1.9.2"


def test_is_url():
    assert is_url("https://example.org/table.tsv")
    assert is_url("http://example.org/table.tsv")
    assert not is_url("data/raw/table.tsv")


def test_get_weekly_lineages(input_files, weekly_counts):
    df = get_weekly_lineages(input_files["weekly_lineages"])

    assert df.columns.tolist() == ["WeekEndDate", "Lineage", "Count"]
    assert df.shape == weekly_counts.shape


def test_get_table_separator(tmp_path):
    path = tmp_path / "table.txt"
    path.write_text("a;b\n1;2\n")

    df = get_table(str(path), sep=";")
    assert df.columns.tolist() == ["a", "b"]
    assert df.b.tolist() == [2]


def test_get_daily_cases(input_files):
    df = get_daily_cases(input_files["daily_cases"])
    assert df.columns.tolist() == ["date", "cases"]


def test_get_regional_delta(input_files, regional_records):
    df = get_regional_delta(input_files["regional_delta"])

    assert df.shape == regional_records.shape
    assert df.columns.tolist() == ["phecname", "date", "is_delta"]


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_table(str(tmp_path / "missing.csv"))


def test_fetch_url(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(200, b"date,cases\n2021-01-01,10\n")

    monkeypatch.setattr("variantdynamics.data.api.get", fake_get)
    df = get_table("https://example.org/cases.csv")

    assert calls == [("https://example.org/cases.csv", 60)]
    assert df.cases.tolist() == [10]


def test_fetch_url_tsv(monkeypatch):
    monkeypatch.setattr(
        "variantdynamics.data.api.get",
        lambda url, timeout: FakeResponse(200, b"a\tb\n1\t2\n"),
    )
    df = get_table("https://example.org/table.tsv")
    assert df.columns.tolist() == ["a", "b"]


def test_fetch_http_error(monkeypatch):
    monkeypatch.setattr(
        "variantdynamics.data.api.get", lambda url, timeout: FakeResponse(404)
    )

    with pytest.raises(requests.HTTPError):
        fetch("https://example.org/missing.tsv")


def test_rds_from_url(monkeypatch, input_files):
    with open(input_files["regional_delta"], "rb") as f:
        content = f.read()
    monkeypatch.setattr(
        "variantdynamics.data.api.get",
        lambda url, timeout: FakeResponse(200, content),
    )

    df = get_regional_delta("https://example.org/delta.rds")
    assert df.shape[0] == 2000
    assert isinstance(df, pd.DataFrame)
