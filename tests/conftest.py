# tests/conftest.py
import os

import matplotlib
import numpy as np
import pandas as pd
import pyreadr
import pytest

from variantdynamics.data import get_aliases
from variantdynamics.growth import logistic_growth
from variantdynamics.pipeline import PipelineConfig

matplotlib.use("Agg")


@pytest.fixture
def rootdir():
    return os.path.dirname(os.path.abspath(__file__))


@pytest.fixture(scope="module")
def aliases():
    return get_aliases()


@pytest.fixture
def lineage_list():
    return [
        "B.1.177",
        "B.1.258",
        "B.1.258.3",
        "B.1.36.17",
        "B.1.1",
        "B",
        "B.1.1.305",
        "B.1.1.277",
        "B.1.235",
        "B.1.1.141",
        "B.1.36.16",
        "B.1.505",
        "B.1.1.25",
        "B.1.1.235",
        "B.1.2",
        "B.1.1.255",
        "B.1.1.51",
        "B.1.149",
        "B.1.1.286",
        "B.1.1.189",
        "B.1.1.288",
        "B.1.1.54",
        "B.1.36",
        "B.1.1.227",
        "A.18",
        "B.1.1.39",
        "A.25",
        "B.1.1.50",
        "B.1.416.1",
        "Other",
    ]


@pytest.fixture
def growth_series():
    dates = pd.date_range("2021-01-01", periods=9, freq="D")
    return pd.Series([0, 0, 0.01, 0.05, 0.2, 0.5, 0.9, 0.99, 0.99], index=dates)


@pytest.fixture(scope="module")
def weekly_counts():
    """Sanger style weekly counts, Delta (B.1.617.2 and AY.4) replacing Alpha."""
    weeks = pd.date_range("2021-03-01", periods=40, freq="7D")
    t = (weeks - weeks[0]).days.to_numpy()
    delta = np.round(1000 * logistic_growth(t, 0.1, 0.01)).astype(int)
    rows = []
    for week, d in zip(weeks, delta):
        ay = d // 2
        rows += [
            (week.strftime("%Y-%m-%d"), "B.1.617.2", d - ay),
            (week.strftime("%Y-%m-%d"), "AY.4", ay),
            (week.strftime("%Y-%m-%d"), "B.1.1.7", 1000 - d),
            (week.strftime("%Y-%m-%d"), "B.1.177", 10),
        ]
    return pd.DataFrame(rows, columns=["WeekEndDate", "Lineage", "Count"])


@pytest.fixture(scope="module")
def daily_counts():
    """Daily counts of BA.1 and BA.2 (partly reported as BA.2.3)."""
    dates = pd.date_range("2021-12-01", periods=120, freq="D")
    t = (dates - dates[0]).days.to_numpy()
    ba2 = np.round(100 * logistic_growth(t, 0.12, 0.005)).astype(int)
    rows = []
    for date, b in zip(dates, ba2):
        rows += [
            (date.strftime("%Y-%m-%d"), "BA.1", 100 - b),
            (date.strftime("%Y-%m-%d"), "BA.2", b - b // 3),
            (date.strftime("%Y-%m-%d"), "BA.2.3", b // 3),
        ]
    return pd.DataFrame(rows, columns=["date", "lineage", "count"])


@pytest.fixture(scope="module")
def regional_records():
    """Per sample Delta detection records, 50 samples per region and week."""
    weeks = pd.date_range("2021-03-01", periods=20, freq="7D")
    rows = []
    for region, s in [("London", 0.12), ("North West", 0.09)]:
        for week in weeks:
            f = logistic_growth((week - weeks[0]).days, s, 0.02)
            detected = int(round(50 * f))
            for i in range(50):
                date = week + pd.Timedelta(days=i % 7)
                rows.append((region, date.strftime("%Y-%m-%d"), i < detected))
    return pd.DataFrame(rows, columns=["phecname", "date", "is_delta"])


@pytest.fixture(scope="module")
def daily_cases():
    dates = pd.date_range("2021-02-01", "2021-12-31", freq="D")
    t = np.arange(dates.shape[0])
    cases = np.round(20000 + 5000 * np.sin(t / 30)).astype(int)
    return pd.DataFrame({"date": dates.strftime("%Y-%m-%d"), "cases": cases})


@pytest.fixture
def input_files(tmp_path, weekly_counts, daily_counts, regional_records, daily_cases):
    files = {
        "weekly_lineages": str(tmp_path / "weekly.tsv"),
        "daily_lineages": str(tmp_path / "daily.csv"),
        "regional_delta": str(tmp_path / "regional.rds"),
        "daily_cases": str(tmp_path / "cases.csv"),
    }
    weekly_counts.to_csv(files["weekly_lineages"], sep="\t", index=False)
    daily_counts.to_csv(files["daily_lineages"], index=False)
    pyreadr.write_rds(files["regional_delta"], regional_records)
    daily_cases.to_csv(files["daily_cases"], index=False)
    return files


@pytest.fixture
def pipeline_config(tmp_path, input_files):
    return PipelineConfig(
        output_dir=str(tmp_path / "results"),
        rt_start_date="2021-05-01",
        rt_end_date="2021-10-31",
        make_plots=False,
        **input_files,
    )
