import numpy as np
import pandas as pd
import pytest

from variantdynamics.incidence import (
    clean_daily_cases,
    estimate_variant_cases,
    incidence_series,
)


@pytest.fixture
def weekly_delta():
    return pd.DataFrame(
        {
            "collection_date": pd.to_datetime(
                ["2021-01-01", "2021-01-01", "2021-01-08", "2021-01-08"]
            ),
            "lineage": ["B.1.617.2", "Other", "B.1.617.2", "Other"],
            "lineage_frequency": [0.1, 0.9, 0.3, 0.7],
        }
    )


@pytest.fixture
def flat_cases():
    return pd.DataFrame(
        {
            "date": pd.date_range("2020-12-28", "2021-01-10"),
            "cases_sevendayaveraged": 100.0,
        }
    )


def test_estimate_variant_cases(weekly_delta, flat_cases):
    estimates = estimate_variant_cases(flat_cases, weekly_delta, start_date=None)
    estimates = estimates.set_index("date")

    assert estimates.loc["2021-01-05", "estimated_variant_cases"] == 10
    assert estimates.loc["2021-01-10", "estimated_variant_cases"] == 30
    assert estimates.loc["2021-01-08", "week"] == pd.Timestamp("2021-01-08")
    assert estimates.loc["2021-01-07", "variant_frequency"] == 0.1


def test_days_before_first_week_are_dropped(weekly_delta, flat_cases):
    estimates = estimate_variant_cases(flat_cases, weekly_delta, start_date=None)

    assert estimates.date.min() == pd.Timestamp("2021-01-01")
    assert estimates.shape[0] == 10
    assert str(estimates.estimated_variant_cases.dtype) == "Int64"


def test_start_date(weekly_delta, flat_cases):
    estimates = estimate_variant_cases(
        flat_cases, weekly_delta, start_date="2021-01-04"
    )
    assert estimates.date.min() == pd.Timestamp("2021-01-04")
    assert estimates.shape[0] == 7


def test_missing_variant(weekly_delta, flat_cases):
    with pytest.raises(ValueError):
        estimate_variant_cases(flat_cases, weekly_delta, variant="BA.1")


def test_unobserved_week_counts_as_zero(flat_cases):
    freq = pd.DataFrame(
        {
            "collection_date": pd.to_datetime(["2021-01-01", "2021-01-08"]),
            "lineage": ["B.1.617.2", "Other"],
            "lineage_frequency": [0.5, 1.0],
        }
    )
    estimates = estimate_variant_cases(flat_cases, freq, start_date=None)
    assert estimates.estimated_variant_cases.tolist() == [50] * 7 + [0] * 3


def test_incidence_series(weekly_delta, flat_cases):
    series = incidence_series(
        estimate_variant_cases(flat_cases, weekly_delta, start_date=None)
    )

    assert isinstance(series.index, pd.DatetimeIndex)
    assert series.tolist() == [10] * 7 + [30] * 3


def test_clean_daily_cases_rolling_average():
    raw = pd.DataFrame(
        {
            "date": pd.date_range("2021-01-01", periods=10).strftime("%Y-%m-%d"),
            "newCasesBySpecimenDate": np.arange(1, 11),
        }
    )
    cases = clean_daily_cases(raw)

    assert cases.columns.tolist() == ["date", "cases", "cases_sevendayaveraged"]
    assert cases.cases_sevendayaveraged.isna().sum() == 6
    assert cases.cases_sevendayaveraged.iloc[6] == 4.0
    assert cases.cases_sevendayaveraged.iloc[9] == 7.0


def test_clean_daily_cases_keeps_average():
    raw = pd.DataFrame(
        {
            "date": ["2021-01-02", "2021-01-01"],
            "cases": [20, 10],
            "cases_sevendayaveraged": [15.0, 12.0],
        }
    )
    cases = clean_daily_cases(raw)

    assert cases.date.tolist() == [
        pd.Timestamp("2021-01-01"),
        pd.Timestamp("2021-01-02"),
    ]
    assert cases.cases_sevendayaveraged.tolist() == [12.0, 15.0]


def test_clean_daily_cases_requires_columns():
    with pytest.raises(KeyError):
        clean_daily_cases(pd.DataFrame({"day": ["2021-01-01"], "cases": [1]}))

    with pytest.raises(KeyError):
        clean_daily_cases(pd.DataFrame({"date": ["2021-01-01"], "tests": [1]}))
