"""
Daily case estimates of a single variant.
"""
from typing import Optional

import numpy as np
import pandas as pd

from variantdynamics.config import Analysis, Columns, Lineages
from variantdynamics.utils.helper import clean_names, remove_empty
from variantdynamics.utils.lineages import frequency_series

ESTIMATED_CASES = "estimated_variant_cases"
VARIANT_FREQUENCY = "variant_frequency"
WEEK = "week"


def clean_daily_cases(
    raw: pd.DataFrame,
    average_col: str = Analysis.AVERAGE_CASE_COLUMN,
    window: int = 7,
) -> pd.DataFrame:
    """
    Standardises a daily case table to the columns date, cases and the
    7-day average `average_col`.

    If the table has no precomputed average it is derived as the trailing
    `window` day mean of cases (missing for the first window - 1 days).
    """
    df = remove_empty(clean_names(raw))

    if Columns.CASE_DATE not in df.columns:
        raise KeyError(f"Daily case table requires a '{Columns.CASE_DATE}' column.")
    case_col = next((c for c in Columns.CASE_ALIASES if c in df.columns), None)
    if case_col is None and average_col not in df.columns:
        raise KeyError(f"None of the case columns {Columns.CASE_ALIASES} found.")

    df = df.assign(
        **{Columns.CASE_DATE: lambda df: pd.to_datetime(df[Columns.CASE_DATE])}
    ).sort_values(Columns.CASE_DATE)

    if case_col is not None:
        df = df.rename(columns={case_col: Analysis.CASE_COLUMN})

    if average_col not in df.columns:
        df[average_col] = (
            df[Analysis.CASE_COLUMN].rolling(window, min_periods=window).mean()
        )

    columns = [Columns.CASE_DATE]
    if Analysis.CASE_COLUMN in df.columns:
        columns.append(Analysis.CASE_COLUMN)
    columns.append(average_col)
    return df[columns].reset_index(drop=True)


def estimate_variant_cases(
    daily_cases: pd.DataFrame,
    variant_frequencies: pd.DataFrame,
    variant: str = Lineages.DELTA,
    case_col: str = Analysis.AVERAGE_CASE_COLUMN,
    start_date: Optional[str] = Analysis.CASES_START_DATE,
    group_col: str = Columns.LINEAGE,
    date_col: str = Columns.DATE,
) -> pd.DataFrame:
    """
    Estimates daily cases of a variant from daily case counts and the
    (weekly) frequency of the variant.

    Each day is matched to the frequency of the most recent week on or
    before that day. Days before the first week with a frequency are
    dropped.

    :param daily_cases: table with a date column and `case_col`
    :param variant_frequencies: frequency table (see lineage_frequencies)
    :param variant: the focal variant
    :param case_col: the daily case column to scale, defaults to the 7-day
        average
    :param start_date: drop days before this date, None to keep all
    :returns: dataframe with the columns date, case_col, week,
        variant_frequency and estimated_variant_cases (rounded, Int64)
    :raises ValueError: if there are no frequencies for variant
    """
    weekly = frequency_series(
        variant_frequencies, variant, group_col=group_col, date_col=date_col
    )
    if weekly.shape[0] == 0 or variant not in set(variant_frequencies[group_col]):
        raise ValueError(f"No frequencies available for variant {variant}.")

    weekly = pd.DataFrame(
        {
            WEEK: pd.DatetimeIndex(weekly.index).astype("datetime64[ns]"),
            VARIANT_FREQUENCY: weekly.to_numpy(dtype=float),
        }
    ).sort_values(WEEK)

    daily = daily_cases[[Columns.CASE_DATE, case_col]].copy()
    daily[Columns.CASE_DATE] = pd.to_datetime(daily[Columns.CASE_DATE]).astype(
        "datetime64[ns]"
    )
    if start_date is not None:
        daily = daily[daily[Columns.CASE_DATE] >= pd.Timestamp(start_date)]
    daily = daily.sort_values(Columns.CASE_DATE)

    matched = pd.merge_asof(
        daily,
        weekly,
        left_on=Columns.CASE_DATE,
        right_on=WEEK,
        direction="backward",
    )
    matched = matched.dropna(subset=[WEEK]).reset_index(drop=True)

    cases = matched[case_col].astype(float)
    matched[ESTIMATED_CASES] = np.round(cases * matched[VARIANT_FREQUENCY]).astype(
        "Int64"
    )
    return matched


def incidence_series(estimates: pd.DataFrame) -> pd.Series:
    """Estimated variant cases as a date indexed series."""
    return estimates.set_index(Columns.CASE_DATE)[ESTIMATED_CASES].rename("I")
