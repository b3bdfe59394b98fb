import re

import numpy as np
import pandas as pd


def time_to_str(date):
    """
    Formats a date for log and error messages.

    :param date: pd.Timestamp, datetime or ISO date string
    :returns: the date as YYYY-MM-DD
    """
    return pd.Timestamp(date).strftime("%Y-%m-%d")


def days_since(dates, origin=None) -> np.ndarray:
    """
    Number of elapsed days of each date since origin.

    :param dates: sequence of dates
    :param origin: reference date, defaults to the earliest date
    :returns: float array of elapsed days
    """
    dates = pd.DatetimeIndex(pd.to_datetime(dates))
    origin = dates.min() if origin is None else pd.Timestamp(origin)
    return ((dates - origin) / pd.Timedelta(days=1)).to_numpy(dtype=float)


def snake_case(name: str) -> str:
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", str(name).strip())
    name = re.sub(r"[^0-9a-zA-Z]+", "_", name)
    return name.strip("_").lower()


def clean_names(df: pd.DataFrame) -> pd.DataFrame:
    """Converts all column names to snake_case (e.g. WeekEndDate -> week_end_date)."""
    return df.rename(columns={c: snake_case(c) for c in df.columns})


def remove_empty(df: pd.DataFrame) -> pd.DataFrame:
    """Drops rows and columns that only contain missing values."""
    return df.dropna(axis=0, how="all").dropna(axis=1, how="all")
