from typing import Optional

import numpy as np
import pandas as pd
import scipy.stats as stats

from variantdynamics.config import Analysis

from .helper import time_to_str


class IncidenceError(ValueError):
    """The incidence series cannot be used for Rt estimation."""


class IncidenceGapError(IncidenceError):
    """Dates are missing in the daily incidence series."""


class IncidenceValueError(IncidenceError):
    """Incidence values are missing, negative or not integers."""


class InsufficientIncidenceError(IncidenceError):
    """The incidence series is too short to form a single window."""


def gamma_prior(mean_prior: float, std_prior: float):
    """Shape and scale of a gamma distribution with given mean and std."""
    shape = (mean_prior / std_prior) ** 2
    scale = std_prior ** 2 / mean_prior
    return shape, scale


def epiestim_R(
    cases: np.ndarray,
    mu: float,
    sigma: Optional[float] = None,
    cv: Optional[float] = None,
    a: float = 1,
    b: float = 5,
    tau: int = Analysis.RT_WINDOW,
    q_lower: float = Analysis.Q_LOWER,
    q_upper: float = Analysis.Q_UPPER,
):
    """
    Calculates the R value as described in Anne Cori et. al. 2013.

    Windows follow the EpiEstim defaults: every window covers tau
    consecutive days and windows slide by one day, starting at the second
    day of the series (t_start = 2, ..., T - tau + 1 counting from 1).

    :param cases: Array with daily number of cases.
    :param mu: Mean of the serial interval distribution.
    :param sigma: Standard deviation of the serial interval distribution,
        defaults to None.
    :param cv: Coefficient of variation of the serial interval distribution,
        defaults to None. Either sigma OR cv must be specified.
    :param a: Prior shape of the gamma distribution of R.
    :param b: Prior scale of the gamma distribution of R.
    :param tau: Window length in days.
    :param q_lower: Lower quantile of the returned R value.
    :param q_upper: Upper quantile of the returned R value.
    :returns: A dict of arrays (one entry per window) with the keys t_start,
        t_end (1-based day indices), mean, std, median, lower and upper.
    """
    assert ((sigma is not None) and (cv is None)) or (
        (sigma is None) and (cv is not None)
    ), "Either sigma OR cv must be defined."

    if cv is not None:
        sigma = cv * mu

    cases = np.asarray(cases, dtype=float)
    T = cases.shape[0]
    if T < tau + 1:
        raise InsufficientIncidenceError(
            f"At least {tau + 1} days of incidence are required, got {T}."
        )

    p = np.array(
        [
            epiestim_discretise_serial_interval(i, mu, sigma=sigma, cv=None)
            for i in range(T)
        ]
    )
    # total infectiousness, p[0] is zero so day t only depends on days < t
    infectivity = np.convolve(cases, p, "full")[:T]

    # windows start on the second day
    incidence_sum = np.convolve(cases[1:], np.ones(tau), "valid")
    infectivity_sum = np.convolve(infectivity[1:], np.ones(tau), "valid")

    a_posterior = a + incidence_sum
    b_posterior = 1 / (1 / b + infectivity_sum)

    d = stats.gamma(a=a_posterior, scale=b_posterior)
    t_start = np.arange(2, T - tau + 2)

    return {
        "t_start": t_start,
        "t_end": t_start + tau - 1,
        "mean": a_posterior * b_posterior,
        "std": np.sqrt(a_posterior) * b_posterior,
        "median": d.ppf(0.5),
        "lower": d.ppf(q_lower),
        "upper": d.ppf(q_upper),
    }


def epiestim_discretise_serial_interval(
    k: int, mu: float = 6.3, sigma: Optional[float] = None, cv: Optional[float] = 0.62
):
    """
    Discretises a gamma distribution according to Cori et al. 2013.


    :param k: Day of the serial interval (k >= 0).
    :param mu: Mean of the serial interval distribution.
    :param sigma: Standard deviation of the serial interval distribution,
        defaults to None.
    :param cv: Coefficient of variation of the serial interval distribution,
        defaults to None. Either sigma OR cv must be specified.
    :returns: Discretised serial interval distribution.
    """
    assert ((sigma is not None) and (cv is None)) or (
        (sigma is None) and (cv is not None)
    ), "Either sigma OR cv must be defined."
    assert mu > 1, "The mean of the serial interval must be larger than 1."

    if cv is not None:
        sigma = cv * mu

    a = ((mu - 1) / sigma) ** 2
    b = sigma ** 2 / (mu - 1)

    cdf_gamma = stats.gamma(a=a, scale=b).cdf
    cdf_gamma2 = stats.gamma(a=a + 1, scale=b).cdf

    res = k * cdf_gamma(k) + (k - 2) * cdf_gamma(k - 2) - 2 * (k - 1) * cdf_gamma(k - 1)
    res = res + a * b * (2 * cdf_gamma2(k - 1) - cdf_gamma2(k - 2) - cdf_gamma2(k))

    return max(res, 0)


def validate_incidence(
    incidence: pd.Series, start_date=None, end_date=None
) -> pd.Series:
    """
    Restricts a date indexed incidence series to [start_date, end_date] and
    checks that it is a contiguous daily series of non-negative integers.

    :raises IncidenceGapError: if a day between start_date and end_date
        (defaults to the first and last date of the series) is missing
    :raises IncidenceValueError: for duplicated dates, missing, negative or
        non-integer values
    :raises InsufficientIncidenceError: if no data falls into the range
    """
    series = incidence.copy()
    series.index = pd.DatetimeIndex(pd.to_datetime(series.index))
    series = series.sort_index()

    if series.index.has_duplicates:
        raise IncidenceValueError("The incidence series contains duplicated dates.")

    start = series.index.min() if start_date is None else pd.Timestamp(start_date)
    end = series.index.max() if end_date is None else pd.Timestamp(end_date)
    series = series[(series.index >= start) & (series.index <= end)]

    if series.shape[0] == 0:
        raise InsufficientIncidenceError(
            f"No incidence data between {time_to_str(start)} "
            f"and {time_to_str(end)}."
        )

    missing = pd.date_range(start, end, freq="D").difference(series.index)
    if len(missing) > 0:
        dates = ", ".join(time_to_str(d) for d in missing[:5])
        raise IncidenceGapError(
            f"{len(missing)} day(s) missing in the incidence series, e.g. {dates}."
        )

    values = pd.to_numeric(series, errors="coerce").to_numpy(
        dtype=float, na_value=np.nan
    )
    if np.any(np.isnan(values)):
        raise IncidenceValueError("The incidence series contains missing values.")
    if np.any(values < 0):
        raise IncidenceValueError("Incidence values must be non-negative.")
    if np.any(values != np.round(values)):
        raise IncidenceValueError("Incidence values must be integers.")

    return pd.Series(values.astype(int), index=series.index, name=incidence.name)


def estimate_rt(
    incidence: pd.Series,
    start_date=Analysis.RT_START_DATE,
    end_date=Analysis.RT_END_DATE,
    mean_si: float = Analysis.MEAN_SI,
    std_si: float = Analysis.STD_SI,
    window: int = Analysis.RT_WINDOW,
    mean_prior: float = Analysis.MEAN_PRIOR,
    std_prior: float = Analysis.STD_PRIOR,
    q_lower: float = Analysis.Q_LOWER,
    q_upper: float = Analysis.Q_UPPER,
) -> pd.DataFrame:
    """
    Estimates the time-varying reproduction number from daily incidence
    with a parametric (gamma) serial interval.

    :param incidence: daily case counts indexed by date
    :param start_date: first day of the analysis window, None for the first
        day of the series
    :param end_date: last day of the analysis window, None for the last day
        of the series
    :param mean_si: mean of the serial interval in days
    :param std_si: standard deviation of the serial interval in days
    :param window: length of the sliding estimation windows in days
    :returns: dataframe with one row per window and the columns t_start,
        t_end, window_start, window_end, mean_r, std_r, median_r, lower and
        upper
    """
    series = validate_incidence(incidence, start_date, end_date)
    a, b = gamma_prior(mean_prior, std_prior)

    res = epiestim_R(
        series.to_numpy(),
        mean_si,
        sigma=std_si,
        a=a,
        b=b,
        tau=window,
        q_lower=q_lower,
        q_upper=q_upper,
    )
    dates = series.index

    return pd.DataFrame(
        {
            "t_start": res["t_start"],
            "t_end": res["t_end"],
            "window_start": dates[res["t_start"] - 1],
            "window_end": dates[res["t_end"] - 1],
            "mean_r": res["mean"],
            "std_r": res["std"],
            "median_r": res["median"],
            "lower": res["lower"],
            "upper": res["upper"],
        }
    )
