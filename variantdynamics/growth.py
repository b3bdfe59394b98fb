"""
Growth phases and logistic growth fits of variant frequencies.
"""
import warnings
from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np
import pandas as pd
from scipy.optimize import OptimizeWarning, curve_fit

from variantdynamics.config import Analysis, Columns
from variantdynamics.utils.helper import days_since, time_to_str
from variantdynamics.utils.lineages import frequency_series

PEAK = "peak"
THRESHOLD = "threshold"
NO_ESTIMATE = "no estimate"
NO_GROWTH_PHASE = "no growth phase"


@dataclass(frozen=True)
class GrowthPhase:
    """
    Period of a frequency series that is considered active growth.

    start_date and end_date are None if the series never shows a sustained
    detection.
    """

    group: Optional[str]
    start_date: Optional[pd.Timestamp]
    end_date: Optional[pd.Timestamp]

    @property
    def defined(self) -> bool:
        return self.start_date is not None and self.end_date is not None


@dataclass(frozen=True)
class LogisticFitResult:
    group: Optional[str]
    s: Optional[float]
    f0: Optional[float]
    predictions: pd.DataFrame = field(repr=False)
    converged: bool
    message: str = ""
    num_points: int = 0


def extract_growth_phase(
    series: pd.Series,
    group: Optional[str] = None,
    policy: str = Analysis.END_POLICY,
    threshold: float = Analysis.FIXATION_THRESHOLD,
    min_run: int = Analysis.MIN_RUN,
) -> GrowthPhase:
    """
    Locates the growth phase of a frequency series.

    The phase starts at the first date of the earliest run of `min_run`
    consecutive nonzero frequencies. It ends either at the first date of the
    maximum frequency (policy "peak") or at the first date the frequency
    reaches `threshold` (policy "threshold", falls back to the last date).
    The end is searched from the start date onwards.

    :param series: frequencies indexed by date
    :param group: label of the series, defaults to the series name
    :param policy: "peak" or "threshold"
    :param threshold: fixation threshold for the "threshold" policy
    :param min_run: number of consecutive nonzero observations
    :returns: GrowthPhase, with start_date and end_date None if there is no
        run of nonzero observations
    """
    if policy not in (PEAK, THRESHOLD):
        raise ValueError(f"Unknown end date policy '{policy}'.")

    group = series.name if group is None else group
    series = series.sort_index()
    values = series.fillna(0).to_numpy(dtype=float)
    dates = pd.DatetimeIndex(pd.to_datetime(series.index))

    if values.shape[0] < min_run:
        return GrowthPhase(group, None, None)

    nonzero = (values > 0).astype(int)
    window_sums = np.convolve(nonzero, np.ones(min_run, dtype=int), "valid")
    runs = np.flatnonzero(window_sums == min_run)
    if runs.shape[0] == 0:
        return GrowthPhase(group, None, None)

    start = runs[0]
    if policy == PEAK:
        end = start + int(np.argmax(values[start:]))
    else:
        reached = np.flatnonzero(values[start:] >= threshold)
        end = start + reached[0] if reached.shape[0] > 0 else values.shape[0] - 1

    return GrowthPhase(group, dates[start], dates[end])


def extract_growth_phases(
    freq: pd.DataFrame,
    group_col: str = Columns.LINEAGE,
    date_col: str = Columns.DATE,
    groups: Optional[list] = None,
    fill_missing: bool = True,
    **kwargs,
) -> dict:
    """
    Extracts the growth phase of every group in a frequency table.

    :param fill_missing: see frequency_series, use False for tables whose
        groups have their own totals (e.g. regions)
    """
    if groups is None:
        groups = sorted(freq[group_col].unique())

    return {
        group: extract_growth_phase(
            frequency_series(
                freq,
                group,
                group_col=group_col,
                date_col=date_col,
                fill_missing=fill_missing,
            ),
            group=group,
            **kwargs,
        )
        for group in groups
    }


def growth_phase_table(phases: dict, group_col: str = Columns.LINEAGE) -> pd.DataFrame:
    """One row per group, undefined phases carry the status "no growth phase"."""
    table = pd.DataFrame(
        [
            {
                group_col: group,
                "start_date": phase.start_date,
                "end_date": phase.end_date,
                "status": "ok" if phase.defined else NO_GROWTH_PHASE,
            }
            for group, phase in phases.items()
        ],
        columns=[group_col, "start_date", "end_date", "status"],
    )
    return _as_dates(table)


def _as_dates(table):
    for col in ["start_date", "end_date"]:
        if col in table.columns:
            table[col] = pd.to_datetime(table[col])
    return table


def logistic_growth(t, s, f0):
    """
    Logistic growth of a variant with initial frequency f0 and selective
    advantage s (per day).
    """
    return f0 / (f0 + (1 - f0) * np.exp(-s * t))


def _failed_fit(group, message, num_points=0):
    return LogisticFitResult(
        group=group,
        s=None,
        f0=None,
        predictions=pd.DataFrame(columns=[Columns.DATE, "predicted_frequency"]),
        converged=False,
        message=message,
        num_points=num_points,
    )


def fit_logistic_growth(
    dates,
    frequencies,
    group: Optional[str] = None,
    initial_s: float = Analysis.INITIAL_S,
    max_iter: int = Analysis.MAX_ITER,
) -> LogisticFitResult:
    """
    Fits a logistic growth curve to frequencies by non-linear least squares.

    Time is measured in days since the first date. The fit starts at
    s = initial_s and f0 = the smallest nonzero frequency. A failed fit
    (fewer than two distinct dates, only zero frequencies, no convergence
    within max_iter iterations, or parameters outside their domain) is
    returned with converged=False and s, f0 set to None.

    :param dates: observation dates
    :param frequencies: observed frequencies
    :param group: label of the fitted series
    :param initial_s: initial guess of the growth rate
    :param max_iter: iteration budget of the optimiser
    :returns: LogisticFitResult with daily predictions over the date range
    """
    data = (
        pd.DataFrame(
            {
                Columns.DATE: pd.to_datetime(pd.Series(dates)).to_numpy(),
                Columns.FREQUENCY: np.asarray(frequencies, dtype=float),
            }
        )
        .dropna()
        .sort_values(Columns.DATE)
    )
    num_points = data.shape[0]

    if data[Columns.DATE].nunique() < 2:
        return _failed_fit(group, "fewer than 2 distinct time points", num_points)

    y = data[Columns.FREQUENCY].to_numpy()
    if not np.any(y > 0):
        return _failed_fit(group, "all frequencies are zero", num_points)

    t = days_since(data[Columns.DATE])
    p0 = [initial_s, y[y > 0].min()]

    try:
        with warnings.catch_warnings(), np.errstate(over="ignore", invalid="ignore"):
            warnings.simplefilter("ignore", OptimizeWarning)
            popt, _ = curve_fit(
                logistic_growth, t, y, p0=p0, maxfev=max_iter * (len(p0) + 1)
            )
    except (RuntimeError, ValueError) as error:
        return _failed_fit(group, str(error), num_points)

    s, f0 = (float(p) for p in popt)
    if not (np.isfinite(s) and np.isfinite(f0)):
        return _failed_fit(group, "non-finite parameters", num_points)
    if not 0 < f0 < 1:
        return _failed_fit(group, f"fitted f0={f0:.4g} outside (0, 1)", num_points)

    first = data[Columns.DATE].min()
    smooth_dates = pd.date_range(first, data[Columns.DATE].max(), freq="D")
    predictions = pd.DataFrame(
        {
            Columns.DATE: smooth_dates,
            "predicted_frequency": logistic_growth(
                days_since(smooth_dates, origin=first), s, f0
            ),
        }
    )

    return LogisticFitResult(
        group=group,
        s=s,
        f0=f0,
        predictions=predictions,
        converged=True,
        num_points=num_points,
    )


def fit_growth_phases(
    freq: pd.DataFrame,
    phases: dict,
    group_col: str = Columns.LINEAGE,
    date_col: str = Columns.DATE,
    log_func: Callable = print,
    fill_missing: bool = True,
    **kwargs,
) -> dict:
    """
    Fits a logistic growth curve to every group restricted to its growth
    phase. Groups are fitted independently; failures are reported through
    log_func and kept as failed LogisticFitResult.

    :param freq: frequency table
    :param phases: dictionary of group -> GrowthPhase
    :param fill_missing: see frequency_series
    :returns: dictionary of group -> LogisticFitResult
    """
    fits = {}
    for group, phase in phases.items():
        if not phase.defined:
            log_func(f"No growth phase for {group_col}={group}, skipping fit.")
            fits[group] = _failed_fit(group, NO_GROWTH_PHASE)
            continue

        series = frequency_series(
            freq,
            group,
            group_col=group_col,
            date_col=date_col,
            fill_missing=fill_missing,
        )
        window = series[
            (series.index >= phase.start_date) & (series.index <= phase.end_date)
        ]
        fit = fit_logistic_growth(
            window.index, window.to_numpy(), group=group, **kwargs
        )

        if fit.converged:
            log_func(
                f"Fitted {group_col}={group} "
                f"({time_to_str(phase.start_date)} to {time_to_str(phase.end_date)}): "
                f"s={fit.s:.4f} f0={fit.f0:.4g}"
            )
        else:
            log_func(f"Logistic fit failed for {group_col}={group}: {fit.message}")
        fits[group] = fit

    return fits


def fit_summary_table(
    fits: dict, phases: Optional[dict] = None, group_col: str = Columns.LINEAGE
) -> pd.DataFrame:
    """
    One row per group with the fitted s and f0. Failed fits carry the status
    "no estimate" and empty parameters.
    """
    rows = []
    for group, fit in fits.items():
        row = {group_col: group}
        if phases is not None:
            row["start_date"] = phases[group].start_date
            row["end_date"] = phases[group].end_date
        row.update(
            {
                "s": fit.s,
                "f0": fit.f0,
                "num_points": fit.num_points,
                "status": "ok" if fit.converged else NO_ESTIMATE,
                "message": fit.message,
            }
        )
        rows.append(row)

    columns = [group_col]
    if phases is not None:
        columns += ["start_date", "end_date"]
    columns += ["s", "f0", "num_points", "status", "message"]
    table = pd.DataFrame(rows, columns=columns)
    table[["s", "f0"]] = table[["s", "f0"]].astype(float)
    return _as_dates(table)


def prediction_table(fits: dict, group_col: str = Columns.LINEAGE) -> pd.DataFrame:
    """Daily logistic predictions of all converged fits in long format."""
    frames = [
        fit.predictions.assign(**{group_col: group, "s": fit.s, "f0": fit.f0})
        for group, fit in fits.items()
        if fit.converged
    ]
    columns = [group_col, Columns.DATE, "predicted_frequency", "s", "f0"]
    if len(frames) == 0:
        return pd.DataFrame(columns=columns)
    return pd.concat(frames, ignore_index=True)[columns]
