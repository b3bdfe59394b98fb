"""
Runs the complete variant analysis: loading, cleaning, frequency
comparison, growth phases, logistic fits, Delta case estimates and Rt.
"""
import os
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

import pandas as pd

from variantdynamics import plots
from variantdynamics.config import Analysis, Columns, Lineages, Sources
from variantdynamics.data import (
    get_aliases,
    get_daily_cases,
    get_daily_lineages,
    get_regional_delta,
    get_weekly_lineages,
)
from variantdynamics.growth import (
    extract_growth_phases,
    fit_growth_phases,
    fit_summary_table,
    growth_phase_table,
    prediction_table,
)
from variantdynamics.incidence import (
    clean_daily_cases,
    estimate_variant_cases,
    incidence_series,
)
from variantdynamics.utils.epiestim import IncidenceError, estimate_rt
from variantdynamics.utils.lineages import (
    bin_dates,
    check_frequencies,
    classify_lineage_table,
    clean_lineage_table,
    clean_regional_records,
    compare_frequencies,
    frequency_series,
    lineage_frequencies,
    regional_frequencies,
)


@dataclass
class PipelineConfig:
    """Inputs, parameters and output location of a pipeline run."""

    weekly_lineages: str = Sources.WEEKLY_LINEAGES
    daily_lineages: str = Sources.DAILY_LINEAGES
    regional_delta: str = Sources.REGIONAL_DELTA
    daily_cases: str = Sources.DAILY_CASES
    output_dir: str = "results"

    major_lineages: list = field(default_factory=lambda: list(Lineages.MAJOR))
    merge_sublineages: bool = True
    comparison_lineage: str = Lineages.BA2
    focal_variant: str = Lineages.DELTA
    bin_days: int = Analysis.BIN_DAYS
    regional_freq: str = Analysis.REGIONAL_FREQ

    end_policy: str = Analysis.END_POLICY
    fixation_threshold: float = Analysis.FIXATION_THRESHOLD
    min_run: int = Analysis.MIN_RUN
    initial_s: float = Analysis.INITIAL_S
    max_iter: int = Analysis.MAX_ITER

    case_column: str = Analysis.AVERAGE_CASE_COLUMN
    cases_start_date: Optional[str] = Analysis.CASES_START_DATE

    rt_start_date: Optional[str] = Analysis.RT_START_DATE
    rt_end_date: Optional[str] = Analysis.RT_END_DATE
    mean_si: float = Analysis.MEAN_SI
    std_si: float = Analysis.STD_SI
    rt_window: int = Analysis.RT_WINDOW

    make_plots: bool = True
    float_format: str = Analysis.FLOAT_FORMAT

    @property
    def phase_kwargs(self) -> dict:
        return dict(
            policy=self.end_policy,
            threshold=self.fixation_threshold,
            min_run=self.min_run,
        )

    @property
    def fit_kwargs(self) -> dict:
        return dict(initial_s=self.initial_s, max_iter=self.max_iter)


def write_table(df: pd.DataFrame, file_name: str, float_format: str) -> str:
    df.to_csv(
        file_name, index=False, float_format=float_format, date_format="%Y-%m-%d"
    )
    return file_name


def _file_safe(name) -> str:
    return re.sub(r"[^0-9A-Za-z.]+", "_", str(name)).strip("_")


def prepare_frequencies(config: PipelineConfig, log_func: Callable = print) -> dict:
    """Loads the lineage sources and computes all frequency tables."""
    aliases = get_aliases() if config.merge_sublineages else None

    log_func(f"Loading weekly lineage counts from {config.weekly_lineages}")
    weekly = classify_lineage_table(
        clean_lineage_table(get_weekly_lineages(config.weekly_lineages)),
        config.major_lineages,
        aliases,
    )
    log_func(f"Loading daily lineage counts from {config.daily_lineages}")
    daily = classify_lineage_table(
        clean_lineage_table(get_daily_lineages(config.daily_lineages)),
        config.major_lineages,
        aliases,
    )

    weekly_freq = lineage_frequencies(weekly)
    daily_freq = lineage_frequencies(daily)
    binned_freq = lineage_frequencies(
        bin_dates(daily, days=config.bin_days), date_col=Columns.DATE_BIN
    )
    for freq, date_col in [
        (weekly_freq, Columns.DATE),
        (daily_freq, Columns.DATE),
        (binned_freq, Columns.DATE_BIN),
    ]:
        if not check_frequencies(freq, date_col):
            raise ValueError(f"Frequencies per {date_col} do not sum to one.")

    comparison = compare_frequencies(
        {
            "Weekly": (weekly_freq, Columns.DATE),
            f"{config.bin_days}-day binned": (binned_freq, Columns.DATE_BIN),
        },
        config.comparison_lineage,
    )

    log_func(f"Loading regional records from {config.regional_delta}")
    regional = regional_frequencies(
        clean_regional_records(get_regional_delta(config.regional_delta)),
        freq=config.regional_freq,
    )

    return {
        "lineage_frequencies": weekly_freq,
        "daily_lineage_frequencies": daily_freq,
        "binned_lineage_frequencies": binned_freq,
        "frequency_comparison": comparison,
        "regional_delta_frequencies": regional,
    }


def run_pipeline(
    config: Optional[PipelineConfig] = None, log_func: Callable = print
) -> dict:
    """
    Runs the analysis and writes every derived table (and figure) to
    config.output_dir.

    :param config: PipelineConfig, defaults to PipelineConfig()
    :param log_func: logging function, defaults to print
    :returns: dictionary of table name -> dataframe
    :raises IncidenceError: if the Delta case estimates cannot be used for
        Rt estimation; all other tables are written before
    """
    config = PipelineConfig() if config is None else config
    os.makedirs(config.output_dir, exist_ok=True)

    tables = prepare_frequencies(config, log_func)
    weekly_freq = tables["lineage_frequencies"]
    regional = tables["regional_delta_frequencies"]

    observed = set(weekly_freq[Columns.LINEAGE])
    groups = [lin for lin in config.major_lineages if lin in observed]
    phases = extract_growth_phases(weekly_freq, groups=groups, **config.phase_kwargs)
    fits = fit_growth_phases(
        weekly_freq, phases, log_func=log_func, **config.fit_kwargs
    )

    # weeks without samples in a region are missing, not zero
    regional_phases = extract_growth_phases(
        regional,
        group_col=Columns.REGION,
        fill_missing=False,
        **config.phase_kwargs,
    )
    regional_fits = fit_growth_phases(
        regional,
        regional_phases,
        group_col=Columns.REGION,
        log_func=log_func,
        fill_missing=False,
        **config.fit_kwargs,
    )

    log_func(f"Loading daily cases from {config.daily_cases}")
    cases = clean_daily_cases(
        get_daily_cases(config.daily_cases), average_col=config.case_column
    )
    estimates = estimate_variant_cases(
        cases,
        weekly_freq,
        variant=config.focal_variant,
        case_col=config.case_column,
        start_date=config.cases_start_date,
    )

    tables.update(
        {
            "growth_phases": growth_phase_table(phases),
            "logistic_fits": fit_summary_table(fits, phases),
            "logistic_predictions": prediction_table(fits),
            "regional_growth_phases": growth_phase_table(
                regional_phases, group_col=Columns.REGION
            ),
            "regional_logistic_fits": fit_summary_table(
                regional_fits, regional_phases, group_col=Columns.REGION
            ),
            "regional_logistic_predictions": prediction_table(
                regional_fits, group_col=Columns.REGION
            ),
            "delta_case_estimates": estimates,
        }
    )
    for name, df in tables.items():
        write_table(
            df, os.path.join(config.output_dir, f"{name}.csv"), config.float_format
        )

    try:
        rt = estimate_rt(
            incidence_series(estimates),
            start_date=config.rt_start_date,
            end_date=config.rt_end_date,
            mean_si=config.mean_si,
            std_si=config.std_si,
            window=config.rt_window,
        )
    except IncidenceError as error:
        log_func(f"Rt estimation failed: {error}")
        raise

    tables["rt_estimates"] = rt
    write_table(
        rt, os.path.join(config.output_dir, "rt_estimates.csv"), config.float_format
    )

    if config.make_plots:
        make_figures(tables, fits, regional_fits, config)

    log_func(f"Wrote {len(tables)} tables to {config.output_dir}")
    return tables


def make_figures(
    tables: dict, fits: dict, regional_fits: dict, config: PipelineConfig
) -> list:
    out = config.output_dir
    weekly_freq = tables["lineage_frequencies"]
    regional = tables["regional_delta_frequencies"]

    files = [
        plots.save_figure(
            plots.plot_lineage_counts,
            os.path.join(out, "lineage_counts.png"),
            weekly_freq,
        ),
        plots.save_figure(
            plots.plot_lineage_frequencies,
            os.path.join(out, "lineage_frequencies.png"),
            weekly_freq,
        ),
        plots.save_figure(
            plots.plot_frequency_comparison,
            os.path.join(out, "frequency_comparison.png"),
            tables["frequency_comparison"],
            config.comparison_lineage,
        ),
        plots.save_figure(
            plots.plot_regional_frequencies,
            os.path.join(out, "regional_delta_frequencies.png"),
            regional,
        ),
        plots.save_figure(
            plots.plot_rt,
            os.path.join(out, "rt_estimates.png"),
            tables["rt_estimates"],
        ),
    ]

    for freq, group_col, group_fits, fill_missing in [
        (weekly_freq, Columns.LINEAGE, fits, True),
        (regional, Columns.REGION, regional_fits, False),
    ]:
        for group, fit in group_fits.items():
            series = frequency_series(
                freq, group, group_col=group_col, fill_missing=fill_missing
            )
            files.append(
                plots.save_figure(
                    plots.plot_logistic_fit,
                    os.path.join(out, f"logistic_fit_{_file_safe(group)}.png"),
                    series,
                    fit,
                    color=Lineages.COLORS.get(group, "C0"),
                )
            )

    return files
