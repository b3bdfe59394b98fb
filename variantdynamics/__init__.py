"""
VariantDynamics
===============

Frequencies, logistic growth and reproduction numbers of SARS-CoV-2
variants in England.
"""

from .data import get_aliases, get_table
from .growth import (
    GrowthPhase,
    LogisticFitResult,
    extract_growth_phase,
    extract_growth_phases,
    fit_growth_phases,
    fit_logistic_growth,
    logistic_growth,
)
from .incidence import clean_daily_cases, estimate_variant_cases
from .pipeline import PipelineConfig, run_pipeline
from .utils import (
    IncidenceError,
    IncidenceGapError,
    IncidenceValueError,
    InsufficientIncidenceError,
    classify_major_lineages,
    epiestim_discretise_serial_interval,
    epiestim_R,
    estimate_rt,
    lineage_frequencies,
    sort_lineages,
    time_to_str,
)

__all__ = [
    "get_aliases",
    "get_table",
    "GrowthPhase",
    "LogisticFitResult",
    "extract_growth_phase",
    "extract_growth_phases",
    "fit_logistic_growth",
    "fit_growth_phases",
    "logistic_growth",
    "clean_daily_cases",
    "estimate_variant_cases",
    "PipelineConfig",
    "run_pipeline",
    "IncidenceError",
    "IncidenceGapError",
    "IncidenceValueError",
    "InsufficientIncidenceError",
    "classify_major_lineages",
    "epiestim_R",
    "epiestim_discretise_serial_interval",
    "estimate_rt",
    "lineage_frequencies",
    "sort_lineages",
    "time_to_str",
]
