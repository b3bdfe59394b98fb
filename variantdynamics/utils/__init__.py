from .epiestim import (
    IncidenceError,
    IncidenceGapError,
    IncidenceValueError,
    InsufficientIncidenceError,
    epiestim_discretise_serial_interval,
    epiestim_R,
    estimate_rt,
)
from .helper import clean_names, days_since, time_to_str
from .lineages import (
    bin_dates,
    check_frequencies,
    classify_major_lineages,
    frequency_series,
    lineage_frequencies,
    regional_frequencies,
    sort_lineages,
)

__all__ = [
    "epiestim_R",
    "epiestim_discretise_serial_interval",
    "estimate_rt",
    "IncidenceError",
    "IncidenceGapError",
    "IncidenceValueError",
    "InsufficientIncidenceError",
    "clean_names",
    "days_since",
    "time_to_str",
    "bin_dates",
    "check_frequencies",
    "classify_major_lineages",
    "frequency_series",
    "lineage_frequencies",
    "regional_frequencies",
    "sort_lineages",
]
