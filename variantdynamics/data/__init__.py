from .api import (
    get_daily_cases,
    get_daily_lineages,
    get_regional_delta,
    get_table,
    get_weekly_lineages,
)
from .meta_data import get_aliases

__all__ = [
    "get_table",
    "get_weekly_lineages",
    "get_daily_lineages",
    "get_regional_delta",
    "get_daily_cases",
    "get_aliases",
]
