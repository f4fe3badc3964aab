"""
Location and time-period filters, their URL form, and the synchronizer that
composes them into one FilterState.
"""

from filters.location import (
    ALL_REGIONS,
    ALL_DISTRICTS,
    ALL_FACILITIES,
    LevelOptions,
    LocationFilter,
    display_name,
)
from filters.time_period import (
    MONTHS,
    QUARTERS,
    TIME_PERIODS,
    TimePeriodSelector,
    available_years,
)
from filters.url_state import (
    FILTER_KEYS,
    filter_state_to_params,
    filter_state_from_query,
    merge_into_query,
)
from filters.synchronizer import FilterStateSynchronizer

__all__ = [
    "ALL_REGIONS",
    "ALL_DISTRICTS",
    "ALL_FACILITIES",
    "LevelOptions",
    "LocationFilter",
    "display_name",
    "MONTHS",
    "QUARTERS",
    "TIME_PERIODS",
    "TimePeriodSelector",
    "available_years",
    "FILTER_KEYS",
    "filter_state_to_params",
    "filter_state_from_query",
    "merge_into_query",
    "FilterStateSynchronizer",
]
