"""
FilterState ⟷ URL query string.

Keys: region, district, facility, timePeriod, year, month, quarter, date.
Absent means unset or default; timePeriod=cumulative is the default and is
never written. Parsing is forgiving: orphaned location levels are dropped and
a timePeriod that is unknown or lacks its parameters falls back to cumulative.
"""

from collections.abc import Mapping
from datetime import date
from typing import Union
from urllib.parse import parse_qsl, urlencode

from core.errors import InvalidSelectionError
from core.logging_config import get_logger
from core.models import FilterState, LocationSelection, TimeMode, TimeWindow

logger = get_logger(__name__)

FILTER_KEYS = ("region", "district", "facility", "timePeriod", "year", "month", "quarter", "date")

QueryInput = Union[str, Mapping, None]


def _pairs(query: QueryInput) -> list[tuple[str, str]]:
    if not query:
        return []
    if isinstance(query, Mapping):
        return [(str(k), str(v)) for k, v in query.items() if v is not None]
    return parse_qsl(query.lstrip("?"), keep_blank_values=True)


def filter_state_to_params(state: FilterState) -> list[tuple[str, str]]:
    """Ordered (key, value) pairs for the non-default parts of state."""
    params: list[tuple[str, str]] = []
    location = state.location
    for key, value in (
        ("region", location.region),
        ("district", location.district),
        ("facility", location.facility),
    ):
        if value:
            params.append((key, value))

    window = state.time
    if window.mode is TimeMode.CUMULATIVE:
        return params

    params.append(("timePeriod", window.mode.value))
    if window.year is not None:
        params.append(("year", str(window.year)))
    if window.month is not None:
        params.append(("month", window.month))
    if window.quarter is not None:
        params.append(("quarter", str(window.quarter)))
    if window.day is not None:
        params.append(("date", window.day.isoformat()))
    return params


def merge_into_query(query: QueryInput, state: FilterState) -> str:
    """
    Write state into an existing query string.

    Filter keys are replaced (or removed when unset); unrelated keys keep
    their values and order. Returns the query without a leading "?".
    """
    kept = [(k, v) for k, v in _pairs(query) if k not in FILTER_KEYS]
    return urlencode(kept + filter_state_to_params(state))


def _time_from(values: dict[str, str]) -> TimeWindow:
    period = values.get("timePeriod")
    if not period:
        return TimeWindow.cumulative()

    try:
        mode = TimeMode(period)
        if mode is TimeMode.TODAY:
            return TimeWindow.today()
        if mode is TimeMode.BY_YEAR:
            return TimeWindow.by_year(int(values["year"]))
        if mode is TimeMode.BY_MONTH_YEAR:
            return TimeWindow.by_month_year(int(values["year"]), values["month"])
        if mode is TimeMode.BY_QUARTER_YEAR:
            return TimeWindow.by_quarter_year(int(values["year"]), values["quarter"])
        if mode is TimeMode.BY_DATE:
            return TimeWindow.by_date(date.fromisoformat(values["date"]))
    except (KeyError, ValueError, InvalidSelectionError) as e:
        logger.debug(f"Ignoring incomplete time period in URL: {e}")
    return TimeWindow.cumulative()


def filter_state_from_query(query: QueryInput) -> FilterState:
    """Parse and normalize a query string (or mapping) into a FilterState."""
    values: dict[str, str] = {}
    for key, value in _pairs(query):
        if key in FILTER_KEYS and key not in values and value != "":
            values[key] = value

    region = values.get("region")
    district = values.get("district") if region else None
    facility = values.get("facility") if district else None

    return FilterState(
        location=LocationSelection(region=region, district=district, facility=facility),
        time=_time_from(values),
    )
