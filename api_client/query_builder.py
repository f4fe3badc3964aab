"""
Maps a FilterState and the signed-in user to the data endpoint's query params.

Pure and deterministic: identical inputs always give identical params, so the
result (or query_key() of it) can be used as a cache key upstream.
"""

from typing import Optional
from urllib.parse import urlencode

from core.models import FilterState, TimeMode, User

REGION_ROLE = "region"
NATIONAL_ROLE = "national"


def _time_params(filters: FilterState) -> list[tuple[str, str]]:
    window = filters.time
    params = [("time_filter", window.mode.value)]

    if window.mode is TimeMode.BY_YEAR:
        params.append(("year", str(window.year)))
    elif window.mode is TimeMode.BY_MONTH_YEAR:
        params.append(("year", str(window.year)))
        params.append(("month", window.month))
    elif window.mode is TimeMode.BY_QUARTER_YEAR:
        params.append(("year", str(window.year)))
        params.append(("quarter", str(window.quarter)))
    elif window.mode is TimeMode.BY_DATE:
        day = window.day.isoformat()
        params.append(("date_from", day))
        params.append(("date_to", day))

    return params


def build_query(filters: FilterState, user: Optional[User] = None) -> list[tuple[str, str]]:
    """
    Build the ordered query params for a filter.

    Region comes from the filter, else from the user's assigned region; the
    role is "region" whenever a region ended up set and "national" otherwise.

    Args:
        filters: Current filter state
        user: Signed-in user (None behaves like a national user)

    Returns:
        List of (name, value) pairs
    """
    location = filters.location
    region = location.region or (user.region if user else None)

    params: list[tuple[str, str]] = []
    if region:
        params.append(("region", region))
    if location.district:
        params.append(("district", location.district))
    if location.facility:
        params.append(("facility", location.facility))

    params.append(("role", REGION_ROLE if region else NATIONAL_ROLE))
    params.extend(_time_params(filters))
    return params


def query_key(params: list[tuple[str, str]]) -> str:
    """Stable string form of params, for memoization."""
    return urlencode(params)
