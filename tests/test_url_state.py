"""
Tests for filters/url_state.py - FilterState in the URL query string.

Tests cover:
- Writing only the non-default parts
- Preserving unrelated query keys
- Forgiving parsing: orphans dropped, incomplete periods become cumulative
"""

from datetime import date, datetime

import pytest

from core.models import FilterState, LocationSelection, TimeWindow
from filters import filter_state_from_query, filter_state_to_params, merge_into_query


class TestToParams:
    """Test serializing a FilterState."""

    def test_default_state_writes_nothing(self):
        assert filter_state_to_params(FilterState()) == []

    def test_cumulative_is_never_written(self):
        state = FilterState(LocationSelection("Central"), TimeWindow.cumulative())
        assert filter_state_to_params(state) == [("region", "Central")]

    def test_full_state(self):
        state = FilterState(
            LocationSelection("Central", "Kampala", "Mulago_Hospital"),
            TimeWindow.by_month_year(2024, 3),
        )
        assert filter_state_to_params(state) == [
            ("region", "Central"),
            ("district", "Kampala"),
            ("facility", "Mulago_Hospital"),
            ("timePeriod", "by_month_year"),
            ("year", "2024"),
            ("month", "03"),
        ]

    def test_date_is_iso(self):
        state = FilterState(time=TimeWindow.by_date(date(2024, 3, 5)))
        assert filter_state_to_params(state) == [("timePeriod", "by_date"), ("date", "2024-03-05")]


class TestMergeIntoQuery:
    """Test writing state into an existing query string."""

    def test_unrelated_keys_preserved(self):
        state = FilterState(LocationSelection("Central"), TimeWindow.by_year(2024))
        query = merge_into_query("?tab=summary&region=Western&lang=en", state)
        assert query == "tab=summary&lang=en&region=Central&timePeriod=by_year&year=2024"

    def test_unset_keys_removed(self):
        query = merge_into_query("region=Central&district=Kampala&timePeriod=today", FilterState())
        assert query == ""

    @pytest.mark.parametrize("window", [
        TimeWindow.cumulative(),
        TimeWindow.today(),
        TimeWindow.by_year(2024),
        TimeWindow.by_month_year(2024, 11),
        TimeWindow.by_quarter_year(2023, 4),
        TimeWindow.by_date(date(2024, 2, 29)),
    ], ids=lambda window: window.mode.value)
    @pytest.mark.parametrize("location", [
        LocationSelection(),
        LocationSelection("Central"),
        LocationSelection("Central", "Kampala"),
        LocationSelection("Central", "Kampala", "Mulago_Hospital"),
        LocationSelection("West & North", "Fort Portal+", "St. Mary's Lacor 100%"),
    ], ids=["national", "region", "district", "facility", "escaped"])
    def test_round_trip(self, location, window):
        """Parsing a written query gives back the same state."""
        state = FilterState(location, window)
        assert filter_state_from_query(merge_into_query("tab=x", state)) == state

    def test_datetime_day_written_as_date(self):
        state = FilterState(time=TimeWindow.by_date(datetime(2024, 3, 5, 10)))

        query = merge_into_query("", state)

        assert query == "timePeriod=by_date&date=2024-03-05"
        assert filter_state_from_query(query) == FilterState(time=TimeWindow.by_date(date(2024, 3, 5)))


class TestFromQuery:
    """Test forgiving parsing."""

    def test_empty_query(self):
        assert filter_state_from_query("") == FilterState()
        assert filter_state_from_query(None) == FilterState()

    def test_leading_question_mark(self):
        assert filter_state_from_query("?region=Central").location.region == "Central"

    def test_orphan_district_dropped(self):
        state = filter_state_from_query("district=Kampala&facility=Mulago_Hospital")
        assert state.location.is_empty

    def test_orphan_facility_dropped(self):
        state = filter_state_from_query("region=Central&facility=Mulago_Hospital")
        assert state.location == LocationSelection(region="Central")

    @pytest.mark.parametrize("query", [
        "timePeriod=by_year",
        "timePeriod=by_month_year&year=2024",
        "timePeriod=by_quarter_year&year=2024&quarter=7",
        "timePeriod=by_date&date=yesterday",
        "timePeriod=fortnightly",
        "timePeriod=by_year&year=last",
    ])
    def test_incomplete_period_is_cumulative(self, query):
        assert filter_state_from_query(query).time == TimeWindow.cumulative()

    def test_stray_parameters_ignored(self):
        """Parameters that do not belong to the mode are not carried."""
        state = filter_state_from_query("timePeriod=by_year&year=2024&month=03&quarter=2")
        assert state.time == TimeWindow.by_year(2024)

    def test_first_value_wins(self):
        state = filter_state_from_query("region=Central&region=Western")
        assert state.location.region == "Central"

    def test_blank_values_ignored(self):
        state = filter_state_from_query("region=&district=Kampala")
        assert state.location.is_empty

    def test_mapping_input(self):
        state = filter_state_from_query({"region": "Central", "timePeriod": "today", "district": None})
        assert state == FilterState(LocationSelection("Central"), TimeWindow.today())

    def test_quarter_label_form(self):
        state = filter_state_from_query("timePeriod=by_quarter_year&year=2024&quarter=Q2")
        assert state.time == TimeWindow.by_quarter_year(2024, 2)
