"""
Tests for api_client/pagination.py - the paginated fetch controller.

Tests cover:
- parse_envelope() with and without pagination
- Filter changes resetting the cursor
- Stale response suppression by generation and page
- Synchronous load/next/previous against the fake API
- iter_pages()
"""

import pytest

from api_client import (
    AuthenticatedClient,
    Endpoints,
    FetchStatus,
    PaginatedFetchController,
    parse_envelope,
)
from core.errors import FetchError, UnauthorizedError
from core.models import FilterState, LocationSelection, PageCursor, TimeWindow

ENDPOINTS = Endpoints(base_url="http://api.test")

CENTRAL_2024 = FilterState(LocationSelection("Central"), TimeWindow.by_year(2024))
WESTERN_2024 = FilterState(LocationSelection("Western"), TimeWindow.by_year(2024))


def envelope(rows, page=1, total_pages=1, has_next=False, total_records=None):
    return {
        "status": "success",
        "data": {
            "pagination": {
                "current_page": page,
                "total_pages": total_pages,
                "has_next_page": has_next,
                "total_records": total_records if total_records is not None else len(rows),
            },
            "data": rows,
        },
    }


@pytest.fixture
def controller(fake_http, national_user):
    client = AuthenticatedClient(ENDPOINTS, token_provider=lambda: "token-alice", http=fake_http)
    return PaginatedFetchController(client, user=national_user)


class TestParseEnvelope:
    """Test splitting the data response."""

    def test_full_envelope(self):
        rows, cursor, total = parse_envelope(envelope([{"a": 1}], page=2, total_pages=3, has_next=True, total_records=21), 2)
        assert rows == [{"a": 1}]
        assert cursor == PageCursor(page=2, has_next=True, total_pages=3)
        assert total == 21

    def test_missing_pagination_is_single_page(self):
        rows, cursor, total = parse_envelope({"data": {"data": [{"a": 1}]}}, 1)
        assert rows == [{"a": 1}]
        assert cursor == PageCursor(page=1, has_next=False, total_pages=1)
        assert total is None

    def test_missing_pagination_keeps_requested_page(self):
        _, cursor, _ = parse_envelope({"data": {"data": []}}, 4)
        assert cursor.page == 4
        assert not cursor.has_next

    @pytest.mark.parametrize("payload", [None, [], {"data": None}, {"data": {"data": "oops"}}])
    def test_malformed_payload_has_no_rows(self, payload):
        rows, _, _ = parse_envelope(payload, 1)
        assert rows == []


class TestSetFilters:
    """Filter changes reset pagination."""

    def test_change_resets_cursor_and_rows(self):
        controller = PaginatedFetchController()
        pending = controller.begin(1)
        controller.resolve(pending, envelope([{"a": 1}], page=1, total_pages=2, has_next=True))
        controller.resolve(controller.begin(2), envelope([{"b": 2}], page=2, total_pages=2))

        assert controller.set_filters(CENTRAL_2024)

        assert controller.cursor == PageCursor.initial()
        assert controller.rows == []
        assert controller.status is FetchStatus.IDLE

    def test_equal_filter_is_not_a_change(self):
        controller = PaginatedFetchController(filters=CENTRAL_2024)
        generation = controller.generation

        assert not controller.set_filters(
            FilterState(LocationSelection("Central"), TimeWindow.by_year(2024))
        )
        assert controller.generation == generation

    def test_page_params_differ_only_by_page(self, national_user):
        controller = PaginatedFetchController(user=national_user, filters=CENTRAL_2024)
        page_1 = controller.params_for(1)
        page_2 = controller.params_for(2)

        assert page_1[0] == ("page", "1")
        assert page_2[0] == ("page", "2")
        assert page_1[1:] == page_2[1:]


class TestStaleSuppression:
    """Responses for superseded requests are discarded."""

    def test_old_filter_response_discarded(self):
        """F1 resolving after F2 was requested leaves F2's rows visible."""
        controller = PaginatedFetchController(filters=CENTRAL_2024)
        first = controller.begin()
        controller.set_filters(WESTERN_2024)
        second = controller.begin()

        assert controller.resolve(second, envelope([{"region": "Western"}]))
        assert not controller.resolve(first, envelope([{"region": "Central"}]))

        assert controller.rows == [{"region": "Western"}]
        assert controller.status is FetchStatus.SUCCESS

    def test_old_filter_response_before_new_one(self):
        controller = PaginatedFetchController(filters=CENTRAL_2024)
        first = controller.begin()
        controller.set_filters(WESTERN_2024)
        second = controller.begin()

        assert not controller.resolve(first, envelope([{"region": "Central"}]))
        assert controller.rows == []
        assert controller.status is FetchStatus.LOADING

        controller.resolve(second, envelope([{"region": "Western"}]))
        assert controller.rows == [{"region": "Western"}]

    def test_superseded_page_discarded(self):
        controller = PaginatedFetchController()
        page_2 = controller.begin(2)
        page_3 = controller.begin(3)

        assert controller.resolve(page_3, envelope([{"p": 3}], page=3, total_pages=3))
        assert not controller.resolve(page_2, envelope([{"p": 2}], page=2, total_pages=3, has_next=True))
        assert controller.cursor.page == 3

    def test_stale_failure_discarded(self):
        controller = PaginatedFetchController(filters=CENTRAL_2024)
        first = controller.begin()
        controller.set_filters(WESTERN_2024)
        controller.begin()

        assert not controller.fail(first, FetchError("boom"))
        assert controller.error is None
        assert controller.status is FetchStatus.LOADING

    def test_current_failure_recorded(self):
        controller = PaginatedFetchController()
        pending = controller.begin()

        assert controller.fail(pending, FetchError("Request failed with status 500"))
        assert controller.status is FetchStatus.ERROR
        assert controller.error == "Request failed with status 500"


class TestSynchronousLoad:
    """Test load(), next_page() and previous_page() against the fake API."""

    def test_load_first_page(self, controller, fake_http):
        assert controller.load()

        assert controller.status is FetchStatus.SUCCESS
        assert [row["meta_instance_id"] for row in controller.rows] == ["p1-r0", "p1-r1"]
        assert controller.cursor == PageCursor(page=1, has_next=True, total_pages=2)
        assert controller.total_records == 4
        call = fake_http.calls_to("all_data")[0]
        assert call["headers"]["Authorization"] == "Bearer token-alice"
        assert call["params"][0] == ("page", "1")

    def test_next_and_previous(self, controller):
        controller.load()

        assert controller.next_page()
        assert controller.cursor.page == 2
        assert not controller.cursor.has_next
        assert not controller.next_page()

        assert controller.previous_page()
        assert controller.cursor.page == 1
        assert not controller.previous_page()

    def test_rows_replaced_per_page(self, controller):
        controller.load()
        controller.next_page()
        assert all(row["meta_instance_id"].startswith("p2-") for row in controller.rows)

    def test_failure_returns_false(self, controller, fake_api):
        fake_api.failures["all_data"] = (500, {"message": "boom"})

        assert not controller.load()
        assert controller.status is FetchStatus.ERROR
        assert "500" in controller.error

    def test_unauthorized_propagates(self, controller, fake_api):
        fake_api.failures["all_data"] = (401, {"message": "expired"})
        with pytest.raises(UnauthorizedError):
            controller.load()

    def test_load_without_client(self):
        with pytest.raises(RuntimeError):
            PaginatedFetchController().load()


class TestIterPages:
    """Test walking every page."""

    def test_yields_each_page(self, controller):
        pages = [list(rows) for rows in controller.iter_pages()]
        assert len(pages) == 2
        assert pages[1][0]["meta_instance_id"] == "p2-r0"

    def test_failure_raises(self, controller, fake_api):
        fake_api.failures["all_data"] = (503, None)
        with pytest.raises(FetchError):
            list(controller.iter_pages())
