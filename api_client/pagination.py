"""
Paginated, filter-aware fetching of feedback rows.

The controller owns the current filter, the page cursor and the visible rows.
Every filter change bumps a generation counter; a response is applied only if
it carries the current generation and is for the most recently requested
page, so a slow response for an old filter can never overwrite a newer one.
Requests are not aborted, their results are discarded.

Usage (synchronous):
    controller = PaginatedFetchController(client, user=session.user)
    controller.set_filters(state)
    controller.load()
    while controller.next_page():
        ...

Usage (split, for callers that issue the request themselves):
    pending = controller.begin()
    payload = client.get_json(endpoints.data, params=pending.params)
    controller.resolve(pending, payload)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

from api_client.endpoints import Endpoints
from api_client.http import AuthenticatedClient
from api_client.query_builder import build_query
from core.errors import FetchError, UnauthorizedError
from core.logging_config import get_logger
from core.models import FilterState, PageCursor, User

logger = get_logger(__name__)


class FetchStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class PendingFetch:
    """A request issued by begin(), tagged with the generation it belongs to."""

    generation: int
    page: int
    params: tuple[tuple[str, str], ...]


def parse_envelope(payload: Any, requested_page: int) -> tuple[list[dict], PageCursor, Optional[int]]:
    """
    Split a data response into rows, cursor and total record count.

    Expected shape:
        {"data": {"pagination": {current_page, total_pages, has_next_page,
                                 total_records}, "data": [rows]}}

    Missing pagination means a single page.
    """
    body = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(body, dict):
        body = {}

    rows = body.get("data")
    if not isinstance(rows, list):
        rows = []

    pagination = body.get("pagination")
    if not isinstance(pagination, dict):
        return rows, PageCursor(page=requested_page, has_next=False, total_pages=1), None

    cursor = PageCursor(
        page=int(pagination.get("current_page") or requested_page),
        has_next=bool(pagination.get("has_next_page", False)),
        total_pages=int(pagination.get("total_pages") or 1),
    )
    total_records = pagination.get("total_records")
    return rows, cursor, int(total_records) if total_records is not None else None


class PaginatedFetchController:
    """
    State machine IDLE → LOADING → SUCCESS | ERROR, per page.

    Attributes:
        client: Authenticated client (only needed by load/next/previous)
        endpoints: URL builder for the data endpoint
        user: Signed-in user, used for the implicit region scope
        filters: Current filter state
        generation: Incremented on every structural filter change
        cursor: Page cursor of the last applied response
        rows: Rows of the last applied response
        status: Current FetchStatus
        error: Message of the last failure, or None
        total_records: Server-reported record count, when known
    """

    def __init__(
        self,
        client: Optional[AuthenticatedClient] = None,
        endpoints: Optional[Endpoints] = None,
        user: Optional[User] = None,
        filters: Optional[FilterState] = None,
    ):
        self.client = client
        self.endpoints = endpoints or (client.endpoints if client else None)
        self.user = user
        self.filters = filters or FilterState()
        self.generation = 0
        self.cursor = PageCursor.initial()
        self.rows: list[dict] = []
        self.status = FetchStatus.IDLE
        self.error: Optional[str] = None
        self.total_records: Optional[int] = None
        self._latest_page: Optional[int] = None

    def set_filters(self, filters: FilterState) -> bool:
        """
        Adopt a new filter. Returns True if it differed from the current one.

        A change resets the cursor to page 1 and clears rows and error so
        rows of the old filter are never mixed with the new one.
        """
        if filters == self.filters:
            return False
        self.filters = filters
        self.generation += 1
        self.cursor = PageCursor.initial()
        self.rows = []
        self.error = None
        self.total_records = None
        self.status = FetchStatus.IDLE
        self._latest_page = None
        logger.debug(f"Filters changed, generation {self.generation}")
        return True

    def params_for(self, page: int) -> list[tuple[str, str]]:
        """Request params for a page of the current filter."""
        return [("page", str(page))] + build_query(self.filters, self.user)

    def begin(self, page: Optional[int] = None) -> PendingFetch:
        """Mark a request for page as in flight and describe it."""
        page = page or self.cursor.page
        self._latest_page = page
        self.status = FetchStatus.LOADING
        return PendingFetch(
            generation=self.generation,
            page=page,
            params=tuple(self.params_for(page)),
        )

    def is_current(self, pending: PendingFetch) -> bool:
        return pending.generation == self.generation and pending.page == self._latest_page

    def resolve(self, pending: PendingFetch, payload: Any) -> bool:
        """Apply a response. Returns False if it was stale and discarded."""
        if not self.is_current(pending):
            logger.debug(
                f"Discarding stale response (generation {pending.generation}, page {pending.page})"
            )
            return False

        self.rows, self.cursor, self.total_records = parse_envelope(payload, pending.page)
        self.error = None
        self.status = FetchStatus.SUCCESS
        return True

    def fail(self, pending: PendingFetch, error: Exception) -> bool:
        """Record a failure. Returns False if it was stale and discarded."""
        if not self.is_current(pending):
            logger.debug(f"Discarding stale failure (generation {pending.generation})")
            return False

        self.error = str(error)
        self.status = FetchStatus.ERROR
        return True

    def _fetch(self, page: Optional[int]) -> PendingFetch:
        if self.client is None or self.endpoints is None:
            raise RuntimeError("PaginatedFetchController.load requires a client")

        pending = self.begin(page)
        logger.info(f"Loading page {pending.page}: {self.filters.describe()}")
        try:
            payload = self.client.get_json(self.endpoints.data, params=list(pending.params))
        except FetchError as e:
            self.fail(pending, e)
            raise
        self.resolve(pending, payload)
        return pending

    def load(self, page: Optional[int] = None) -> bool:
        """
        Fetch and apply one page synchronously.

        Returns:
            True on success, False if the request failed (see error).

        Raises:
            UnauthorizedError: The session is no longer valid.
        """
        try:
            self._fetch(page)
        except UnauthorizedError:
            raise
        except FetchError as e:
            logger.error(f"Failed to load page: {e}")
            return False
        return True

    def next_page(self) -> bool:
        """Load page+1, only if the last page reported a next one."""
        if not self.cursor.can_advance:
            return False
        return self.load(self.cursor.page + 1)

    def previous_page(self) -> bool:
        """Load page-1, only if the current page is past the first."""
        if not self.cursor.can_retreat:
            return False
        return self.load(self.cursor.page - 1)

    def iter_pages(self) -> Iterator[list[dict]]:
        """
        Yield the rows of every page of the current filter, from page 1.

        Raises:
            FetchError: If any page fails to load.
        """
        self._fetch(1)
        yield self.rows
        while self.cursor.has_next:
            self._fetch(self.cursor.page + 1)
            yield self.rows
