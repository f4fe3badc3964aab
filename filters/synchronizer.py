"""
Combines the location filter and the time-period selector into one FilterState.

Subscribers receive a state only when it differs structurally from the last
one emitted, so unrelated updates never trigger downstream fetches. After
each emission the state is mirrored into the URL query (state → URL); the
URL is read back into state only once, by hydrate().
"""

from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from core.logging_config import get_logger
from core.models import FilterState
from filters.location import LocationFilter
from filters.time_period import TimePeriodSelector
from filters.url_state import filter_state_from_query, merge_into_query

logger = get_logger(__name__)

StateListener = Callable[[FilterState], None]


class FilterStateSynchronizer:
    """
    Attributes:
        location: Location filter component
        time_period: Time-period selector component
        navigate_query: Called with the new query string (no leading "?")
            whenever the mirrored URL changes
    """

    def __init__(
        self,
        location: LocationFilter,
        time_period: TimePeriodSelector,
        navigate_query: Optional[Callable[[str], None]] = None,
        query: str = "",
    ):
        self.location = location
        self.time_period = time_period
        self.navigate_query = navigate_query
        self._query = (query or "").lstrip("?")
        self._last_emitted: Optional[FilterState] = None
        self._listeners: list[StateListener] = []
        self._hydrated = False
        self._batch_depth = 0
        self._unsubscribers = [
            location.on_change(lambda _selection: self._on_component_change()),
            time_period.on_change(lambda _window: self._on_component_change()),
        ]

    @property
    def current(self) -> FilterState:
        return FilterState(location=self.location.selection, time=self.time_period.window)

    @property
    def last_emitted(self) -> Optional[FilterState]:
        return self._last_emitted

    @property
    def query(self) -> str:
        """The query string as last mirrored."""
        return self._query

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def hydrate(self, query: Optional[str] = None) -> FilterState:
        """
        Read the URL into both components, once. Later calls are ignored.

        Args:
            query: Query string; defaults to the one given at construction
        """
        if self._hydrated:
            return self.current
        self._hydrated = True

        if query is not None:
            self._query = query.lstrip("?")
        parsed = filter_state_from_query(self._query)
        with self._batch():
            self.location.apply(parsed.location)
            self.time_period.apply(parsed.time)
        return self.current

    def resume(self, restored: Optional[FilterState] = None) -> FilterState:
        """
        Continue from a state restored from a store rather than the URL.

        The restored state counts as already emitted and hydration is skipped.
        If the components normalized it on the way in (a region-scoped user
        pinned back to their region), the normalized state is emitted once.

        Args:
            restored: State consumers already hold; defaults to the current one
        """
        self._hydrated = True
        self._last_emitted = restored if restored is not None else self.current
        self._on_component_change()
        return self.current

    def clear_filters(self) -> None:
        """Reset time to cumulative and location to the user's default scope."""
        with self._batch():
            self.time_period.clear()
            self.location.clear()

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._listeners.clear()

    @contextmanager
    def _batch(self) -> Iterator[None]:
        """Group several component updates into a single emission."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0:
            self._on_component_change()

    def _on_component_change(self) -> None:
        if self._batch_depth:
            return

        state = self.current
        if state == self._last_emitted:
            return
        self._last_emitted = state
        logger.debug(f"Filter state: {state.describe()}")
        for listener in list(self._listeners):
            listener(state)
        self._mirror(state)

    def _mirror(self, state: FilterState) -> None:
        new_query = merge_into_query(self._query, state)
        if new_query == self._query:
            return
        self._query = new_query
        logger.debug(f"URL query: {new_query or '(empty)'}")
        if self.navigate_query is not None:
            self.navigate_query(new_query)
