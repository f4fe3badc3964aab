"""
Time-period selector: exactly one TimeWindow mode active at a time.

Every setter builds a fresh TimeWindow, which clears the parameters of all
other modes by construction. Month and quarter are siblings under a chosen
year; selecting a year again returns to plain by_year.
"""

import calendar
from datetime import date
from typing import Any, Callable, Optional, Union

from core.errors import InvalidSelectionError
from core.logging_config import get_logger
from core.models import TimeMode, TimeWindow

logger = get_logger(__name__)

MONTHS: list[tuple[str, str]] = [(f"{m:02d}", calendar.month_name[m]) for m in range(1, 13)]

QUARTERS: list[tuple[str, str]] = [
    ("1", "Q1 (Jan-Mar)"),
    ("2", "Q2 (Apr-Jun)"),
    ("3", "Q3 (Jul-Sep)"),
    ("4", "Q4 (Oct-Dec)"),
]

TIME_PERIODS: list[tuple[str, str]] = [
    (TimeMode.TODAY.value, "Today"),
    (TimeMode.BY_YEAR.value, "By Year"),
    (TimeMode.BY_MONTH_YEAR.value, "By Month & Year"),
    (TimeMode.BY_QUARTER_YEAR.value, "By Quarter & Year"),
    (TimeMode.BY_DATE.value, "By Date"),
    (TimeMode.CUMULATIVE.value, "Cumulative"),
]

_YEAR_MODES = (TimeMode.BY_YEAR, TimeMode.BY_MONTH_YEAR, TimeMode.BY_QUARTER_YEAR)

TimeListener = Callable[[TimeWindow], None]


def available_years(first_year: int = 2020, today: Optional[date] = None) -> list[int]:
    """Selectable years, first_year through the current year."""
    today = today or date.today()
    return list(range(first_year, today.year + 1))


class TimePeriodSelector:
    """
    Holds the active TimeWindow and notifies listeners when it changes.

    Attributes:
        first_year: Earliest selectable year
        today: Callable returning the current date
    """

    def __init__(self, first_year: int = 2020, today: Callable[[], date] = date.today):
        self.first_year = first_year
        self.today = today
        self._window = TimeWindow.cumulative()
        self._listeners: list[TimeListener] = []

    @property
    def window(self) -> TimeWindow:
        return self._window

    @property
    def chosen_year(self) -> Optional[int]:
        """Year of the active window when it is one of the year modes."""
        if self._window.mode in _YEAR_MODES:
            return self._window.year
        return None

    @property
    def month_enabled(self) -> bool:
        return self.chosen_year is not None

    @property
    def quarter_enabled(self) -> bool:
        return self.chosen_year is not None

    def years(self) -> list[int]:
        return available_years(self.first_year, self.today())

    def on_change(self, listener: TimeListener) -> Callable[[], None]:
        """Register a listener called with the new window after a change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_today(self) -> None:
        self._replace(TimeWindow.today())

    def set_cumulative(self) -> None:
        self._replace(TimeWindow.cumulative())

    def set_year(self, year: Any) -> None:
        """
        Select a year; any month or quarter is cleared.

        Raises:
            InvalidSelectionError: If the year is not selectable.
        """
        try:
            value = int(year)
        except (TypeError, ValueError):
            raise InvalidSelectionError(f"Invalid year: {year!r}") from None
        if value not in self.years():
            raise InvalidSelectionError(f"Year {value} is not available")
        self._replace(TimeWindow.by_year(value))

    def set_month(self, month: Any) -> None:
        """
        Select a month of the chosen year.

        Raises:
            InvalidSelectionError: If no year is chosen or the month is invalid.
        """
        year = self._require_year("month")
        self._replace(TimeWindow.by_month_year(year, month))

    def set_quarter(self, quarter: Any) -> None:
        """
        Select a quarter of the chosen year.

        Raises:
            InvalidSelectionError: If no year is chosen or the quarter is invalid.
        """
        year = self._require_year("quarter")
        self._replace(TimeWindow.by_quarter_year(year, quarter))

    def set_date(self, day: Union[date, str]) -> None:
        """
        Select a single day (a date or an ISO "YYYY-MM-DD" string).

        Raises:
            InvalidSelectionError: If the string is not an ISO date.
        """
        if isinstance(day, str):
            try:
                day = date.fromisoformat(day[:10])
            except ValueError:
                raise InvalidSelectionError(f"Invalid date: {day!r}") from None
        self._replace(TimeWindow.by_date(day))

    def select_mode(self, mode: Union[TimeMode, str]) -> None:
        """
        Switch the mode from a mode selector control.

        Year modes start from the chosen year (or the latest available one)
        as plain by_year; month and quarter are picked afterwards. by_date
        starts from today.
        """
        mode = TimeMode(mode)
        if mode is TimeMode.TODAY:
            self.set_today()
        elif mode is TimeMode.CUMULATIVE:
            self.set_cumulative()
        elif mode is TimeMode.BY_DATE:
            if self._window.mode is not TimeMode.BY_DATE:
                self.set_date(self.today())
        elif mode is not self._window.mode:
            self.set_year(self.chosen_year or self.years()[-1])

    def clear(self) -> None:
        """Reset to cumulative."""
        self.set_cumulative()

    def apply(self, window: TimeWindow) -> None:
        """Adopt an externally parsed window (e.g. from the URL)."""
        self._replace(window)

    def _require_year(self, what: str) -> int:
        year = self.chosen_year
        if year is None:
            raise InvalidSelectionError(f"Select a year before choosing a {what}")
        return year

    def _replace(self, window: TimeWindow) -> None:
        if window == self._window:
            return
        self._window = window
        logger.debug(f"Time period: {window.label}")
        for listener in list(self._listeners):
            listener(window)
