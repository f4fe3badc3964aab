"""
Data models for the CSF dashboard client.

Contains dataclasses for the authenticated session, the location and time
filters, and the pagination cursor. All of them are immutable: a change is a
new instance, which gives structural equality and makes every update atomic
from the caller's point of view.
"""

import calendar
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from core.errors import InvalidSelectionError


NATIONAL_ROLE = "national"


def _clean(value: Any) -> Optional[str]:
    """Normalize a wire value to a non-empty string or None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class User:
    """
    Snapshot of the signed-in user as returned by the login endpoint.

    Attributes:
        id: Remote user id (int or str, passed through untouched)
        username: Login name
        role: "national" for users who may query every region
        region: Assigned region for region-scoped users
        district: Assigned district (informational)
        facility: Assigned facility (informational)
    """

    id: Any = None
    username: str = ""
    role: Optional[str] = None
    region: Optional[str] = None
    district: Optional[str] = None
    facility: Optional[str] = None

    @property
    def is_national(self) -> bool:
        """Check if the user may query across all regions."""
        return self.role == NATIONAL_ROLE

    @property
    def is_region_scoped(self) -> bool:
        """Check if queries are implicitly restricted to the user's region."""
        return bool(self.region) and not self.is_national

    @classmethod
    def from_dict(cls, data: Mapping) -> "User":
        """
        Build a User from its wire representation.

        Raises:
            ValueError: If data is not a non-empty mapping.
        """
        if not isinstance(data, Mapping) or not data:
            raise ValueError("user must be a non-empty mapping")
        return cls(
            id=data.get("id"),
            username=str(data.get("username") or ""),
            role=_clean(data.get("role")),
            region=_clean(data.get("region")),
            district=_clean(data.get("district")),
            facility=_clean(data.get("facility")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "region": self.region,
            "district": self.district,
            "facility": self.facility,
        }


@dataclass(frozen=True)
class Session:
    """An access token together with the user it was issued to."""

    token: str
    user: User

    @classmethod
    def from_record(cls, record: Any) -> "Session":
        """
        Validate a persisted or freshly received session record.

        The record shape is {"access_token": str, "user": {...}}. A record
        with either half missing is corrupt: a session is fully present or
        absent.

        Raises:
            ValueError: If the record is partial or malformed.
        """
        if not isinstance(record, Mapping):
            raise ValueError("session record must be a mapping")

        token = record.get("access_token")
        if not isinstance(token, str) or not token:
            raise ValueError("session record has no access_token")

        return cls(token=token, user=User.from_dict(record.get("user")))

    def to_record(self) -> dict:
        return {"access_token": self.token, "user": self.user.to_dict()}


@dataclass(frozen=True)
class LocationSelection:
    """
    Region → district → facility selection. None at a level means "all".

    Invariants: a district implies a region, a facility implies a district.
    """

    region: Optional[str] = None
    district: Optional[str] = None
    facility: Optional[str] = None

    def __post_init__(self) -> None:
        if self.district is not None and self.region is None:
            raise InvalidSelectionError("district selected without a region")
        if self.facility is not None and self.district is None:
            raise InvalidSelectionError("facility selected without a district")

    @property
    def is_empty(self) -> bool:
        return self.region is None and self.district is None and self.facility is None


class TimeMode(str, Enum):
    """Time-window modes. Values double as the wire and URL identifiers."""

    TODAY = "today"
    BY_YEAR = "by_year"
    BY_MONTH_YEAR = "by_month_year"
    BY_QUARTER_YEAR = "by_quarter_year"
    BY_DATE = "by_date"
    CUMULATIVE = "cumulative"


# Parameters each mode carries; every other parameter must be unset
MODE_PARAMETERS: dict[TimeMode, tuple[str, ...]] = {
    TimeMode.TODAY: (),
    TimeMode.BY_YEAR: ("year",),
    TimeMode.BY_MONTH_YEAR: ("year", "month"),
    TimeMode.BY_QUARTER_YEAR: ("year", "quarter"),
    TimeMode.BY_DATE: ("day",),
    TimeMode.CUMULATIVE: (),
}

_ALL_PARAMETERS = ("year", "month", "quarter", "day")


def normalize_month(value: Any) -> str:
    """
    Return a month as the two-digit string used on the wire ("01".."12").

    Raises:
        InvalidSelectionError: If the value is not a month number.
    """
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidSelectionError(f"Invalid month: {value!r}") from None
    if not 1 <= number <= 12:
        raise InvalidSelectionError(f"Invalid month: {value!r}")
    return f"{number:02d}"


def normalize_quarter(value: Any) -> int:
    """
    Return a quarter number 1..4. Accepts 2, "2" and "Q2".

    Raises:
        InvalidSelectionError: If the value is not a quarter.
    """
    text = str(value).strip().upper()
    if text.startswith("Q"):
        text = text[1:]
    try:
        number = int(text)
    except ValueError:
        raise InvalidSelectionError(f"Invalid quarter: {value!r}") from None
    if not 1 <= number <= 4:
        raise InvalidSelectionError(f"Invalid quarter: {value!r}")
    return number


@dataclass(frozen=True)
class TimeWindow:
    """
    Tagged time window: exactly one mode, carrying only that mode's parameters.

    Build instances with the mode constructors (TimeWindow.by_year(2024) and
    friends); __post_init__ rejects parameters that do not belong to the mode.
    """

    mode: TimeMode = TimeMode.CUMULATIVE
    year: Optional[int] = None
    month: Optional[str] = None
    quarter: Optional[int] = None
    day: Optional[date] = None

    def __post_init__(self) -> None:
        allowed = MODE_PARAMETERS[self.mode]
        for name in _ALL_PARAMETERS:
            value = getattr(self, name)
            if name in allowed and value is None:
                raise InvalidSelectionError(f"{self.mode.value} requires {name}")
            if name not in allowed and value is not None:
                raise InvalidSelectionError(f"{self.mode.value} does not take {name}")
        if isinstance(self.day, datetime):
            # A day carries no time of day
            object.__setattr__(self, "day", self.day.date())

    @classmethod
    def today(cls) -> "TimeWindow":
        return cls(TimeMode.TODAY)

    @classmethod
    def cumulative(cls) -> "TimeWindow":
        return cls(TimeMode.CUMULATIVE)

    @classmethod
    def by_year(cls, year: int) -> "TimeWindow":
        return cls(TimeMode.BY_YEAR, year=int(year))

    @classmethod
    def by_month_year(cls, year: int, month: Any) -> "TimeWindow":
        return cls(TimeMode.BY_MONTH_YEAR, year=int(year), month=normalize_month(month))

    @classmethod
    def by_quarter_year(cls, year: int, quarter: Any) -> "TimeWindow":
        return cls(TimeMode.BY_QUARTER_YEAR, year=int(year), quarter=normalize_quarter(quarter))

    @classmethod
    def by_date(cls, day: date) -> "TimeWindow":
        return cls(TimeMode.BY_DATE, day=day)

    @property
    def label(self) -> str:
        """Human-readable label for headers and summaries."""
        if self.mode is TimeMode.TODAY:
            return "Today"
        if self.mode is TimeMode.BY_YEAR:
            return str(self.year)
        if self.mode is TimeMode.BY_MONTH_YEAR:
            return f"{calendar.month_name[int(self.month)]} {self.year}"
        if self.mode is TimeMode.BY_QUARTER_YEAR:
            return f"Q{self.quarter} {self.year}"
        if self.mode is TimeMode.BY_DATE:
            return self.day.isoformat()
        return "Cumulative"

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "year": self.year,
            "month": self.month,
            "quarter": self.quarter,
            "date": self.day.isoformat() if self.day else None,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "TimeWindow":
        """Rebuild a window from to_dict() output. Missing data means cumulative."""
        if not data:
            return cls.cumulative()
        day = data.get("date")
        return cls(
            mode=TimeMode(data.get("mode") or TimeMode.CUMULATIVE.value),
            year=data.get("year"),
            month=data.get("month"),
            quarter=data.get("quarter"),
            day=date.fromisoformat(day) if day else None,
        )


@dataclass(frozen=True)
class FilterState:
    """
    The canonical filter handed to data consumers.

    Equality is structural: two states built separately from the same values
    are the same filter.
    """

    location: LocationSelection = LocationSelection()
    time: TimeWindow = TimeWindow()

    def describe(self) -> str:
        """
        Return a one-line summary such as "Region: Central | District: Kampala".

        Underscores in location names are shown as spaces.
        """
        parts = []
        for title, value in (
            ("Region", self.location.region),
            ("District", self.location.district),
            ("Facility", self.location.facility),
        ):
            if value:
                parts.append(f"{title}: {value.replace('_', ' ')}")
        parts.append(f"Period: {self.time.label}")
        return " | ".join(parts)

    def to_dict(self) -> dict:
        return {
            "region": self.location.region,
            "district": self.location.district,
            "facility": self.location.facility,
            "time": self.time.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "FilterState":
        if not data:
            return cls()
        return cls(
            location=LocationSelection(
                region=data.get("region"),
                district=data.get("district"),
                facility=data.get("facility"),
            ),
            time=TimeWindow.from_dict(data.get("time")),
        )


@dataclass(frozen=True)
class PageCursor:
    """Pagination position reported by the data endpoint."""

    page: int = 1
    has_next: bool = True
    total_pages: int = 1

    @classmethod
    def initial(cls) -> "PageCursor":
        return cls(page=1, has_next=True, total_pages=1)

    @property
    def can_advance(self) -> bool:
        return self.has_next

    @property
    def can_retreat(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict:
        return {"page": self.page, "has_next": self.has_next, "total_pages": self.total_pages}

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "PageCursor":
        if not data:
            return cls.initial()
        return cls(
            page=int(data.get("page", 1)),
            has_next=bool(data.get("has_next", True)),
            total_pages=int(data.get("total_pages", 1)),
        )
