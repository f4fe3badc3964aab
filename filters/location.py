"""
Cascading region → district → facility filter.

The selection is held as one immutable LocationSelection and replaced whole
on every change, so listeners never see a region cleared with its district
still set. Selector controls show explicit "all" sentinels; internally "all"
is None.

Region-scoped users are pinned to their region: the region control is
disabled, "all regions" is rejected, and every reset re-pins it.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from core.errors import FetchError, InvalidSelectionError, UnauthorizedError
from core.logging_config import get_logger
from core.models import LocationSelection, User

logger = get_logger(__name__)

ALL_REGIONS = "all_regions"
ALL_DISTRICTS = "all_districts"
ALL_FACILITIES = "all_facilities"

_SENTINEL_LABELS = {
    ALL_REGIONS: "All Regions",
    ALL_DISTRICTS: "All Districts",
    ALL_FACILITIES: "All Facilities",
}

LocationListener = Callable[[LocationSelection], None]


def _concrete(value: Optional[str], sentinel: str) -> Optional[str]:
    """Map a selector value to the internal form (None means all)."""
    if value is None or value == "" or value == sentinel:
        return None
    return value


def display_name(value: str) -> str:
    """Location names use underscores on the wire."""
    return value.replace("_", " ")


@dataclass
class LevelOptions:
    """
    Options loaded for one level of the hierarchy.

    Attributes:
        items: Location names, empty until loaded or when the lookup failed
        error: Failure message of the last lookup, or None
        loaded: True once a lookup for the current parent has completed
        parent: Parent the items were loaded for (None for regions)
    """

    items: list[str] = field(default_factory=list)
    error: Optional[str] = None
    loaded: bool = False
    parent: Optional[str] = None


class LocationFilter:
    """
    State machine for the three location selectors.

    Attributes:
        user: Signed-in user, used for region pinning
        restrict_to_user_region: Pin region-scoped users to their region
        regions, districts, facilities: LevelOptions per level
    """

    def __init__(self, user: Optional[User] = None, restrict_to_user_region: bool = True):
        self.user = user
        self.restrict_to_user_region = restrict_to_user_region
        self._selection = self.default_selection()
        self._listeners: list[LocationListener] = []
        self.regions = LevelOptions()
        self.districts = LevelOptions()
        self.facilities = LevelOptions()

    @property
    def selection(self) -> LocationSelection:
        return self._selection

    @property
    def pinned_region(self) -> Optional[str]:
        """The region this user is locked to, if any."""
        if self.restrict_to_user_region and self.user is not None and self.user.is_region_scoped:
            return self.user.region
        return None

    @property
    def region_disabled(self) -> bool:
        return self.pinned_region is not None

    @property
    def district_disabled(self) -> bool:
        return self._selection.region is None

    @property
    def facility_disabled(self) -> bool:
        return self._selection.district is None

    def default_selection(self) -> LocationSelection:
        """The user's default scope: pinned region, or everything open."""
        return LocationSelection(region=self.pinned_region)

    def on_change(self, listener: LocationListener) -> Callable[[], None]:
        """Register a listener called with the new selection after a change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_region(self, value: Optional[str]) -> None:
        """
        Select a region, or ALL_REGIONS. Any change resets district and facility.

        Raises:
            InvalidSelectionError: If the user is pinned to another region.
        """
        region = _concrete(value, ALL_REGIONS)
        pinned = self.pinned_region
        if pinned is not None and region != pinned:
            raise InvalidSelectionError(f"Region is fixed to {pinned} for this user")
        if region == self._selection.region:
            return
        self._replace(LocationSelection(region=region))

    def set_district(self, value: Optional[str]) -> None:
        """
        Select a district, or ALL_DISTRICTS. Any change resets the facility.

        Raises:
            InvalidSelectionError: If no concrete region is selected.
        """
        current = self._selection
        if current.region is None:
            raise InvalidSelectionError("Select a region before choosing a district")
        district = _concrete(value, ALL_DISTRICTS)
        if district == current.district:
            return
        self._replace(LocationSelection(region=current.region, district=district))

    def set_facility(self, value: Optional[str]) -> None:
        """
        Select a facility, or ALL_FACILITIES.

        Raises:
            InvalidSelectionError: If no concrete district is selected.
        """
        current = self._selection
        if current.district is None:
            raise InvalidSelectionError("Select a district before choosing a facility")
        facility = _concrete(value, ALL_FACILITIES)
        self._replace(LocationSelection(current.region, current.district, facility))

    def clear(self) -> None:
        """Reset to the user's default scope."""
        self._replace(self.default_selection())

    def apply(self, selection: LocationSelection) -> None:
        """
        Adopt an externally parsed selection (e.g. from the URL).

        A pinned user keeps their region; a selection for any other region
        is replaced by the default scope.
        """
        pinned = self.pinned_region
        if pinned is not None and selection.region != pinned:
            logger.debug(f"Ignoring location outside pinned region {pinned}")
            selection = self.default_selection()
        self._replace(selection)

    def selector_values(self) -> dict[str, str]:
        """Values for the three selector controls, with sentinels for "all"."""
        current = self._selection
        return {
            "region": current.region or ALL_REGIONS,
            "district": current.district or ALL_DISTRICTS,
            "facility": current.facility or ALL_FACILITIES,
        }

    def options(self, level: str) -> list[dict[str, str]]:
        """
        Selector options for one level as {"value", "label"} dicts.

        The "all" entry comes first, except for a pinned region.
        """
        levels = {
            "region": (self.regions, ALL_REGIONS),
            "district": (self.districts, ALL_DISTRICTS),
            "facility": (self.facilities, ALL_FACILITIES),
        }
        level_options, sentinel = levels[level]
        data = [{"value": name, "label": display_name(name)} for name in level_options.items]
        if level == "region" and self.region_disabled:
            return data
        return [{"value": sentinel, "label": _SENTINEL_LABELS[sentinel]}] + data

    def refresh_options(self, lookups) -> None:
        """
        Load options for every level the selection allows.

        Regions are always loaded, districts only under a concrete region and
        facilities only under a concrete district. A failing level records its
        error and leaves the other levels and the selection untouched.

        Args:
            lookups: Object with regions(), districts(region) and
                facilities(district), e.g. LocationLookupService

        Raises:
            UnauthorizedError: The session is no longer valid.
        """
        current = self._selection

        self.regions = self._load(lookups.regions)
        pinned = self.pinned_region
        if pinned is not None and self.regions.error is None:
            self.regions.items = [pinned]

        if current.region is not None:
            self.districts = self._load(lookups.districts, current.region)
        else:
            self.districts = LevelOptions()

        if current.district is not None:
            self.facilities = self._load(lookups.facilities, current.district)
        else:
            self.facilities = LevelOptions()

    def _load(self, fetch: Callable, parent: Optional[str] = None) -> LevelOptions:
        try:
            items = fetch(parent) if parent is not None else fetch()
        except UnauthorizedError:
            raise
        except FetchError as e:
            logger.error(f"Location lookup failed (parent={parent}): {e}")
            return LevelOptions(items=[], error=str(e), loaded=True, parent=parent)
        return LevelOptions(items=list(items), loaded=True, parent=parent)

    def _replace(self, selection: LocationSelection) -> None:
        if selection == self._selection:
            return
        self._selection = selection
        for listener in list(self._listeners):
            listener(selection)
