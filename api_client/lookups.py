"""
Location lookups for the cascading region → district → facility selectors.

Each level is fetched independently and cached by its parent, so re-selecting
a region the user has already visited does not hit the API again.
"""

from typing import Any, Optional

from api_client.endpoints import Endpoints
from api_client.http import AuthenticatedClient
from core.logging_config import get_logger

logger = get_logger(__name__)


def _as_names(payload: Any) -> list[str]:
    """Extract the list of names from a {"data": [...]} payload."""
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        return []
    return [str(item) for item in data if item is not None]


class LocationLookupService:
    """
    Fetches location names one level at a time.

    Attributes:
        client: Authenticated client used for the requests
        endpoints: URL builder (defaults to the client's endpoints)
    """

    def __init__(self, client: AuthenticatedClient, endpoints: Optional[Endpoints] = None):
        self.client = client
        self.endpoints = endpoints or client.endpoints
        self._cache: dict[tuple[str, Optional[str]], list[str]] = {}

    def get_locations(self, level: str, parent: Optional[str] = None) -> list[str]:
        """
        Return the names at one level, scoped by parent.

        Raises:
            FetchError: If the request fails. Failures are not cached.
        """
        key = (level, parent)
        if key in self._cache:
            return list(self._cache[key])

        params = self.endpoints.location_params(level, parent)
        payload = self.client.get_json(self.endpoints.locations, params=params)
        names = _as_names(payload)
        logger.debug(f"Loaded {len(names)} {level} options (parent={parent})")
        self._cache[key] = names
        return list(names)

    def regions(self) -> list[str]:
        return self.get_locations("region")

    def districts(self, region: str) -> list[str]:
        return self.get_locations("district", region)

    def facilities(self, district: str) -> list[str]:
        return self.get_locations("facility", district)

    def invalidate(self) -> None:
        """Drop every cached level."""
        self._cache.clear()
