"""
Remote endpoint URLs, built from ApiConfig so every caller agrees on them.
"""

from dataclasses import dataclass
from typing import Optional

from config import ApiConfig, get_dashboard_config

LOCATION_LEVELS = ("region", "district", "facility")


@dataclass(frozen=True)
class Endpoints:
    """URL builder for the dashboard API."""

    base_url: str
    login_path: str = "login"
    locations_path: str = "get_locations"
    data_path: str = "all_data"

    @classmethod
    def from_config(cls, api: Optional[ApiConfig] = None) -> "Endpoints":
        api = api or get_dashboard_config().api
        return cls(
            base_url=api.base_url.rstrip("/"),
            login_path=api.login_path,
            locations_path=api.locations_path,
            data_path=api.data_path,
        )

    def _join(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @property
    def login(self) -> str:
        return self._join(self.login_path)

    @property
    def locations(self) -> str:
        return self._join(self.locations_path)

    @property
    def data(self) -> str:
        return self._join(self.data_path)

    def location_params(self, level: str, parent: Optional[str] = None) -> list[tuple[str, str]]:
        """Query params for a lookup of one level, scoped by its parent."""
        if level not in LOCATION_LEVELS:
            raise ValueError(f"Unknown location level: {level!r}")
        params = [("location", level)]
        if parent is not None:
            params.append(("parent", parent))
        return params
