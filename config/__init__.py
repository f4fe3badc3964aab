"""
Configuration module for the CSF dashboard client.

This module provides access to configuration settings loaded from TOML files.
Primary configuration file: config/dashboard.toml (see dashboard.example.toml)

Usage:
    from config import get_dashboard_config

    config = get_dashboard_config()
    print(config.api.base_url)
    print(config.storage.session_key)
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib


@dataclass
class ApiConfig:
    """Remote service endpoints and timeouts."""
    base_url: str = "https://csf.health.go.ug/api"
    request_timeout_seconds: float = 30
    login_timeout_seconds: float = 10
    login_path: str = "login"
    locations_path: str = "get_locations"
    data_path: str = "all_data"


@dataclass
class StorageConfig:
    """Where the session record is persisted for the CLI."""
    directory: str = ".csf"
    session_key: str = "session"

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()


@dataclass
class RoutesConfig:
    """Navigable paths of the login and protected views."""
    login: str = "/auth/login"
    dashboard: str = "/dashboard"


@dataclass
class FiltersConfig:
    """Defaults for the location and time-period filters."""
    first_year: int = 2020
    restrict_to_user_region: bool = True


@dataclass
class DashboardConfig:
    """Complete dashboard client configuration."""
    api: ApiConfig = field(default_factory=ApiConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    routes: RoutesConfig = field(default_factory=RoutesConfig)
    filters: FiltersConfig = field(default_factory=FiltersConfig)

    def validate(self) -> list[str]:
        """
        Validate the configuration.

        Returns:
            List of error messages (empty if valid).
        """
        errors = []

        if not self.api.base_url.startswith(("http://", "https://")):
            errors.append(f"api.base_url must be an http(s) URL: {self.api.base_url!r}")

        if self.api.request_timeout_seconds <= 0:
            errors.append("api.request_timeout_seconds must be positive")

        if self.api.login_timeout_seconds <= 0:
            errors.append("api.login_timeout_seconds must be positive")

        if not self.storage.session_key:
            errors.append("storage.session_key must not be empty")

        for name, route in (("routes.login", self.routes.login), ("routes.dashboard", self.routes.dashboard)):
            if not route.startswith("/"):
                errors.append(f"{name} must start with '/': {route!r}")

        if self.routes.login == self.routes.dashboard:
            errors.append("routes.login and routes.dashboard must differ")

        if self.filters.first_year < 1900:
            errors.append(f"filters.first_year looks wrong: {self.filters.first_year}")

        return errors


def load_dashboard_config(config_path: Optional[Path] = None) -> DashboardConfig:
    """
    Load dashboard configuration from TOML file.

    Args:
        config_path: Path to the TOML config file. Defaults to config/dashboard.toml
                     next to this module.

    Returns:
        DashboardConfig dataclass with all settings.

    Raises:
        tomllib.TOMLDecodeError: If the TOML is invalid.
    """
    if config_path is None:
        config_path = Path(__file__).parent / "dashboard.toml"

    if not config_path.exists():
        # Return default config if file doesn't exist
        return DashboardConfig()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    defaults = DashboardConfig()

    api_data = data.get("api", {})
    api = ApiConfig(
        base_url=api_data.get("base_url", defaults.api.base_url).rstrip("/"),
        request_timeout_seconds=api_data.get("request_timeout_seconds", defaults.api.request_timeout_seconds),
        login_timeout_seconds=api_data.get("login_timeout_seconds", defaults.api.login_timeout_seconds),
        login_path=api_data.get("login_path", defaults.api.login_path),
        locations_path=api_data.get("locations_path", defaults.api.locations_path),
        data_path=api_data.get("data_path", defaults.api.data_path),
    )

    storage_data = data.get("storage", {})
    storage = StorageConfig(
        directory=storage_data.get("directory", defaults.storage.directory),
        session_key=storage_data.get("session_key", defaults.storage.session_key),
    )

    routes_data = data.get("routes", {})
    routes = RoutesConfig(
        login=routes_data.get("login", defaults.routes.login),
        dashboard=routes_data.get("dashboard", defaults.routes.dashboard),
    )

    filters_data = data.get("filters", {})
    filters = FiltersConfig(
        first_year=filters_data.get("first_year", defaults.filters.first_year),
        restrict_to_user_region=filters_data.get(
            "restrict_to_user_region", defaults.filters.restrict_to_user_region
        ),
    )

    return DashboardConfig(api=api, storage=storage, routes=routes, filters=filters)


# Module-level cached config (loaded on first access)
_cached_config: Optional[DashboardConfig] = None


def get_dashboard_config() -> DashboardConfig:
    """
    Get the dashboard configuration (cached after first load).

    Returns:
        DashboardConfig dataclass with all settings.
    """
    global _cached_config
    if _cached_config is None:
        _cached_config = load_dashboard_config()
    return _cached_config


def reload_dashboard_config() -> DashboardConfig:
    """
    Reload the dashboard configuration from disk.

    Returns:
        DashboardConfig dataclass with all settings.
    """
    global _cached_config
    _cached_config = load_dashboard_config()
    return _cached_config


# Export public API
__all__ = [
    "DashboardConfig",
    "ApiConfig",
    "StorageConfig",
    "RoutesConfig",
    "FiltersConfig",
    "load_dashboard_config",
    "get_dashboard_config",
    "reload_dashboard_config",
]
