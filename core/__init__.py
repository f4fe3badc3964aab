"""
Core module for the CSF dashboard client.

Contains the data models, error types, and logging setup shared across the
session, filter, and API layers.
"""

from core.models import (
    User,
    Session,
    LocationSelection,
    TimeMode,
    TimeWindow,
    FilterState,
    PageCursor,
)
from core.errors import (
    DashboardError,
    StorageUnavailableError,
    SessionContextError,
    AuthenticationError,
    FetchError,
    UnauthorizedError,
    InvalidSelectionError,
)
from core.logging_config import setup_logging, get_logger

__all__ = [
    "User",
    "Session",
    "LocationSelection",
    "TimeMode",
    "TimeWindow",
    "FilterState",
    "PageCursor",
    "DashboardError",
    "StorageUnavailableError",
    "SessionContextError",
    "AuthenticationError",
    "FetchError",
    "UnauthorizedError",
    "InvalidSelectionError",
    "setup_logging",
    "get_logger",
]
