"""
Exception types for the CSF dashboard client.

Every failure path in the session and filter layer resolves to one of these,
so callers can map them onto a well-defined UI state (logged out, inline
error, or redirect) without inspecting messages.
"""

from typing import Optional


class DashboardError(Exception):
    """Base class for all dashboard client errors."""
    pass


class StorageUnavailableError(DashboardError):
    """Raised by a storage backend that cannot persist anything."""
    pass


class SessionContextError(DashboardError, RuntimeError):
    """Raised when the session context is used outside a SessionProvider."""
    pass


class AuthenticationError(DashboardError):
    """Raised when login fails. The message is safe to show to the user."""
    pass


class FetchError(DashboardError):
    """Raised when a lookup or data request fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class UnauthorizedError(FetchError):
    """Raised when the remote service answers 401 to an authenticated request."""

    def __init__(self, url: str = ""):
        super().__init__("Unauthorized", status_code=401, url=url)


class InvalidSelectionError(DashboardError, ValueError):
    """
    Raised for a filter selection the UI should never allow.

    Examples are choosing a district with no region, a month with no year, or
    un-pinning the region of a region-scoped user. Controls for these are
    disabled in the UI, so reaching this is a programming error.
    """
    pass
