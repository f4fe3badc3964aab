"""
Thin wrapper around the API client for the Dash callbacks.

Builds clients from the dashboard config and the token held in the browser's
session store. Lookup services are cached per token so location options are
fetched once per signed-in session rather than on every callback.
"""

from functools import lru_cache
from typing import Optional

from api_client import AuthenticatedClient, Endpoints, LocationLookupService, PaginatedFetchController
from config import get_dashboard_config
from core.models import FilterState, PageCursor, Session


def make_client(token: Optional[str] = None) -> AuthenticatedClient:
    """Client authenticating with token (anonymous when None)."""
    api = get_dashboard_config().api
    return AuthenticatedClient(
        Endpoints.from_config(api),
        token_provider=lambda: token,
        timeout=api.request_timeout_seconds,
        login_timeout=api.login_timeout_seconds,
    )


def login(username: str, password: str) -> Session:
    """Exchange credentials for a Session. Raises AuthenticationError."""
    return make_client().login(username, password)


@lru_cache(maxsize=32)
def lookup_service(token: str) -> LocationLookupService:
    return LocationLookupService(make_client(token))


def feedback_controller(
    session: Session,
    filters: FilterState,
    cursor: Optional[PageCursor] = None,
) -> PaginatedFetchController:
    """Controller for the feedback table, positioned at cursor."""
    controller = PaginatedFetchController(make_client(session.token), user=session.user, filters=filters)
    if cursor is not None:
        controller.cursor = cursor
    return controller
