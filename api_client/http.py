"""
Authenticated HTTP boundary for the dashboard API.

Attaches the bearer token of the current session to every request, turns a
401 into an immediate "session invalid" signal, and converts transport or
status failures into FetchError so views can show an inline error state.
Login lives here too; it returns the new Session but never persists it,
which is the session context's job.
"""

from typing import Any, Callable, Optional

import requests

from api_client.endpoints import Endpoints
from core.errors import AuthenticationError, FetchError, UnauthorizedError
from core.logging_config import get_logger
from core.models import Session

logger = get_logger(__name__)

CONNECT_FAILURE_MESSAGE = "Failed to connect to the server. Please try again later."
UNEXPECTED_RESPONSE_MESSAGE = "Login failed. Unexpected response format."

TokenProvider = Callable[[], Optional[str]]


class AuthenticatedClient:
    """
    JSON client that authenticates as the current session.

    Attributes:
        endpoints: URL builder for the API
        token_provider: Returns the current access token, or None
        timeout: Per-request timeout in seconds for data and lookup calls
        login_timeout: Timeout in seconds for the login call
        on_unauthorized: Called before UnauthorizedError is raised; the
            dashboard uses it to redirect to the login view
        http: requests.Session (injectable for tests)
    """

    def __init__(
        self,
        endpoints: Endpoints,
        token_provider: Optional[TokenProvider] = None,
        timeout: Optional[float] = 30,
        login_timeout: float = 10,
        on_unauthorized: Optional[Callable[[], None]] = None,
        http: Optional[requests.Session] = None,
    ):
        self.endpoints = endpoints
        self.token_provider = token_provider or (lambda: None)
        self.timeout = timeout
        self.login_timeout = login_timeout
        self.on_unauthorized = on_unauthorized
        self.http = http or requests.Session()

    def headers(self) -> dict[str, str]:
        """Request headers, with Authorization when a token exists."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def get_json(self, url: str, params: Optional[list[tuple[str, str]]] = None) -> Any:
        """
        GET a JSON document as the current session.

        Raises:
            UnauthorizedError: On a 401 response (after on_unauthorized runs).
            FetchError: On transport failure, other non-2xx status, or a body
                that is not JSON.
        """
        try:
            response = self.http.get(url, params=params, headers=self.headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise FetchError(f"Request failed: {e}", url=url) from e

        if response.status_code == 401:
            logger.warning(f"Unauthorized response from {url}")
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise UnauthorizedError(url)

        if not response.ok:
            logger.error(f"Request to {url} returned {response.status_code}")
            raise FetchError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError("Response was not valid JSON", status_code=response.status_code, url=url) from e

    def login(self, username: str, password: str) -> Session:
        """
        Exchange credentials for a Session.

        Raises:
            AuthenticationError: With a message suitable for the user.
        """
        logger.info(f"Attempting login for {username}")
        try:
            response = self.http.post(
                self.endpoints.login,
                json={"username": username, "password": password},
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self.login_timeout,
            )
        except requests.Timeout as e:
            logger.error("Login request timed out")
            raise AuthenticationError(
                f"Login request timed out after {self.login_timeout:g} seconds"
            ) from e
        except requests.RequestException as e:
            logger.error(f"Login request failed: {e}")
            raise AuthenticationError(CONNECT_FAILURE_MESSAGE) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = (data.get("message") if isinstance(data, dict) else None) or "Unknown error"
            logger.error(f"Login error: {message}")
            raise AuthenticationError(message)

        try:
            session = Session.from_record(data)
        except ValueError as e:
            logger.error(f"Login response rejected: {e}")
            raise AuthenticationError(UNEXPECTED_RESPONSE_MESSAGE) from e

        logger.info("Login successful")
        return session
