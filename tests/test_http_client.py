"""
Tests for api_client/http.py and api_client/lookups.py - the HTTP boundary.

Tests cover:
- Headers with and without a token
- 401 handling and the unauthorized callback
- Error mapping for transport and status failures
- Login outcomes and messages
- Location lookups and their cache
"""

import pytest
import requests

from api_client import AuthenticatedClient, Endpoints, LocationLookupService
from api_client.http import CONNECT_FAILURE_MESSAGE, UNEXPECTED_RESPONSE_MESSAGE
from core.errors import AuthenticationError, FetchError, UnauthorizedError

ENDPOINTS = Endpoints(base_url="http://api.test")


class TestEndpoints:
    """Test URL building."""

    def test_urls(self):
        assert ENDPOINTS.login == "http://api.test/login"
        assert ENDPOINTS.locations == "http://api.test/get_locations"
        assert ENDPOINTS.data == "http://api.test/all_data"

    def test_location_params(self):
        assert ENDPOINTS.location_params("district", "Central") == [
            ("location", "district"),
            ("parent", "Central"),
        ]
        assert ENDPOINTS.location_params("region") == [("location", "region")]

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            ENDPOINTS.location_params("village")


class TestHeaders:
    """Test request headers."""

    def test_bearer_when_token(self):
        client = AuthenticatedClient(ENDPOINTS, token_provider=lambda: "abc")
        assert client.headers()["Authorization"] == "Bearer abc"
        assert client.headers()["Content-Type"] == "application/json"

    def test_no_authorization_without_token(self):
        assert "Authorization" not in AuthenticatedClient(ENDPOINTS).headers()

    def test_token_read_per_request(self, fake_http):
        """A token change is picked up by the next request."""
        tokens = iter(["first", "second"])
        client = AuthenticatedClient(ENDPOINTS, token_provider=lambda: next(tokens), http=fake_http)

        client.get_json(ENDPOINTS.locations)
        client.get_json(ENDPOINTS.locations)

        assert [c["headers"]["Authorization"] for c in fake_http.calls] == ["Bearer first", "Bearer second"]


class TestGetJson:
    """Test error mapping of authenticated GETs."""

    def test_returns_body(self, fake_http):
        client = AuthenticatedClient(ENDPOINTS, http=fake_http)
        body = client.get_json(ENDPOINTS.locations, params=[("location", "region")])
        assert body == {"data": ["Central", "Western"]}

    def test_unauthorized_calls_handler_then_raises(self, fake_api, fake_http):
        fake_api.failures["all_data"] = (401, {"message": "Token expired"})
        called = []
        client = AuthenticatedClient(ENDPOINTS, http=fake_http, on_unauthorized=lambda: called.append(True))

        with pytest.raises(UnauthorizedError) as excinfo:
            client.get_json(ENDPOINTS.data)

        assert called == [True]
        assert excinfo.value.status_code == 401

    def test_server_error(self, fake_api, fake_http):
        fake_api.failures["all_data"] = (500, {"message": "boom"})
        client = AuthenticatedClient(ENDPOINTS, http=fake_http)

        with pytest.raises(FetchError) as excinfo:
            client.get_json(ENDPOINTS.data)

        assert excinfo.value.status_code == 500
        assert not isinstance(excinfo.value, UnauthorizedError)

    def test_transport_error(self, http_factory):
        def handler(*args):
            raise requests.ConnectionError("refused")

        client = AuthenticatedClient(ENDPOINTS, http=http_factory(handler))
        with pytest.raises(FetchError, match="Request failed"):
            client.get_json(ENDPOINTS.data)

    def test_invalid_json(self, http_factory, response_factory):
        client = AuthenticatedClient(ENDPOINTS, http=http_factory(lambda *a: response_factory(200, None)))
        with pytest.raises(FetchError, match="not valid JSON"):
            client.get_json(ENDPOINTS.data)

    def test_timeout_passed(self, fake_http):
        AuthenticatedClient(ENDPOINTS, timeout=12, http=fake_http).get_json(ENDPOINTS.locations)
        assert fake_http.calls[0]["timeout"] == 12


class TestLogin:
    """Test exchanging credentials for a session."""

    def test_success(self, fake_http, national_user):
        session = AuthenticatedClient(ENDPOINTS, http=fake_http).login("alice", "secret")

        assert session.token == "token-alice"
        assert session.user == national_user
        call = fake_http.calls_to("login")[0]
        assert call["json"] == {"username": "alice", "password": "secret"}
        assert call["timeout"] == 10
        assert "Authorization" not in call["headers"]

    def test_bad_credentials_message(self, fake_http):
        with pytest.raises(AuthenticationError, match="Invalid username or password"):
            AuthenticatedClient(ENDPOINTS, http=fake_http).login("alice", "wrong")

    def test_error_without_message(self, fake_api, fake_http):
        fake_api.failures["login"] = (500, None)
        with pytest.raises(AuthenticationError, match="Unknown error"):
            AuthenticatedClient(ENDPOINTS, http=fake_http).login("alice", "secret")

    def test_timeout_message(self, http_factory):
        def handler(*args):
            raise requests.Timeout()

        client = AuthenticatedClient(ENDPOINTS, http=http_factory(handler), login_timeout=10)
        with pytest.raises(AuthenticationError) as excinfo:
            client.login("alice", "secret")
        assert str(excinfo.value) == "Login request timed out after 10 seconds"

    def test_connection_failure_message(self, http_factory):
        def handler(*args):
            raise requests.ConnectionError("refused")

        with pytest.raises(AuthenticationError) as excinfo:
            AuthenticatedClient(ENDPOINTS, http=http_factory(handler)).login("alice", "secret")
        assert str(excinfo.value) == CONNECT_FAILURE_MESSAGE

    def test_response_without_user(self, http_factory, response_factory):
        """A 200 that lacks the user is rejected rather than half-stored."""
        client = AuthenticatedClient(
            ENDPOINTS,
            http=http_factory(lambda *a: response_factory(200, {"access_token": "abc"})),
        )
        with pytest.raises(AuthenticationError) as excinfo:
            client.login("alice", "secret")
        assert str(excinfo.value) == UNEXPECTED_RESPONSE_MESSAGE


class TestLocationLookups:
    """Test LocationLookupService."""

    def test_levels(self, fake_http):
        lookups = LocationLookupService(AuthenticatedClient(ENDPOINTS, http=fake_http))

        assert lookups.regions() == ["Central", "Western"]
        assert lookups.districts("Central") == ["Kampala", "Wakiso"]
        assert lookups.facilities("Kampala") == ["Mulago_Hospital", "Kiruddu"]

    def test_cached_per_parent(self, fake_http):
        lookups = LocationLookupService(AuthenticatedClient(ENDPOINTS, http=fake_http))

        lookups.districts("Central")
        lookups.districts("Central")
        lookups.districts("Western")

        assert len(fake_http.calls_to("get_locations")) == 2

    def test_invalidate(self, fake_http):
        lookups = LocationLookupService(AuthenticatedClient(ENDPOINTS, http=fake_http))
        lookups.regions()
        lookups.invalidate()
        lookups.regions()
        assert len(fake_http.calls) == 2

    def test_failure_not_cached(self, fake_api, fake_http):
        lookups = LocationLookupService(AuthenticatedClient(ENDPOINTS, http=fake_http))
        fake_api.failures["get_locations"] = (500, None)
        with pytest.raises(FetchError):
            lookups.regions()

        del fake_api.failures["get_locations"]
        assert lookups.regions() == ["Central", "Western"]

    def test_unexpected_shape_is_empty(self, http_factory, response_factory):
        client = AuthenticatedClient(ENDPOINTS, http=http_factory(lambda *a: response_factory(200, {"data": "x"})))
        assert LocationLookupService(client).regions() == []
