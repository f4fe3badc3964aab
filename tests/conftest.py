"""
Pytest configuration and fixtures for the test suite.

This module provides shared fixtures used across multiple test modules:
users and sessions, storage backends, and a fake of the remote API that
stands in for requests.Session so no test touches the network.
"""

import json
import tempfile
from datetime import date
from pathlib import Path
from typing import Generator

import pytest

from auth import MemoryStorage, SessionStore
from core.models import Session, User


# =============================================================================
# Users and sessions
# =============================================================================

NATIONAL_USER = {
    "id": 1,
    "username": "alice",
    "role": "national",
    "region": None,
    "district": None,
    "facility": None,
}

CENTRAL_USER = {
    "id": 2,
    "username": "bob",
    "role": "region",
    "region": "Central",
    "district": None,
    "facility": None,
}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def national_user() -> User:
    """A user allowed to query every region."""
    return User.from_dict(NATIONAL_USER)


@pytest.fixture
def central_user() -> User:
    """A region-scoped user assigned to Central."""
    return User.from_dict(CENTRAL_USER)


@pytest.fixture
def national_session(national_user: User) -> Session:
    return Session(token="token-national", user=national_user)


@pytest.fixture
def central_session(central_user: User) -> Session:
    return Session(token="token-central", user=central_user)


@pytest.fixture
def session_record(national_session: Session) -> str:
    """The national session as it is persisted (a JSON string)."""
    return json.dumps(national_session.to_record())


# =============================================================================
# Storage
# =============================================================================

@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def session_store(memory_storage: MemoryStorage) -> SessionStore:
    return SessionStore(memory_storage)


@pytest.fixture
def fixed_today() -> date:
    """A fixed 'today' so year lists and by_date defaults are stable."""
    return date(2025, 6, 15)


# =============================================================================
# Fake remote API
# =============================================================================

class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, body=None):
        self.status_code = status_code
        self._body = body

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeHttp:
    """
    Stand-in for requests.Session that records calls and delegates to a handler.

    The handler receives (method, url, params, body) and returns a
    FakeResponse, or raises to simulate a transport failure.
    """

    def __init__(self, handler):
        self.handler = handler
        self.calls = []

    def _call(self, method, url, params, body, headers, timeout):
        self.calls.append({
            "method": method,
            "url": url,
            "params": list(params or []),
            "json": body,
            "headers": dict(headers or {}),
            "timeout": timeout,
        })
        return self.handler(method, url, params, body)

    def get(self, url, params=None, headers=None, timeout=None):
        return self._call("GET", url, params, None, headers, timeout)

    def post(self, url, json=None, headers=None, timeout=None):
        return self._call("POST", url, None, json, headers, timeout)

    def calls_to(self, path: str) -> list[dict]:
        return [call for call in self.calls if call["url"].endswith("/" + path)]


def make_rows(page: int, count: int = 2) -> list[dict]:
    return [
        {
            "meta_instance_id": f"p{page}-r{i}",
            "system_submission_date": f"2024-03-0{i + 1} 10:00:00",
            "region": "Central",
            "district": "Kampala",
            "facility": "Mulago_Hospital",
            "hlevel": "National_Referral",
            "demo_age": 30 + i,
            "demo_gender": "Female",
            "servicepoint": "3_Outpatient",
            "servicepoint_others": None,
            "satifisaction": "Very_Satisfied",
            "comments": f"row {i} of page {page}",
        }
        for i in range(count)
    ]


class FakeApi:
    """
    Handler emulating the login, get_locations and all_data endpoints.

    Attributes:
        users: username -> (password, user dict)
        locations: (level, parent) -> names
        pages: page number -> rows for all_data
        failures: endpoint path -> (status, body) forced responses
    """

    def __init__(self):
        self.users = {
            "alice": ("secret", NATIONAL_USER),
            "bob": ("hunter2", CENTRAL_USER),
        }
        self.locations = {
            ("region", None): ["Central", "Western"],
            ("district", "Central"): ["Kampala", "Wakiso"],
            ("district", "Western"): ["Mbarara"],
            ("facility", "Kampala"): ["Mulago_Hospital", "Kiruddu"],
        }
        self.pages = {1: make_rows(1), 2: make_rows(2)}
        self.failures = {}

    def __call__(self, method, url, params, body):
        path = url.rsplit("/", 1)[-1]
        if path in self.failures:
            status, payload = self.failures[path]
            return FakeResponse(status, payload)

        if path == "login":
            password, user = self.users.get(body.get("username"), (None, None))
            if user is None or body.get("password") != password:
                return FakeResponse(401, {"message": "Invalid username or password"})
            return FakeResponse(200, {"access_token": f"token-{body['username']}", "user": user})

        query = dict(params or [])
        if path == "get_locations":
            names = self.locations.get((query.get("location"), query.get("parent")), [])
            return FakeResponse(200, {"data": names})

        if path == "all_data":
            page = int(query.get("page", 1))
            total_pages = len(self.pages)
            return FakeResponse(200, {
                "status": "success",
                "data": {
                    "pagination": {
                        "current_page": page,
                        "total_pages": total_pages,
                        "has_next_page": page < total_pages,
                        "total_records": sum(len(rows) for rows in self.pages.values()),
                    },
                    "data": self.pages.get(page, []),
                },
            })

        return FakeResponse(404, {"message": "Not found"})


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def fake_http(fake_api: FakeApi) -> FakeHttp:
    return FakeHttp(fake_api)


@pytest.fixture
def response_factory():
    """Build FakeResponse objects in tests that script their own handler."""
    return FakeResponse


@pytest.fixture
def http_factory():
    """Build a FakeHttp around a custom handler."""
    return FakeHttp
