"""
Client side of the dashboard API: authenticated requests, location lookups,
query building and paginated data fetching.
"""

from api_client.endpoints import Endpoints, LOCATION_LEVELS
from api_client.http import AuthenticatedClient
from api_client.lookups import LocationLookupService
from api_client.query_builder import build_query, query_key
from api_client.pagination import (
    FetchStatus,
    PendingFetch,
    PaginatedFetchController,
    parse_envelope,
)

__all__ = [
    "Endpoints",
    "LOCATION_LEVELS",
    "AuthenticatedClient",
    "LocationLookupService",
    "build_query",
    "query_key",
    "FetchStatus",
    "PendingFetch",
    "PaginatedFetchController",
    "parse_envelope",
]
