"""
Test suite for the CSF dashboard client.

This package contains unit tests and integration tests for:
- Core configuration and models (config, models)
- Session persistence, context and route guard (auth)
- Location and time filters and URL state (filters)
- API client, lookups and pagination (api_client)
- Dash callback logic and the export CLI (dash_app, cli)
"""
