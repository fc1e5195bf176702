"""Shared pytest fixtures for mollie_connector tests."""

import os

os.environ.setdefault("SERVICE_API_KEY", "service-test-key")
os.environ.setdefault("MOLLIE_APIKEY", "test_dHar4XY7LxsDOtmnkVtjNVWXLSlXsM")
os.environ.setdefault("MOLLIE_MOCK", "true")

import httpx
import pytest
import pytest_asyncio

from mollie_connector.services.connector import MollieConnector

ENDPOINT = "https://api.mollie.nl"


@pytest.fixture
def settings():
    return {"apikey": "test_key", "endpoint": ENDPOINT}


@pytest_asyncio.fixture
async def mock_connector(settings):
    """Connector in mock mode; payments live in its MockEngine."""
    connector = MollieConnector({**settings, "mock": True})
    yield connector
    await connector.aclose()


@pytest.fixture
def recorded():
    """Requests seen by a canned transport, see make_connector."""
    return []


@pytest.fixture
def make_connector(settings, recorded):
    """Build a connector whose transport answers with `handler`."""
    def factory(handler, **overrides):
        def transport_handler(request):
            recorded.append(request)
            return handler(request)

        connector = MollieConnector({**settings, **overrides}, transport=httpx.MockTransport(transport_handler))
        return connector

    return factory
