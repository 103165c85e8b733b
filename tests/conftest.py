# ABOUTME: Shared test fixtures for the weather dashboard test suite.
# ABOUTME: Provides mock httpx clients, fixed settings, and sample PWS API payloads.

from unittest.mock import AsyncMock

import httpx
import pytest

from pws_dashboard.config import Settings


def json_response(json_data, status_code: int = 200) -> httpx.Response:
    """Build a real httpx.Response carrying the given JSON body."""
    return httpx.Response(status_code=status_code, json=json_data, request=httpx.Request("GET", "https://test"))


def mock_client(*responses) -> httpx.AsyncClient:
    """Create a mock httpx.AsyncClient whose get() returns (or raises) the given items in order."""
    mock = AsyncMock(spec=httpx.AsyncClient)
    if len(responses) == 1:
        if isinstance(responses[0], Exception):
            mock.get.side_effect = responses[0]
        else:
            mock.get.return_value = responses[0]
    else:
        mock.get.side_effect = list(responses)
    return mock


@pytest.fixture
def settings() -> Settings:
    return Settings(api_key="test-key", station_id="KTEST123", base_url="https://pws.test/v2")


@pytest.fixture
def current_record() -> dict:
    """A current-observation record shaped like the PWS API's metric response."""
    return {
        "stationID": "KTEST123",
        "neighborhood": "Hilltop",
        "obsTimeUtc": "2024-05-01T12:00:00Z",
        "epoch": 1714564800,
        "lat": 45.5,
        "lon": -122.6,
        "humidity": 61,
        "winddir": 225,
        "uv": 4.0,
        "solarRadiation": 512.3,
        "metric": {
            "temp": 18.4,
            "pressure": 1012.6,
            "windSpeed": 36.0,
            "windGust": 54.0,
            "precipRate": 0.0,
            "precipTotal": 1.2,
        },
    }
