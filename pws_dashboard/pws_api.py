# ABOUTME: Client layer for the weather.com personal weather station (PWS) API.
# ABOUTME: Fetches current observations and per-day history rows, raising UpstreamFetchError on failure.

from datetime import date

import httpx

from pws_dashboard.config import Settings
from pws_dashboard.errors import UpstreamFetchError

CURRENT_PATH = "/pws/observations/current"
HISTORY_PATH = "/pws/history/all"


def create_http_client() -> httpx.AsyncClient:
    """Create the shared httpx client used for all upstream calls.

    No retry transport: each poll issues at most one request per resource window.
    """
    return httpx.AsyncClient(headers={"Accept": "application/json"})


def format_day(day: date) -> str:
    """Format a calendar day the way the history endpoint expects (YYYYMMDD)."""
    return day.strftime("%Y%m%d")


async def _get_json(client: httpx.AsyncClient, url: str, params: dict, label: str) -> dict:
    """GET a PWS endpoint and decode its JSON body."""
    try:
        resp = await client.get(url, params=params)
    except httpx.HTTPError as e:
        raise UpstreamFetchError(f"{label} fetch failed: {e}") from e
    if resp.is_error:
        raise UpstreamFetchError(f"{label} fetch failed: HTTP {resp.status_code}")
    # History endpoints answer 204 for a day with no uploads yet
    if resp.status_code == 204 or not resp.content:
        return {}
    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamFetchError(f"{label}: invalid JSON response") from e
    if not isinstance(data, dict):
        raise UpstreamFetchError(f"{label}: unexpected response shape")
    return data


def _observations(data: dict) -> list[dict]:
    obs = data.get("observations")
    if not isinstance(obs, list):
        return []
    return [o for o in obs if isinstance(o, dict)]


async def fetch_current_observation(client: httpx.AsyncClient, settings: Settings) -> dict:
    """Fetch the station's most recent observation record."""
    data = await _get_json(
        client,
        settings.base_url + CURRENT_PATH,
        params={
            "stationId": settings.station_id,
            "format": "json",
            "units": "m",
            "apiKey": settings.api_key,
        },
        label="WU current",
    )
    obs = _observations(data)
    if not obs:
        raise UpstreamFetchError("WU current: no observations returned")
    return obs[0]


async def fetch_history_observations(client: httpx.AsyncClient, settings: Settings, day: date) -> list[dict]:
    """Fetch every summary row the station uploaded on one UTC calendar day."""
    data = await _get_json(
        client,
        settings.base_url + HISTORY_PATH,
        params={
            "stationId": settings.station_id,
            "date": format_day(day),
            "format": "json",
            "units": "m",
            "numericPrecision": "decimal",
            "apiKey": settings.api_key,
        },
        label=f"WU history {format_day(day)}",
    )
    return _observations(data)
