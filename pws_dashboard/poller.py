# ABOUTME: Dashboard-side poller that periodically loads latest and history data from the weather API.
# ABOUTME: Keeps the last good data on failure and stops auto-refresh after a server-class error.

import asyncio
import logging
from datetime import datetime

import httpx

from pws_dashboard.conditions import Conditions, derive_conditions
from pws_dashboard.models import HistoryPayload, HistoryPoint, LatestWeather

logger = logging.getLogger(__name__)

AUTO_REFRESH_SECONDS = 30.0


class DashboardHTTPError(Exception):
    """A non-2xx answer from the weather API, with the message to show in the banner."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


def _error_message(resp: httpx.Response) -> str:
    """Prefer the API's `{"error": ...}` text, falling back to the bare status."""
    fallback = f"HTTP {resp.status_code}"
    if "application/json" in resp.headers.get("content-type", ""):
        try:
            body = resp.json()
        except ValueError:
            return fallback
        error = body.get("error") if isinstance(body, dict) else None
        return error if isinstance(error, str) and error else fallback
    return resp.text or fallback


async def fetch_json(client: httpx.AsyncClient, path: str):
    resp = await client.get(path)
    if resp.is_error:
        raise DashboardHTTPError(resp.status_code, _error_message(resp))
    return resp.json()


async def fetch_weather_data(client: httpx.AsyncClient) -> tuple[LatestWeather, list[HistoryPoint]]:
    """Load both resources concurrently; a bare list is accepted as history for older servers."""
    latest_raw, history_raw = await asyncio.gather(
        fetch_json(client, "/weather/latest"),
        fetch_json(client, "/weather/history"),
    )
    latest = LatestWeather.model_validate(latest_raw)
    if isinstance(history_raw, list):
        history = [HistoryPoint.model_validate(p) for p in history_raw]
    else:
        history = HistoryPayload.model_validate(history_raw).points
    return latest, history


class DashboardPoller:
    """Holds what the dashboard shows and refreshes it on an interval.

    `client` should be an httpx.AsyncClient whose base_url points at the weather API.
    """

    def __init__(self, client: httpx.AsyncClient, interval: float = AUTO_REFRESH_SECONDS):
        self.client = client
        self.interval = interval
        self.latest: LatestWeather | None = None
        self.history: list[HistoryPoint] = []
        self.error: str | None = None
        self.auto_refresh = True
        self.last_loaded: datetime | None = None

    @property
    def conditions(self) -> Conditions | None:
        return derive_conditions(self.latest) if self.latest is not None else None

    async def refresh(self) -> bool:
        """Load once. Returns True on success; on failure keeps the previous data."""
        self.error = None
        try:
            latest, history = await fetch_weather_data(self.client)
        except DashboardHTTPError as e:
            logger.warning("Weather API error %s: %s", e.status_code, e)
            self.error = str(e) or "Failed to load weather data"
            if e.status_code >= 500:
                self.auto_refresh = False
            return False
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Weather API unreachable: %s", e)
            self.error = str(e) or "Failed to load weather data"
            return False
        self.latest = latest
        self.history = history
        self.last_loaded = datetime.now()
        return True

    async def run(self) -> None:
        """Refresh immediately, then every `interval` seconds until auto-refresh is switched off."""
        await self.refresh()
        while self.auto_refresh:
            await asyncio.sleep(self.interval)
            if not self.auto_refresh:
                break
            await self.refresh()
        logger.info("Auto-refresh stopped: %s", self.error)

    def stop(self) -> None:
        self.auto_refresh = False
