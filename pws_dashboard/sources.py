# ABOUTME: Data sources behind the weather gateway: live PWS API, synthetic sample data, and unconfigured.
# ABOUTME: select_source() picks exactly one of them from the resolved Settings at startup.

import asyncio
import logging
import math
import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import httpx

from pws_dashboard.config import Settings
from pws_dashboard.errors import ConfigurationError, UpstreamFetchError
from pws_dashboard.models import HistoryPayload, HistoryPoint, LatestWeather, LocationInfo
from pws_dashboard.normalize import format_timestamp, normalize_current, normalize_history_rows, select_recent
from pws_dashboard.pws_api import fetch_current_observation, fetch_history_observations

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WeatherSource(ABC):
    """Produces normalized payloads for the two gateway resources."""

    name = "abstract"

    @abstractmethod
    async def latest(self) -> LatestWeather: ...

    @abstractmethod
    async def history(self) -> HistoryPayload: ...


class LiveSource(WeatherSource):
    """Reads the configured station from the PWS API."""

    name = "live"

    def __init__(self, client: httpx.AsyncClient, settings: Settings, clock: Clock = utc_now):
        self.client = client
        self.settings = settings
        self.clock = clock

    async def latest(self) -> LatestWeather:
        record = await fetch_current_observation(self.client, self.settings)
        return normalize_current(record, self.settings.station_id)

    async def history(self) -> HistoryPayload:
        """Fetch yesterday's and today's UTC day-windows together and keep the trailing 24h.

        One failed window is tolerated; only both failing is an error.
        """
        now = self.clock()
        today = now.astimezone(timezone.utc).date()
        yesterday = today - timedelta(days=1)

        res_y, res_t = await asyncio.gather(
            fetch_history_observations(self.client, self.settings, yesterday),
            fetch_history_observations(self.client, self.settings, today),
            return_exceptions=True,
        )
        for result in (res_y, res_t):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
        if isinstance(res_y, Exception) and isinstance(res_t, Exception):
            raise UpstreamFetchError(f"WU history fetch failed: {res_y} / {res_t}")

        rows = []
        for day, result in ((yesterday, res_y), (today, res_t)):
            if isinstance(result, Exception):
                logger.warning("History window %s unavailable: %s", day.isoformat(), result)
                continue
            rows.extend(result)

        points = normalize_history_rows(rows)
        return HistoryPayload(points=select_recent(points, now))


class SyntheticSource(WeatherSource):
    """Sample data for local development when no credentials are configured.

    Values are randomized; only their shape is stable.
    """

    name = "synthetic"

    def __init__(self, rng: random.Random | None = None, clock: Clock = utc_now):
        self.rng = rng or random.Random()
        self.clock = clock

    async def latest(self) -> LatestWeather:
        return LatestWeather(
            station_name="Sample Station",
            location=LocationInfo(name="Local Dev", lat=0.0, lon=0.0),
            timestamp=format_timestamp(self.clock()),
            temperature_c=round(self.rng.uniform(18.0, 26.0), 1),
            humidity_pct=round(self.rng.uniform(40.0, 70.0)),
            pressure_hpa=round(self.rng.uniform(1008.0, 1018.0), 1),
            wind_speed_ms=round(self.rng.uniform(0.5, 3.0), 1),
            wind_gust_ms=round(self.rng.uniform(2.0, 5.0), 1),
            wind_dir_deg=self.rng.randrange(0, 360),
            rain_rate_mm_h=0.0,
            rain_daily_mm=round(self.rng.uniform(0.0, 1.0), 1),
            uv_index=round(self.rng.uniform(0.0, 8.0), 1),
            solar_w_m2=round(self.rng.uniform(0.0, 800.0)),
        )

    async def history(self) -> HistoryPayload:
        now = self.clock()
        return HistoryPayload(points=[self._point(now, hours_ago) for hours_ago in range(24, 0, -1)])

    def _point(self, now: datetime, hours_ago: int) -> HistoryPoint:
        phase = hours_ago / 24 * math.pi * 2
        return HistoryPoint(
            t=format_timestamp(now - timedelta(hours=hours_ago)),
            temperature_c=round(20 + math.sin(phase) * 4, 1),
            humidity_pct=round(50 + math.cos(phase) * 10),
            pressure_hpa=round(1014 + math.sin(hours_ago / 8) * 1.5, 1),
            wind_speed_ms=round(1 + self.rng.random() * 2, 1),
            wind_gust_ms=round(2 + self.rng.random() * 3, 1),
            rain_rate_mm_h=0.0,
            rain_daily_mm=round((24 - hours_ago) * 0.02, 2),
            uv_index=max(0.0, round(math.sin((24 - hours_ago - 6) / 24 * math.pi) * 7, 1)),
        )


class UnconfiguredSource(WeatherSource):
    """Stands in for the live source in production when credentials are missing."""

    name = "unconfigured"

    def __init__(self, message: str = "Missing WU_API_KEY or WU_STATION_ID environment variables"):
        self.message = message

    async def latest(self) -> LatestWeather:
        raise ConfigurationError(self.message)

    async def history(self) -> HistoryPayload:
        raise ConfigurationError(self.message)


def select_source(settings: Settings, client: httpx.AsyncClient) -> WeatherSource:
    """Choose the data source once, from the resolved configuration."""
    if settings.has_credentials:
        source: WeatherSource = LiveSource(client, settings)
    elif settings.is_production:
        source = UnconfiguredSource()
    else:
        source = SyntheticSource()
    logger.info("Using %s weather source (environment=%s)", source.name, settings.environment)
    return source
