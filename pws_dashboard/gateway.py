# ABOUTME: Read-through TTL cache with single-flight de-duplication for each weather resource.
# ABOUTME: WeatherGateway owns the per-resource state for "latest" and "history" in one process.

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pws_dashboard.models import HistoryPayload, LatestWeather
from pws_dashboard.sources import WeatherSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 30.0


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A payload and the monotonic instant it was produced."""

    payload: T
    created_at: float


class CachedResource(Generic[T]):
    """Serves one resource from cache, sharing a single in-flight fetch between concurrent callers.

    State moves Empty -> Fetching -> Cached -> Expired -> Fetching. Failures are never cached,
    and the in-flight marker is cleared whether the fetch succeeds or fails. A caller that is
    cancelled while waiting does not cancel the fetch; it still populates the cache.
    """

    def __init__(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.ttl = ttl
        self._fetch = fetch
        self._clock = clock
        self._entry: CacheEntry[T] | None = None
        self._in_flight: asyncio.Task | None = None

    @property
    def entry(self) -> CacheEntry[T] | None:
        return self._entry

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    def is_fresh(self) -> bool:
        return self._entry is not None and self._clock() - self._entry.created_at < self.ttl

    async def get(self) -> T:
        if self.is_fresh():
            return self._entry.payload
        # No await between the check and the assignment, so this is atomic on the event loop.
        if self._in_flight is None:
            self._in_flight = asyncio.create_task(self._refresh())
            self._in_flight.add_done_callback(self._settle)
        return await asyncio.shield(self._in_flight)

    def _settle(self, task: asyncio.Task) -> None:
        # Covers a task cancelled before it ever ran, where _refresh's finally never executes.
        if self._in_flight is task:
            self._in_flight = None
        # Waiters may all have gone away; mark the exception retrieved so it is not reported as lost.
        if not task.cancelled():
            task.exception()

    async def _refresh(self) -> T:
        try:
            payload = await self._fetch()
            self._entry = CacheEntry(payload=payload, created_at=self._clock())
            logger.info("Refreshed %s cache", self.name)
            return payload
        finally:
            self._in_flight = None

    def clear(self) -> None:
        self._entry = None


class WeatherGateway:
    """Cached access to the latest observation and the 24h history for one station."""

    def __init__(
        self,
        source: WeatherSource,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.latest_resource: CachedResource[LatestWeather] = CachedResource(
            "latest", source.latest, ttl=ttl, clock=clock
        )
        self.history_resource: CachedResource[HistoryPayload] = CachedResource(
            "history", source.history, ttl=ttl, clock=clock
        )

    async def latest(self) -> LatestWeather:
        return await self.latest_resource.get()

    async def history(self) -> HistoryPayload:
        return await self.history_resource.get()
