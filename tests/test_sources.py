# ABOUTME: Contract tests for the live, synthetic, and unconfigured weather sources.
# ABOUTME: Validates the two-window history fan-out, partial-failure tolerance, and source selection.

import random
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import httpx
import pytest
from conftest import json_response, mock_client

from pws_dashboard.config import Settings
from pws_dashboard.errors import ConfigurationError, UpstreamFetchError
from pws_dashboard.normalize import format_timestamp
from pws_dashboard.sources import LiveSource, SyntheticSource, UnconfiguredSource, select_source

NOW = datetime(2024, 5, 2, 6, 0, tzinfo=timezone.utc)


def _epoch(moment: datetime) -> int:
    return int(moment.timestamp())


def _history_client(by_date: dict) -> httpx.AsyncClient:
    """Mock client answering history requests per requested date; values may be responses or exceptions."""
    client = AsyncMock(spec=httpx.AsyncClient)

    async def fake_get(url, params=None):
        result = by_date[params["date"]]
        if isinstance(result, Exception):
            raise result
        return result

    client.get.side_effect = fake_get
    return client


class TestLiveSourceLatest:
    @pytest.mark.asyncio
    async def test_normalizes_current(self, settings, current_record):
        """latest() fetches and normalizes the current observation.

        Implementation: Mocks the current endpoint with the sample record.
        Passing implies: Client and normalizer are wired together with the configured station id.
        """
        client = mock_client(json_response({"observations": [current_record]}))
        latest = await LiveSource(client, settings).latest()
        assert latest.station_name == "Hilltop"
        assert latest.wind_speed_ms == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_station_id_fallback(self, settings):
        """A record with no identity uses the configured station id as its name.

        Implementation: Mocks an observation without neighborhood or stationID.
        Passing implies: The requested station id is the last fallback.
        """
        client = mock_client(json_response({"observations": [{"metric": {"temp": 1.0}}]}))
        latest = await LiveSource(client, settings).latest()
        assert latest.station_name == "KTEST123"


class TestLiveSourceHistory:
    @pytest.mark.asyncio
    async def test_requests_yesterday_and_today_utc(self, settings):
        """history() asks for the previous and current UTC calendar days.

        Implementation: Records the date params of both calls.
        Passing implies: The trailing 24h is covered across midnight.
        """
        client = _history_client(
            {"20240501": json_response({"observations": []}), "20240502": json_response({"observations": []})}
        )
        await LiveSource(client, settings, clock=lambda: NOW).history()
        dates = sorted(call.kwargs["params"]["date"] for call in client.get.call_args_list)
        assert dates == ["20240501", "20240502"]

    @pytest.mark.asyncio
    async def test_merges_filters_and_sorts(self, settings):
        """Rows from both days are merged, filtered to the last 24h, and sorted.

        Implementation: Yesterday holds one stale and one recent row, today holds two recent rows out of order.
        Passing implies: Output is exactly the recent rows in ascending time.
        """
        stale = NOW - timedelta(hours=30)
        recent_y = NOW - timedelta(hours=10)
        recent_t1 = NOW - timedelta(hours=5)
        recent_t2 = NOW - timedelta(hours=1)
        client = _history_client(
            {
                "20240501": json_response({"observations": [{"epoch": _epoch(stale)}, {"epoch": _epoch(recent_y)}]}),
                "20240502": json_response(
                    {"observations": [{"epoch": _epoch(recent_t2)}, {"metric": {}}, {"epoch": _epoch(recent_t1)}]}
                ),
            }
        )
        payload = await LiveSource(client, settings, clock=lambda: NOW).history()
        assert [p.t for p in payload.points] == [format_timestamp(m) for m in (recent_y, recent_t1, recent_t2)]

    @pytest.mark.asyncio
    async def test_one_window_failing_is_tolerated(self, settings):
        """If only one day-window fails, the other day's rows are returned.

        Implementation: Yesterday answers 500, today answers with one row.
        Passing implies: A single failed window does not fail the resource.
        """
        row_time = NOW - timedelta(hours=2)
        client = _history_client(
            {
                "20240501": json_response({}, status_code=500),
                "20240502": json_response({"observations": [{"epoch": _epoch(row_time)}]}),
            }
        )
        payload = await LiveSource(client, settings, clock=lambda: NOW).history()
        assert [p.t for p in payload.points] == [format_timestamp(row_time)]

    @pytest.mark.asyncio
    async def test_both_windows_failing_raises(self, settings):
        """If both day-windows fail, history() raises UpstreamFetchError.

        Implementation: Yesterday raises a transport error and today answers 502.
        Passing implies: Only a total failure is surfaced as a gateway error.
        """
        client = _history_client(
            {
                "20240501": httpx.ConnectError("down"),
                "20240502": json_response({}, status_code=502),
            }
        )
        with pytest.raises(UpstreamFetchError, match="WU history fetch failed"):
            await LiveSource(client, settings, clock=lambda: NOW).history()


class TestSyntheticSource:
    @pytest.mark.asyncio
    async def test_history_has_24_hourly_points(self):
        """Synthetic history is 24 hourly points ending an hour before now.

        Implementation: Generates history with a fixed clock and seeded RNG.
        Passing implies: Sample data has the same shape as a real 24h trend.
        """
        source = SyntheticSource(rng=random.Random(1), clock=lambda: NOW)
        payload = await source.history()
        assert len(payload.points) == 24
        assert payload.points[0].t == format_timestamp(NOW - timedelta(hours=24))
        assert payload.points[-1].t == format_timestamp(NOW - timedelta(hours=1))
        assert all(p.uv_index >= 0 for p in payload.points)

    @pytest.mark.asyncio
    async def test_latest_is_plausible(self):
        """Synthetic latest has an identity, a timestamp, and readings in plausible ranges.

        Implementation: Generates one observation with a seeded RNG.
        Passing implies: The dev dashboard has something realistic to render.
        """
        latest = await SyntheticSource(rng=random.Random(7), clock=lambda: NOW).latest()
        assert latest.station_name == "Sample Station"
        assert latest.timestamp == format_timestamp(NOW)
        assert 18 <= latest.temperature_c <= 26
        assert 0 <= latest.wind_dir_deg < 360
        assert latest.aqi is None


class TestUnconfiguredSource:
    @pytest.mark.asyncio
    async def test_raises_configuration_error(self):
        """Every fetch on the unconfigured source raises ConfigurationError.

        Implementation: Calls both resources.
        Passing implies: Production without credentials answers 500.
        """
        source = UnconfiguredSource()
        with pytest.raises(ConfigurationError, match="WU_API_KEY"):
            await source.latest()
        with pytest.raises(ConfigurationError):
            await source.history()


class TestSelectSource:
    def test_live_with_credentials(self, settings):
        """Credentials select the live source.

        Implementation: Selects with fully configured settings.
        Passing implies: Real data is used whenever it can be.
        """
        assert isinstance(select_source(settings, AsyncMock(spec=httpx.AsyncClient)), LiveSource)

    def test_synthetic_in_development(self):
        """Missing credentials in development select the synthetic source.

        Implementation: Selects with empty development settings.
        Passing implies: Local dev works offline.
        """
        source = select_source(Settings(), AsyncMock(spec=httpx.AsyncClient))
        assert isinstance(source, SyntheticSource)

    def test_unconfigured_in_production(self):
        """Missing credentials in production select the unconfigured source.

        Implementation: Selects with production settings lacking a station id.
        Passing implies: Production never serves fake data.
        """
        source = select_source(Settings(api_key="k", environment="production"), AsyncMock(spec=httpx.AsyncClient))
        assert isinstance(source, UnconfiguredSource)
