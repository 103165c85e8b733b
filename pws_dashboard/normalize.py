# ABOUTME: Normalizes loosely-typed PWS API records into LatestWeather and HistoryPoint models.
# ABOUTME: Resolves each field through an ordered lookup chain and merges the two history day-windows.

import logging
import math
from datetime import datetime, timedelta, timezone

from pws_dashboard.models import HistoryPoint, LatestWeather, LocationInfo
from pws_dashboard.units import kph_to_ms

logger = logging.getLogger(__name__)

HISTORY_WINDOW = timedelta(hours=24)

# Lookup chains: the first path holding a finite number wins.
CURRENT_TEMPERATURE = (("metric", "temp"),)
CURRENT_PRESSURE = (("metric", "pressure"),)
CURRENT_WIND_SPEED = (("metric", "windSpeed"), ("metric", "windspeed"))
CURRENT_WIND_GUST = (("metric", "windGust"), ("metric", "windgust"))

HISTORY_TEMPERATURE = (("metric", "tempAvg"),)
HISTORY_PRESSURE = (
    ("metric", "pressureMean"),
    ("metric", "pressureAvg"),
    ("metric", "pressureMax"),
    ("metric", "pressureMin"),
)
HISTORY_WIND_SPEED = (("metric", "windspeedAvg"), ("metric", "windSpeedAvg"))
HISTORY_WIND_GUST = (("metric", "windgustHigh"), ("metric", "windGustHigh"))

RAIN_RATE = (("metric", "precipRate"),)
RAIN_TOTAL = (("metric", "precipTotal"),)


def _dig(record: dict, path: tuple[str, ...]):
    """Walk a key path through nested dicts, returning None if any step is missing."""
    value = record
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _number(value) -> float | None:
    """Accept finite ints and floats; booleans, NaN, and infinities count as absent."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def first_number(record: dict, *paths: tuple[str, ...]) -> float | None:
    """Return the first finite number found along the given key paths."""
    for path in paths:
        value = _number(_dig(record, path))
        if value is not None:
            return value
    return None


def _text(value) -> str | None:
    return value if isinstance(value, str) and value else None


def format_timestamp(moment: datetime) -> str:
    """Format an instant as ISO-8601 UTC with millisecond precision and a Z suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def epoch_to_iso(epoch_seconds: float) -> str | None:
    """Format epoch seconds as ISO-8601, or None when the value is outside the datetime range."""
    try:
        return format_timestamp(datetime.fromtimestamp(epoch_seconds, tz=timezone.utc))
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string, assuming UTC when no offset is given."""
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _current_timestamp(record: dict) -> str | None:
    obs_time = _text(record.get("obsTimeUtc"))
    if obs_time:
        try:
            return format_timestamp(parse_timestamp(obs_time))
        except ValueError:
            logger.debug("Unparseable obsTimeUtc %r, falling back to epoch", obs_time)
    epoch = _number(record.get("epoch"))
    if epoch is not None:
        return epoch_to_iso(epoch)
    return None


def normalize_current(record: dict, station_id: str | None = None) -> LatestWeather:
    """Map one current-observation record onto LatestWeather.

    Wind readings arrive in km/h and are stored as m/s. AQI has no upstream source and is always absent.
    """
    neighborhood = _text(record.get("neighborhood"))
    return LatestWeather(
        station_name=neighborhood or _text(record.get("stationID")) or station_id,
        location=LocationInfo(
            name=neighborhood,
            lat=first_number(record, ("lat",)),
            lon=first_number(record, ("lon",)),
        ),
        timestamp=_current_timestamp(record),
        temperature_c=first_number(record, *CURRENT_TEMPERATURE),
        humidity_pct=first_number(record, ("humidity",)),
        pressure_hpa=first_number(record, *CURRENT_PRESSURE),
        wind_speed_ms=kph_to_ms(first_number(record, *CURRENT_WIND_SPEED)),
        wind_gust_ms=kph_to_ms(first_number(record, *CURRENT_WIND_GUST)),
        wind_dir_deg=first_number(record, ("winddir",)),
        rain_rate_mm_h=first_number(record, *RAIN_RATE),
        rain_daily_mm=first_number(record, *RAIN_TOTAL),
        uv_index=first_number(record, ("uv",)),
        solar_w_m2=first_number(record, ("solarRadiation",)),
        aqi=None,
    )


def normalize_history_row(row: dict) -> HistoryPoint | None:
    """Map one history summary row onto HistoryPoint, or None when it has no epoch."""
    epoch = _number(row.get("epoch"))
    t = epoch_to_iso(epoch) if epoch is not None else None
    if t is None:
        return None
    return HistoryPoint(
        t=t,
        temperature_c=first_number(row, *HISTORY_TEMPERATURE),
        humidity_pct=first_number(row, ("humidityAvg",)),
        pressure_hpa=first_number(row, *HISTORY_PRESSURE),
        wind_speed_ms=kph_to_ms(first_number(row, *HISTORY_WIND_SPEED)),
        wind_gust_ms=kph_to_ms(first_number(row, *HISTORY_WIND_GUST)),
        rain_rate_mm_h=first_number(row, *RAIN_RATE),
        rain_daily_mm=first_number(row, *RAIN_TOTAL),
        uv_index=first_number(row, ("uvHigh",)),
        solar_w_m2=first_number(row, ("solarRadiationHigh",)),
    )


def normalize_history_rows(rows: list[dict]) -> list[HistoryPoint]:
    """Normalize history rows in order, dropping the ones that cannot be placed on the timeline."""
    points = []
    for row in rows:
        point = normalize_history_row(row)
        if point is None:
            logger.debug("Dropping history row without a usable epoch: %r", row)
            continue
        points.append(point)
    return points


def select_recent(points: list[HistoryPoint], now: datetime) -> list[HistoryPoint]:
    """Sort points ascending and keep those inside the trailing 24h window.

    Falls back to the full sorted set when nothing lands in the window.
    """
    ordered = sorted(points, key=lambda p: parse_timestamp(p.t))
    cutoff = now - HISTORY_WINDOW
    recent = [p for p in ordered if parse_timestamp(p.t) >= cutoff]
    return recent if recent else ordered
