# ABOUTME: Display-side derivations from a normalized observation: sky conditions and readable labels.
# ABOUTME: Covers day/night, rain, wind, cloudiness, online status, compass points, UV/AQI bands, and unit systems.

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel

from pws_dashboard import units
from pws_dashboard.models import LatestWeather
from pws_dashboard.normalize import parse_timestamp

ONLINE_WINDOW = timedelta(minutes=5)

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

UV_BANDS = ((3, "low"), (6, "moderate"), (8, "high"), (11, "very high"))
AQI_BANDS = (
    (50, "good"),
    (100, "moderate"),
    (150, "unhealthy for sensitive groups"),
    (200, "unhealthy"),
    (300, "very unhealthy"),
)


class UnitSystem(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class Conditions(BaseModel):
    """Coarse sky state used to pick the dashboard background."""

    is_night: bool
    is_raining: bool
    is_windy: bool
    cloudiness: str


class DisplayValues(BaseModel):
    """Current readings converted into one unit system, unrounded."""

    unit_system: UnitSystem
    temperature: float | None = None
    temperature_unit: str
    wind_speed: float | None = None
    wind_gust: float | None = None
    wind_unit: str
    pressure: float | None = None
    pressure_unit: str
    rain_rate: float | None = None
    rain_daily: float | None = None
    rain_unit: str


def _below(value: float | None, limit: float) -> bool:
    return value is not None and value < limit


def derive_conditions(latest: LatestWeather, now: datetime | None = None) -> Conditions:
    """Guess day/night, rain, wind and cloud cover from the latest observation.

    Night prefers irradiance and UV; with neither reported it falls back to the local hour of the
    observation (or of `now`).
    """
    solar = latest.solar_w_m2
    uv = latest.uv_index

    if solar is not None and uv is not None:
        is_night = solar < 50 and uv < 1.0
    elif solar is not None:
        is_night = solar < 50
    elif uv is not None:
        is_night = uv < 1.0
    else:
        moment = parse_timestamp(latest.timestamp).astimezone() if latest.timestamp else (now or datetime.now())
        is_night = moment.hour < 6 or moment.hour > 18

    is_raining = (latest.rain_rate_mm_h or 0) > 0.05
    is_windy = (latest.wind_gust_ms or 0) > 6 or (latest.wind_speed_ms or 0) > 4

    if is_night:
        cloudiness = "med"
    elif _below(solar, 150) or _below(uv, 2):
        cloudiness = "high"
    elif _below(solar, 350) or _below(uv, 4):
        cloudiness = "med"
    else:
        cloudiness = "low"

    return Conditions(is_night=is_night, is_raining=is_raining, is_windy=is_windy, cloudiness=cloudiness)


def is_online(latest: LatestWeather | None, now: datetime | None = None) -> bool:
    """A station counts as online when its last observation is under five minutes old."""
    if latest is None or not latest.timestamp:
        return False
    now = now or datetime.now(timezone.utc)
    return now - parse_timestamp(latest.timestamp) < ONLINE_WINDOW


def degrees_to_compass(deg: float | None) -> str:
    if deg is None:
        return "—"
    return COMPASS_POINTS[int((deg % 360) / 22.5 + 0.5) % 16]


def _band(value: float | None, bands, top: str, inclusive: bool) -> str:
    if value is None:
        return "—"
    for limit, label in bands:
        if value <= limit if inclusive else value < limit:
            return label
    return top


def uv_category(uv: float | None) -> str:
    return _band(uv, UV_BANDS, "extreme", inclusive=False)


def aqi_category(aqi: float | None) -> str:
    return _band(aqi, AQI_BANDS, "hazardous", inclusive=True)


def format_relative(iso: str | None, now: datetime | None = None) -> str:
    """Render a timestamp as "42s ago", "5m ago", "3h ago", or an absolute time past a day."""
    if not iso:
        return "—"
    moment = parse_timestamp(iso)
    now = now or datetime.now(timezone.utc)
    diff = round((now - moment).total_seconds())
    if diff < 60:
        return f"{diff}s ago"
    if diff < 3600:
        return f"{diff // 60}m ago"
    if diff < 86400:
        return f"{diff // 3600}h ago"
    return moment.astimezone().strftime("%Y-%m-%d %H:%M")


def display_values(latest: LatestWeather, unit_system: UnitSystem = UnitSystem.METRIC) -> DisplayValues:
    """Convert the SI readings of an observation for display; wind is shown in km/h or mph."""
    if unit_system == UnitSystem.METRIC:
        return DisplayValues(
            unit_system=unit_system,
            temperature=latest.temperature_c,
            temperature_unit="°C",
            wind_speed=units.ms_to_kph(latest.wind_speed_ms),
            wind_gust=units.ms_to_kph(latest.wind_gust_ms),
            wind_unit="km/h",
            pressure=latest.pressure_hpa,
            pressure_unit="hPa",
            rain_rate=latest.rain_rate_mm_h,
            rain_daily=latest.rain_daily_mm,
            rain_unit="mm",
        )
    return DisplayValues(
        unit_system=unit_system,
        temperature=units.celsius_to_fahrenheit(latest.temperature_c),
        temperature_unit="°F",
        wind_speed=units.ms_to_mph(latest.wind_speed_ms),
        wind_gust=units.ms_to_mph(latest.wind_gust_ms),
        wind_unit="mph",
        pressure=units.hpa_to_inhg(latest.pressure_hpa),
        pressure_unit="inHg",
        rain_rate=units.mm_to_inch(latest.rain_rate_mm_h),
        rain_daily=units.mm_to_inch(latest.rain_daily_mm),
        rain_unit="in",
    )
