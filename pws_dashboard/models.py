# ABOUTME: Pydantic BaseModels for normalized weather-station observations.
# ABOUTME: Defines the stable shapes served by the HTTP API and cached by the gateway.

from pydantic import BaseModel, Field


class LocationInfo(BaseModel):
    """Where the station reports itself to be."""

    name: str | None = None
    lat: float | None = None
    lon: float | None = None


class LatestWeather(BaseModel):
    """The most recent observation from the station, in SI units."""

    station_name: str | None = None
    location: LocationInfo = Field(default_factory=LocationInfo)
    timestamp: str | None = None
    temperature_c: float | None = None
    humidity_pct: float | None = None
    pressure_hpa: float | None = None
    wind_speed_ms: float | None = None
    wind_gust_ms: float | None = None
    wind_dir_deg: float | None = None
    rain_rate_mm_h: float | None = None
    rain_daily_mm: float | None = None
    uv_index: float | None = None
    solar_w_m2: float | None = None
    aqi: float | None = None


class HistoryPoint(BaseModel):
    """One historical sample on the 24h timeline."""

    t: str
    temperature_c: float | None = None
    humidity_pct: float | None = None
    pressure_hpa: float | None = None
    wind_speed_ms: float | None = None
    wind_gust_ms: float | None = None
    rain_rate_mm_h: float | None = None
    rain_daily_mm: float | None = None
    uv_index: float | None = None
    solar_w_m2: float | None = None


class HistoryPayload(BaseModel):
    """Body of the history endpoint."""

    points: list[HistoryPoint] = []


class ErrorBody(BaseModel):
    """Body of every non-2xx response."""

    error: str
