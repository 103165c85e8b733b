# ABOUTME: Exception types raised by the weather gateway and its data sources.
# ABOUTME: Each error carries the HTTP status the web layer should answer with.


class WeatherError(Exception):
    """Base class for errors surfaced to HTTP clients as `{"error": message}`."""

    status_code = 500


class ConfigurationError(WeatherError):
    """Required upstream credentials are missing."""

    status_code = 500


class UpstreamFetchError(WeatherError):
    """The PWS API failed, was unreachable, or returned an unusable body."""

    status_code = 502
