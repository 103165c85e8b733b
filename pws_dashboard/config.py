# ABOUTME: Runtime configuration loaded from the environment and an optional .env file.
# ABOUTME: Resolves PWS API credentials, deployment mode, and cache settings into a Settings model.

import logging
import os

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel

from pws_dashboard.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.weather.com/v2"
DEFAULT_CACHE_TTL_SECONDS = 30.0

REQUIRED_VARS = ("WU_API_KEY", "WU_STATION_ID")


class Settings(BaseModel):
    """Resolved configuration for one server process."""

    api_key: str | None = None
    station_id: str | None = None
    environment: str = "development"
    base_url: str = DEFAULT_BASE_URL
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.station_id)


def _get_env(name: str) -> str | None:
    """Read an environment variable, treating blank values as unset."""
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def load_settings() -> Settings:
    """Load settings from the process environment, after applying any .env file."""
    load_dotenv(find_dotenv(usecwd=True))
    ttl = _get_env("WEATHER_CACHE_TTL_SECONDS")
    return Settings(
        api_key=_get_env("WU_API_KEY"),
        station_id=_get_env("WU_STATION_ID"),
        environment=(_get_env("APP_ENV") or "development").lower(),
        base_url=_get_env("WU_BASE_URL") or DEFAULT_BASE_URL,
        cache_ttl_seconds=float(ttl) if ttl else DEFAULT_CACHE_TTL_SECONDS,
    )


def validate_settings(settings: Settings) -> Settings:
    """Raise ConfigurationError naming every missing credential.

    Called at server startup in production so a misconfigured deployment refuses to boot.
    """
    missing = [
        name
        for name, value in zip(REQUIRED_VARS, (settings.api_key, settings.station_id))
        if not value
    ]
    if missing:
        logger.error("Environment validation failed, missing: %s", ", ".join(missing))
        raise ConfigurationError(f"Missing {' or '.join(missing)} environment variables")
    return settings
