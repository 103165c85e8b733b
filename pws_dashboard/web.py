# ABOUTME: ASGI web entry point serving normalized weather-station data as JSON.
# ABOUTME: Starlette app with /weather/latest and /weather/history backed by a cached WeatherGateway.

import logging
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from pws_dashboard.config import Settings, load_settings, validate_settings
from pws_dashboard.errors import WeatherError
from pws_dashboard.gateway import WeatherGateway
from pws_dashboard.models import ErrorBody
from pws_dashboard.pws_api import create_http_client
from pws_dashboard.sources import WeatherSource, select_source

logger = logging.getLogger(__name__)

CACHE_HEADERS = {"Cache-Control": "public, max-age=30, stale-while-revalidate=15"}
NO_STORE_HEADERS = {"Cache-Control": "no-store"}


def error_response(err: WeatherError) -> JSONResponse:
    """Turn a gateway error into a structured, uncacheable JSON response."""
    if err.status_code >= 500:
        logger.warning("Weather request failed with %s: %s", err.status_code, err)
    return JSONResponse(
        ErrorBody(error=str(err)).model_dump(),
        status_code=err.status_code,
        headers=NO_STORE_HEADERS,
    )


async def latest_weather(request: Request) -> JSONResponse:
    gateway: WeatherGateway = request.app.state.gateway
    try:
        data = await gateway.latest()
    except WeatherError as e:
        return error_response(e)
    return JSONResponse(data.model_dump(mode="json", exclude_none=True), headers=CACHE_HEADERS)


async def weather_history(request: Request) -> JSONResponse:
    gateway: WeatherGateway = request.app.state.gateway
    try:
        data = await gateway.history()
    except WeatherError as e:
        return error_response(e)
    return JSONResponse(data.model_dump(mode="json", exclude_none=True), headers=CACHE_HEADERS)


async def healthz(request: Request) -> JSONResponse:
    gateway: WeatherGateway = request.app.state.gateway
    return JSONResponse({"status": "ok", "source": gateway.source.name}, headers=NO_STORE_HEADERS)


def create_app(settings: Settings | None = None, source: WeatherSource | None = None) -> Starlette:
    """Build the ASGI app.

    In production, missing credentials abort startup. Pass `source` to bypass source selection,
    e.g. with a fixed source in tests.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: Starlette):
        if settings.is_production:
            validate_settings(settings)
        async with create_http_client() as client:
            app.state.gateway = WeatherGateway(
                source or select_source(settings, client),
                ttl=settings.cache_ttl_seconds,
            )
            yield

    return Starlette(
        routes=[
            Route("/weather/latest", latest_weather),
            Route("/weather/history", weather_history),
            Route("/healthz", healthz),
        ],
        lifespan=lifespan,
    )


app = create_app()
