"""FastAPI dependencies."""

import asyncio
import contextlib
from collections.abc import AsyncIterator
from typing import Annotated

import structlog
from fastapi import Depends, Request

from weather_resolver.config import Settings, get_settings
from weather_resolver.services.context import CancellationToken
from weather_resolver.services.geocoding import Geocoder
from weather_resolver.services.providers import build_fetchers
from weather_resolver.services.store import InMemoryProviderStore
from weather_resolver.services.upstream import UpstreamClient
from weather_resolver.services.weather import WeatherService

logger = structlog.get_logger()

# How often an in-flight request checks whether its client is still there
DISCONNECT_POLL_SECONDS = 0.25

# Singleton instances for services
_provider_store: InMemoryProviderStore | None = None
_weather_service: WeatherService | None = None


def get_provider_store(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InMemoryProviderStore:
    """Get provider store instance (singleton)."""
    global _provider_store
    if _provider_store is None:
        _provider_store = InMemoryProviderStore(settings.weather_provider)
    return _provider_store


def get_weather_service(
    settings: Annotated[Settings, Depends(get_settings)],
    store: Annotated[InMemoryProviderStore, Depends(get_provider_store)],
) -> WeatherService:
    """Get weather service instance (singleton), subscribed to the store."""
    global _weather_service
    if _weather_service is None:
        client = UpstreamClient(settings)
        _weather_service = WeatherService(
            Geocoder(settings, client),
            build_fetchers(settings, client),
        )
        _weather_service.start(store)
    return _weather_service


async def watch_disconnect(
    request: Request, token: CancellationToken, interval: float = DISCONNECT_POLL_SECONDS
) -> None:
    """Cancel ``token`` once the client has gone away."""
    while not token.cancelled:
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling lookup", path=request.url.path)
            token.cancel()
            return
        await asyncio.sleep(interval)


@contextlib.asynccontextmanager
async def disconnect_cancellation(request: Request) -> AsyncIterator[CancellationToken]:
    """Yield a token that is cancelled if the client disconnects inside the block."""
    token = CancellationToken()
    watcher = asyncio.create_task(watch_disconnect(request, token))
    try:
        yield token
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher


# Type aliases for dependency injection
SettingsDep = Annotated[Settings, Depends(get_settings)]
ProviderStoreDep = Annotated[InMemoryProviderStore, Depends(get_provider_store)]
WeatherServiceDep = Annotated[WeatherService, Depends(get_weather_service)]


def reset_singletons() -> None:
    """Stop the weather service and drop the singletons (shutdown and tests)."""
    global _provider_store, _weather_service
    if _weather_service is not None:
        _weather_service.stop()
    _provider_store = None
    _weather_service = None
