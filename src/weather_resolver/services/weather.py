"""Weather service orchestrating providers, geocoding and caches."""

from collections.abc import Callable, Mapping
from datetime import datetime

import structlog
from prometheus_client import Counter

from weather_resolver.models import PROVIDER_ORDER, Coordinate, ProviderName, WeatherInfo
from weather_resolver.services.context import CancellationToken, ProviderContext, RequestContext
from weather_resolver.services.geocoding import Geocoder
from weather_resolver.services.providers import WeatherFetcher
from weather_resolver.services.selection import resolve_target_timestamp
from weather_resolver.services.store import ProviderStore

logger = structlog.get_logger()

# Metrics
resolutions = Counter(
    "weather_resolutions_total",
    "Weather resolutions by answering provider",
    ["provider"],
)

TargetTime = datetime | str | int | None


class WeatherService:
    """Resolves weather with provider fallback.

    The active provider is tried first, then the rest in fixed priority
    order. The first non-empty answer wins. Provider failures never reach
    the caller: when nothing answers the result is None.
    """

    def __init__(
        self,
        geocoder: Geocoder,
        fetchers: Mapping[ProviderName, WeatherFetcher],
        active_provider: ProviderName = ProviderName.OPENWEATHER,
        order: tuple[ProviderName, ...] = PROVIDER_ORDER,
    ) -> None:
        """Initialize service with geocoder and provider fetchers."""
        self._geocoder = geocoder
        self._fetchers = dict(fetchers)
        self._order = order
        self.active_provider = active_provider
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def start(self, store: ProviderStore) -> None:
        """Follow the store's provider selection until ``stop``."""
        if self._unsubscribe is not None:
            return
        self.active_provider = store.get_current_provider()
        self._unsubscribe = store.subscribe(self._on_provider_change)
        logger.info("Weather service started", provider=str(self.active_provider))

    def stop(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    def _on_provider_change(self, provider: ProviderName) -> None:
        logger.info(
            "Weather provider switched",
            previous=str(self.active_provider),
            provider=str(provider),
        )
        self.active_provider = provider
        self.clear_caches()

    def clear_caches(self) -> None:
        """Drop geocoding and all provider caches."""
        self._geocoder.cache.clear()
        for fetcher in self._fetchers.values():
            fetcher.clear_cache()

    def caches_healthy(self) -> bool:
        return self._geocoder.cache.is_healthy()

    def provider_order(self) -> list[ProviderName]:
        """Try order for the next call: active provider first."""
        rest = [name for name in self._order if name != self.active_provider]
        return [self.active_provider, *rest]

    async def resolve_by_location(
        self,
        location: str,
        target: TargetTime = None,
        cancellation: CancellationToken | None = None,
    ) -> WeatherInfo | None:
        """Get weather for a free-text location."""
        ctx = RequestContext(
            raw_location=location,
            target_ms=resolve_target_timestamp(target),
            cancellation=cancellation or CancellationToken(),
        )
        return await self.resolve_weather(ctx)

    async def resolve_by_coordinates(
        self,
        lat: float,
        lon: float,
        target: TargetTime = None,
        cancellation: CancellationToken | None = None,
    ) -> WeatherInfo | None:
        """Get weather for a coordinate pair."""
        ctx = RequestContext(
            coordinates=Coordinate(latitude=lat, longitude=lon),
            target_ms=resolve_target_timestamp(target),
            cancellation=cancellation or CancellationToken(),
        )
        return await self.resolve_weather(ctx)

    async def resolve_weather(self, request: RequestContext) -> WeatherInfo | None:
        """Run the provider fallback chain for one request.

        Args:
            request: Location or coordinates, target time and cancellation token

        Returns:
            The first provider's reading, or None if no provider answered
            or the request was cancelled
        """
        ctx = ProviderContext(request, self._geocoder.geocode)
        log = logger.bind(location=request.raw_location, target_ms=request.target_ms)

        for name in self.provider_order():
            if request.cancellation.cancelled:
                log.debug("Weather request cancelled")
                return None

            fetcher = self._fetchers.get(name)
            if fetcher is None:
                continue

            try:
                result = await fetcher.fetch(ctx)
            except Exception as e:
                log.warning("Provider raised, trying next", provider=str(name), error=str(e))
                continue

            if request.cancellation.cancelled:
                log.debug("Weather request cancelled")
                return None

            if result is not None:
                resolutions.labels(provider=str(name)).inc()
                log.info("Weather resolved", provider=str(name), icon=str(result.icon))
                return result

        resolutions.labels(provider="none").inc()
        log.info("No provider returned weather")
        return None
