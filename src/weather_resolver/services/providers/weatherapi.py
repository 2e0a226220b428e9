"""WeatherAPI.com query-string forecast provider."""

from typing import Any

from weather_resolver.config import Settings
from weather_resolver.models import (
    ForecastEntry,
    ProviderName,
    WeatherInfo,
    as_float,
    as_text,
    epoch_ms,
)
from weather_resolver.services.cache import CacheService
from weather_resolver.services.context import CancellationToken, ProviderContext
from weather_resolver.services.providers.base import WeatherFetcher
from weather_resolver.services.queries import normalize_location_key
from weather_resolver.services.upstream import (
    UpstreamCancelledError,
    UpstreamClient,
    UpstreamError,
)


class WeatherApiFetcher(WeatherFetcher):
    """Combined geocode + forecast lookups against WeatherAPI.com.

    Text queries are tried first since the endpoint resolves place names
    itself; coordinates are only needed when every query misses.
    """

    name = ProviderName.WEATHERAPI

    def __init__(self, settings: Settings, client: UpstreamClient) -> None:
        super().__init__()
        self._api_key = settings.weatherapi_api_key
        self._url = settings.weatherapi_forecast_url
        self._client = client
        self.hours_cache: CacheService[list[ForecastEntry]] = CacheService(
            "weatherapi_hours",
            max_size=settings.cache_max_size,
            ttl_seconds=settings.result_cache_ttl_seconds,
        )

    async def _fetch(self, ctx: ProviderContext) -> WeatherInfo | None:
        if not self._api_key:
            return None

        for query in ctx.queries:
            try:
                info = await self._load_forecast(query, ctx.target_ms, ctx.cancellation)
            except UpstreamCancelledError:
                raise
            except UpstreamError as e:
                self._log.debug("Forecast query failed", query=query, error=str(e))
                continue
            if info is not None:
                return info

        coords = await ctx.ensure_coordinates()
        if coords is None:
            return None
        return await self._load_forecast(coords.as_query(), ctx.target_ms, ctx.cancellation)

    def clear_cache(self) -> None:
        self.hours_cache.clear()

    async def _load_forecast(
        self, query: str, target_ms: int, cancellation: CancellationToken
    ) -> WeatherInfo | None:
        normalized = normalize_location_key(query)
        hours = self.hours_cache.get(normalized)
        if hours is None:
            params = {
                "key": self._api_key or "",
                "q": query,
                "days": "3",
                "alerts": "no",
                "aqi": "no",
            }
            payload = await self._client.get_json(self.name, self._url, params, cancellation)
            hours = parse_forecast(payload)
            if not hours:
                return None
            self.hours_cache.set(normalized, hours)
        return self._nearest_info(hours, target_ms)


def parse_forecast(payload: Any) -> list[ForecastEntry]:
    """Flatten ``forecast.forecastday[].hour[]`` into one series."""
    forecast = payload.get("forecast") if isinstance(payload, dict) else None
    days = forecast.get("forecastday") if isinstance(forecast, dict) else None
    if not isinstance(days, list):
        return []

    entries = []
    for day in days:
        hours = day.get("hour") if isinstance(day, dict) else None
        if not isinstance(hours, list):
            continue
        for hour in hours:
            if not isinstance(hour, dict):
                continue
            epoch = as_float(hour.get("time_epoch"))
            condition = hour.get("condition")
            entries.append(
                ForecastEntry(
                    timestamp_ms=epoch_ms(epoch),
                    temperature_c=as_float(hour.get("temp_c")),
                    temperature_f=as_float(hour.get("temp_f")),
                    description=as_text(condition.get("text"))
                    if isinstance(condition, dict)
                    else None,
                )
            )
    return entries
