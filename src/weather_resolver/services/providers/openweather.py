"""OpenWeather 5 day / 3 hour forecast provider."""

from typing import Any

from weather_resolver.config import Settings
from weather_resolver.models import (
    Coordinate,
    ForecastEntry,
    ProviderName,
    WeatherInfo,
    as_float,
    as_text,
    epoch_ms,
)
from weather_resolver.services.cache import CacheService, coordinate_key
from weather_resolver.services.context import CancellationToken, ProviderContext
from weather_resolver.services.providers.base import WeatherFetcher
from weather_resolver.services.upstream import UpstreamClient


class OpenWeatherFetcher(WeatherFetcher):
    """Coordinate-based forecast series from OpenWeather."""

    name = ProviderName.OPENWEATHER

    def __init__(self, settings: Settings, client: UpstreamClient) -> None:
        super().__init__()
        self._api_key = settings.openweather_api_key
        self._url = settings.openweather_forecast_url
        self._client = client
        self.forecast_cache: CacheService[list[ForecastEntry]] = CacheService(
            "openweather_forecast",
            max_size=settings.cache_max_size,
            ttl_seconds=settings.forecast_cache_ttl_seconds,
        )

    async def _fetch(self, ctx: ProviderContext) -> WeatherInfo | None:
        if not self._api_key:
            return None
        coords = await ctx.ensure_coordinates()
        if coords is None:
            return None
        entries = await self._load_forecast(coords, ctx.cancellation)
        if not entries:
            return None
        return self._nearest_info(entries, ctx.target_ms)

    def clear_cache(self) -> None:
        self.forecast_cache.clear()

    async def _load_forecast(
        self, coords: Coordinate, cancellation: CancellationToken
    ) -> list[ForecastEntry]:
        cache_key = f"ow:{coordinate_key(coords)}"
        cached = self.forecast_cache.get(cache_key)
        if cached is not None:
            self._log.info("Cache hit for forecast series", key=cache_key, cache_hit=True)
            return cached

        params = {
            "lat": str(coords.latitude),
            "lon": str(coords.longitude),
            "units": "metric",
            "appid": self._api_key or "",
        }
        payload = await self._client.get_json(self.name, self._url, params, cancellation)
        entries = parse_forecast(payload)
        if entries:
            self.forecast_cache.set(cache_key, entries)
        return entries


def parse_forecast(payload: Any) -> list[ForecastEntry]:
    """Normalize an OpenWeather ``list`` of 3-hourly readings."""
    items = payload.get("list") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        return []

    entries = []
    for item in items:
        if not isinstance(item, dict):
            continue
        dt = as_float(item.get("dt"))
        main = item.get("main")
        temp_c = as_float(main.get("temp")) if isinstance(main, dict) else None
        entries.append(
            ForecastEntry(
                # dt of 0 means missing
                timestamp_ms=epoch_ms(dt) if dt else None,
                temperature_c=temp_c,
                temperature_f=_fahrenheit(temp_c),
                description=_description(item.get("weather")),
            )
        )
    return entries


def _fahrenheit(temp_c: float | None) -> float | None:
    temp_f = as_float(temp_c * 9 / 5 + 32) if temp_c is not None else None
    return float(round(temp_f)) if temp_f is not None else None


def _description(conditions: Any) -> str | None:
    if not isinstance(conditions, list) or not conditions or not isinstance(conditions[0], dict):
        return None
    first = conditions[0]
    return as_text(first.get("description")) or as_text(first.get("main"))
