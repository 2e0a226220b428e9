"""AccuWeather named-location provider.

Shipped disabled (``accuweather_enabled``): the API key's origin
restrictions block browser-side use, so the fetcher returns None but keeps
its place in the fallback order.
"""

from datetime import UTC, datetime
from typing import Any

from weather_resolver.config import Settings
from weather_resolver.models import ForecastEntry, ProviderName, WeatherInfo, as_float, as_text
from weather_resolver.services.cache import CacheService, coordinate_key
from weather_resolver.services.context import CancellationToken, ProviderContext
from weather_resolver.services.providers.base import WeatherFetcher
from weather_resolver.services.queries import normalize_location_key
from weather_resolver.services.upstream import (
    UpstreamCancelledError,
    UpstreamClient,
    UpstreamError,
)


class AccuWeatherFetcher(WeatherFetcher):
    """Location-key lookup followed by the 12 hour hourly forecast."""

    name = ProviderName.ACCUWEATHER

    def __init__(self, settings: Settings, client: UpstreamClient) -> None:
        super().__init__()
        self.enabled = settings.accuweather_enabled
        self._api_key = settings.accuweather_api_key
        self._search_url = settings.accuweather_search_url
        self._geoposition_url = settings.accuweather_geoposition_url
        self._forecast_url = settings.accuweather_forecast_url.rstrip("/")
        self._client = client
        self.location_cache: CacheService[str] = CacheService(
            "accuweather_location", max_size=settings.cache_max_size
        )
        self.forecast_cache: CacheService[list[ForecastEntry]] = CacheService(
            "accuweather_forecast",
            max_size=settings.cache_max_size,
            ttl_seconds=settings.forecast_cache_ttl_seconds,
        )

    async def _fetch(self, ctx: ProviderContext) -> WeatherInfo | None:
        if not self.enabled or not self._api_key:
            return None
        location_key = await self._resolve_location_key(ctx)
        if location_key is None:
            return None
        entries = await self._load_forecast(location_key, ctx.cancellation)
        if not entries:
            return None
        return self._nearest_info(entries, ctx.target_ms)

    def clear_cache(self) -> None:
        self.location_cache.clear()
        self.forecast_cache.clear()

    async def _resolve_location_key(self, ctx: ProviderContext) -> str | None:
        for query in ctx.queries:
            normalized = normalize_location_key(query)
            cached = self.location_cache.get(normalized)
            if cached is not None:
                return cached
            try:
                data = await self._client.get_json(
                    self.name,
                    self._search_url,
                    {"apikey": self._api_key or "", "q": query},
                    ctx.cancellation,
                )
            except UpstreamCancelledError:
                raise
            except UpstreamError as e:
                self._log.debug("Location search failed", query=query, error=str(e))
                continue
            key = _first_key(data)
            if key is not None:
                self.location_cache.set(normalized, key)
                return key

        coords = await ctx.ensure_coordinates()
        if coords is None:
            return None
        coord_key = coordinate_key(coords)
        cached = self.location_cache.get(coord_key)
        if cached is not None:
            return cached

        data = await self._client.get_json(
            self.name,
            self._geoposition_url,
            {"apikey": self._api_key or "", "q": coords.as_query()},
            ctx.cancellation,
        )
        key = as_text(data.get("Key")) if isinstance(data, dict) else None
        if key is not None:
            self.location_cache.set(coord_key, key)
        return key

    async def _load_forecast(
        self, location_key: str, cancellation: CancellationToken
    ) -> list[ForecastEntry]:
        cache_key = f"accu:{location_key}"
        cached = self.forecast_cache.get(cache_key)
        if cached is not None:
            return cached

        payload = await self._client.get_json(
            self.name,
            f"{self._forecast_url}/{location_key}",
            {"apikey": self._api_key or "", "metric": "true", "details": "true"},
            cancellation,
        )
        entries = parse_forecast(payload)
        if entries:
            self.forecast_cache.set(cache_key, entries)
        return entries


def _first_key(data: Any) -> str | None:
    if isinstance(data, list) and data and isinstance(data[0], dict):
        return as_text(data[0].get("Key"))
    return None


def _parse_time(value: Any) -> int | None:
    text = as_text(value)
    if text is None:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp() * 1000)


def parse_forecast(payload: Any) -> list[ForecastEntry]:
    """Normalize AccuWeather hourly entries, converting between C and F."""
    if not isinstance(payload, list):
        return []

    entries = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        temperature = item.get("Temperature")
        value = as_float(temperature.get("Value")) if isinstance(temperature, dict) else None
        unit = temperature.get("Unit") if isinstance(temperature, dict) else None
        temp_c = temp_f = None
        if value is not None:
            temp_c = as_float((value - 32) * 5 / 9) if unit == "F" else value
            temp_f = as_float(value * 9 / 5 + 32) if unit == "C" else value
        entries.append(
            ForecastEntry(
                timestamp_ms=_parse_time(item.get("DateTime")),
                temperature_c=temp_c,
                temperature_f=temp_f,
                description=as_text(item.get("IconPhrase")),
            )
        )
    return entries
