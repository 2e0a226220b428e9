"""Forward geocoding through the OpenWeather geocoding API."""

from typing import Any

import structlog

from weather_resolver.config import Settings
from weather_resolver.models import Coordinate, as_float
from weather_resolver.services.cache import CacheService
from weather_resolver.services.context import CancellationToken
from weather_resolver.services.queries import build_location_queries, normalize_location_key
from weather_resolver.services.upstream import (
    UpstreamCancelledError,
    UpstreamClient,
    UpstreamError,
)

logger = structlog.get_logger()


class Geocoder:
    """Resolves free-text locations to coordinates.

    Successful lookups are cached without expiry under the caller's
    normalized location and under the candidate query that matched.
    """

    def __init__(self, settings: Settings, client: UpstreamClient) -> None:
        self._api_key = settings.openweather_api_key
        self._url = settings.geocoding_url
        self._client = client
        self.cache: CacheService[Coordinate] = CacheService(
            "geocode", max_size=settings.cache_max_size
        )

    async def geocode(self, location: str, cancellation: CancellationToken) -> Coordinate | None:
        """Resolve ``location``, trying each query candidate in order.

        Returns None when no candidate matches, when no API key is
        configured, or when the call is cancelled. Never raises.
        """
        if not self._api_key:
            return None

        cache_key = normalize_location_key(location)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Geocode cache hit", location=cache_key, cache_hit=True)
            return cached

        for query in build_location_queries(location):
            try:
                coords = await self._lookup(query, cancellation)
            except UpstreamCancelledError:
                logger.debug("Geocoding cancelled", location=cache_key)
                return None
            except UpstreamError as e:
                logger.warning("Geocoding request failed", query=query, error=str(e))
                continue

            if coords is not None:
                self.cache.set(cache_key, coords)
                self.cache.set(normalize_location_key(query), coords)
                logger.info(
                    "Geocoded location",
                    location=cache_key,
                    query=query,
                    lat=coords.latitude,
                    lon=coords.longitude,
                )
                return coords

        logger.info("No geocoding match", location=cache_key)
        return None

    async def _lookup(self, query: str, cancellation: CancellationToken) -> Coordinate | None:
        params = {"q": query, "limit": "1", "appid": self._api_key or ""}
        data = await self._client.get_json("geocoding", self._url, params, cancellation)
        return self._parse_response(data)

    def _parse_response(self, data: Any) -> Coordinate | None:
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            return None
        lat = as_float(data[0].get("lat"))
        lon = as_float(data[0].get("lon"))
        if lat is None or lon is None:
            return None
        return Coordinate(latitude=lat, longitude=lon)
