"""Weather provider fetchers."""

from weather_resolver.config import Settings
from weather_resolver.models import PROVIDER_ORDER, ProviderName
from weather_resolver.services.providers.accuweather import AccuWeatherFetcher
from weather_resolver.services.providers.base import WeatherFetcher
from weather_resolver.services.providers.openweather import OpenWeatherFetcher
from weather_resolver.services.providers.weatherapi import WeatherApiFetcher
from weather_resolver.services.upstream import UpstreamClient

_FETCHERS: dict[ProviderName, type[WeatherFetcher]] = {
    ProviderName.OPENWEATHER: OpenWeatherFetcher,
    ProviderName.ACCUWEATHER: AccuWeatherFetcher,
    ProviderName.WEATHERAPI: WeatherApiFetcher,
}


def build_fetchers(
    settings: Settings, client: UpstreamClient
) -> dict[ProviderName, WeatherFetcher]:
    """Instantiate every provider, keyed by name in priority order."""
    return {name: _FETCHERS[name](settings, client) for name in PROVIDER_ORDER}


__all__ = [
    "AccuWeatherFetcher",
    "OpenWeatherFetcher",
    "WeatherApiFetcher",
    "WeatherFetcher",
    "build_fetchers",
]
