"""Test fixtures."""

import pytest
from fastapi.testclient import TestClient

from weather_resolver.api.dependencies import reset_singletons
from weather_resolver.config import Settings, get_settings
from weather_resolver.services.geocoding import Geocoder
from weather_resolver.services.providers import build_fetchers
from weather_resolver.services.store import InMemoryProviderStore
from weather_resolver.services.upstream import UpstreamClient
from weather_resolver.services.weather import WeatherService

# A fixed instant: 2024-06-01T12:00:00Z
NOON_MS = 1_717_243_200_000
HOUR_MS = 3_600_000


def openweather_forecast(*readings: tuple[int, float, str]) -> dict:
    """Build an OpenWeather forecast payload from (epoch ms, temp C, description)."""
    return {
        "list": [
            {
                "dt": ts // 1000,
                "main": {"temp": temp},
                "weather": [{"main": desc.split()[-1], "description": desc}],
            }
            for ts, temp, desc in readings
        ]
    }


def weatherapi_forecast(*readings: tuple[int, float, float, str]) -> dict:
    """Build a WeatherAPI payload from (epoch ms, temp C, temp F, condition)."""
    return {
        "forecast": {
            "forecastday": [
                {
                    "hour": [
                        {
                            "time_epoch": ts // 1000,
                            "temp_c": temp_c,
                            "temp_f": temp_f,
                            "condition": {"text": text},
                        }
                        for ts, temp_c, temp_f, text in readings
                    ]
                }
            ]
        }
    }


@pytest.fixture
def settings() -> Settings:
    """Create test settings with every provider credential set."""
    return Settings(
        openweather_api_key="ow-key",
        accuweather_api_key="accu-key",
        weatherapi_api_key="wa-key",
        upstream_timeout_seconds=1.0,
        cache_max_size=1000,
        log_level="DEBUG",
        log_format="text",
    )


@pytest.fixture
def upstream_client(settings: Settings) -> UpstreamClient:
    return UpstreamClient(settings)


@pytest.fixture
def geocoder(settings: Settings, upstream_client: UpstreamClient) -> Geocoder:
    return Geocoder(settings, upstream_client)


@pytest.fixture
def store() -> InMemoryProviderStore:
    return InMemoryProviderStore()


@pytest.fixture
def weather_service(
    settings: Settings,
    upstream_client: UpstreamClient,
    geocoder: Geocoder,
    store: InMemoryProviderStore,
) -> WeatherService:
    """Create a started weather service with real fetchers."""
    service = WeatherService(geocoder, build_fetchers(settings, upstream_client))
    service.start(store)
    yield service
    service.stop()


@pytest.fixture
def app(monkeypatch: pytest.MonkeyPatch):
    """Create test application."""
    monkeypatch.setenv("OPENWEATHER_API_KEY", "ow-key")
    monkeypatch.setenv("WEATHERAPI_API_KEY", "wa-key")
    monkeypatch.setenv("LOG_FORMAT", "text")
    reset_singletons()
    get_settings.cache_clear()

    from weather_resolver.main import create_app

    yield create_app()
    reset_singletons()
    get_settings.cache_clear()


@pytest.fixture
def client(app) -> TestClient:
    """Create test client."""
    return TestClient(app)
