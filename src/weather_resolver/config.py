"""Application configuration management."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from weather_resolver.models import ProviderName


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Server settings
    app_host: str = Field(default="0.0.0.0", description="Server bind host")
    app_port: int = Field(default=8080, description="Server bind port")

    # Provider credentials; a missing key disables that provider
    openweather_api_key: str | None = Field(
        default=None,
        description="OpenWeather API key (geocoding and forecast series)",
    )
    accuweather_api_key: str | None = Field(
        default=None,
        description="AccuWeather API key (named-location lookup)",
    )
    weatherapi_api_key: str | None = Field(
        default=None,
        description="WeatherAPI.com API key (query-string forecast)",
    )
    accuweather_enabled: bool = Field(
        default=False,
        description="Enable the AccuWeather provider (kept in the fallback order either way)",
    )
    weather_provider: ProviderName = Field(
        default=ProviderName.OPENWEATHER,
        description="Provider tried first until the provider store says otherwise",
    )

    # Upstream endpoints
    geocoding_url: str = Field(
        default="https://api.openweathermap.org/geo/1.0/direct",
        description="OpenWeather forward-geocoding endpoint",
    )
    openweather_forecast_url: str = Field(
        default="https://api.openweathermap.org/data/2.5/forecast",
        description="OpenWeather 5 day / 3 hour forecast endpoint",
    )
    accuweather_search_url: str = Field(
        default="https://dataservice.accuweather.com/locations/v1/cities/search",
        description="AccuWeather city text search endpoint",
    )
    accuweather_geoposition_url: str = Field(
        default="https://dataservice.accuweather.com/locations/v1/cities/geoposition/search",
        description="AccuWeather geoposition search endpoint",
    )
    accuweather_forecast_url: str = Field(
        default="https://dataservice.accuweather.com/forecasts/v1/hourly/12hour",
        description="AccuWeather 12 hour hourly forecast endpoint",
    )
    weatherapi_forecast_url: str = Field(
        default="https://api.weatherapi.com/v1/forecast.json",
        description="WeatherAPI.com forecast endpoint",
    )
    upstream_timeout_seconds: float = Field(
        default=3.0,
        description="Per-request upstream timeout in seconds",
        ge=0.1,
        le=30.0,
    )

    # Cache settings
    forecast_cache_ttl_seconds: int = Field(
        default=30 * 60,
        description="TTL for raw forecast series",
        ge=1,
        le=86400,
    )
    result_cache_ttl_seconds: int = Field(
        default=10 * 60,
        description="TTL for per-query provider results",
        ge=1,
        le=86400,
    )
    cache_max_size: int = Field(
        default=10000,
        description="Maximum entries per cache",
        ge=1,
        le=1000000,
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
