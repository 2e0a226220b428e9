"""Domain types shared by providers, the orchestrator and the API."""

import math
from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProviderName(StrEnum):
    """Known weather providers."""

    OPENWEATHER = "openweather"
    ACCUWEATHER = "accuweather"
    WEATHERAPI = "weatherapi"


# Fallback priority after the active provider
PROVIDER_ORDER: tuple[ProviderName, ...] = (
    ProviderName.OPENWEATHER,
    ProviderName.ACCUWEATHER,
    ProviderName.WEATHERAPI,
)


class WeatherIcon(StrEnum):
    """Icon shown next to a weather reading."""

    SUNNY = "sunny"
    CLOUDY = "cloudy"
    RAINY = "rainy"
    SNOWY = "snowy"


@dataclass(frozen=True)
class Coordinate:
    """Geographic point in decimal degrees."""

    latitude: float
    longitude: float

    def as_query(self) -> str:
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True)
class ForecastEntry:
    """One timestamped reading from a provider's forecast series."""

    timestamp_ms: int | None
    temperature_c: float | None = None
    temperature_f: float | None = None
    description: str | None = None


class WeatherInfo(BaseModel):
    """Normalized weather reading returned to callers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    temperature: str | None = Field(default=None, description="Display temperature, e.g. 21°")
    temperature_c: float | None = Field(default=None, description="Temperature in Celsius")
    temperature_f: float | None = Field(default=None, description="Temperature in Fahrenheit")
    description: str | None = Field(default=None, description="Provider condition text")
    icon: WeatherIcon = Field(..., description="Icon derived from the description")

    @classmethod
    def from_entry(cls, entry: ForecastEntry) -> "WeatherInfo":
        """Build a reading from a normalized forecast entry."""
        if entry.temperature_c is not None:
            display: str | None = f"{round(entry.temperature_c)}°"
        elif entry.temperature_f is not None:
            display = f"{round(entry.temperature_f)}°"
        else:
            display = None
        return cls(
            temperature=display,
            temperature_c=entry.temperature_c,
            temperature_f=entry.temperature_f,
            description=entry.description,
            icon=icon_from_description(entry.description),
        )


def icon_from_description(description: str | None) -> WeatherIcon:
    """Classify a condition text into an icon.

    Matching is case-insensitive and checked in a fixed order, so every
    input (including ``None``) maps to exactly one icon.
    """
    if not description:
        return WeatherIcon.CLOUDY
    lower = description.lower()
    if "snow" in lower:
        return WeatherIcon.SNOWY
    if "rain" in lower or "drizzle" in lower or "storm" in lower:
        return WeatherIcon.RAINY
    if "clear" in lower or "sun" in lower:
        return WeatherIcon.SUNNY
    return WeatherIcon.CLOUDY


def as_float(value: object) -> float | None:
    """Return value as a finite float, or None for anything else."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def epoch_ms(seconds: float | None) -> int | None:
    """Convert epoch seconds to milliseconds, or None when out of range."""
    if seconds is None:
        return None
    millis = seconds * 1000
    return int(millis) if math.isfinite(millis) else None


def as_text(value: object) -> str | None:
    """Return value if it is a non-empty string."""
    if isinstance(value, str) and value:
        return value
    return None
