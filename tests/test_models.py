"""Tests for domain models."""

import pytest

from weather_resolver.models import (
    ForecastEntry,
    WeatherIcon,
    WeatherInfo,
    as_float,
    epoch_ms,
    icon_from_description,
)


class TestIconFromDescription:
    """Tests for icon classification."""

    @pytest.mark.parametrize(
        ("description", "icon"),
        [
            ("Light Snow", WeatherIcon.SNOWY),
            ("Heavy Rain", WeatherIcon.RAINY),
            ("Clear Sky", WeatherIcon.SUNNY),
            ("Overcast", WeatherIcon.CLOUDY),
            ("patchy light drizzle", WeatherIcon.RAINY),
            ("Thunderstorm", WeatherIcon.RAINY),
            ("Mostly sunny", WeatherIcon.SUNNY),
            ("Rain and snow", WeatherIcon.SNOWY),
            ("Mist", WeatherIcon.CLOUDY),
        ],
    )
    def test_classification(self, description: str, icon: WeatherIcon) -> None:
        assert icon_from_description(description) is icon

    @pytest.mark.parametrize("description", [None, ""])
    def test_missing_description_is_cloudy(self, description: str | None) -> None:
        assert icon_from_description(description) is WeatherIcon.CLOUDY


class TestWeatherInfo:
    """Tests for WeatherInfo construction and serialization."""

    def test_from_entry(self) -> None:
        info = WeatherInfo.from_entry(
            ForecastEntry(timestamp_ms=0, temperature_c=21.4, temperature_f=70.5, description="light rain")
        )
        assert info.temperature == "21°"
        assert info.temperature_c == 21.4
        assert info.temperature_f == 70.5
        assert info.icon is WeatherIcon.RAINY

    def test_from_entry_fahrenheit_only(self) -> None:
        info = WeatherInfo.from_entry(ForecastEntry(timestamp_ms=0, temperature_f=68.0))
        assert info.temperature == "68°"
        assert info.temperature_c is None

    def test_from_entry_without_temperature(self) -> None:
        """Test missing temperatures stay unset instead of failing."""
        info = WeatherInfo.from_entry(ForecastEntry(timestamp_ms=0, description="Clear"))
        assert info.temperature is None
        assert info.temperature_c is None
        assert info.temperature_f is None
        assert info.icon is WeatherIcon.SUNNY

    def test_serializes_camel_case(self) -> None:
        info = WeatherInfo(temperature_c=10.0, temperature_f=50.0, icon=WeatherIcon.CLOUDY)
        data = info.model_dump(by_alias=True)
        assert data["temperatureC"] == 10.0
        assert data["temperatureF"] == 50.0
        assert data["icon"] == "cloudy"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1, 1.0),
        (2.5, 2.5),
        ("3", None),
        (None, None),
        (True, None),
        (float("nan"), None),
        (float("inf"), None),
        (10**400, None),
    ],
)
def test_as_float(value: object, expected: float | None) -> None:
    assert as_float(value) == expected


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(1_717_243_200, 1_717_243_200_000), (0.5, 500), (None, None), (1e308, None)],
)
def test_epoch_ms(seconds: float | None, expected: int | None) -> None:
    assert epoch_ms(seconds) == expected
