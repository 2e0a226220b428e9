"""Tests for the weather service orchestrator."""

import pytest
import respx
from httpx import Request, Response

from weather_resolver.config import Settings
from weather_resolver.models import ProviderName, WeatherIcon, WeatherInfo
from weather_resolver.services.context import CancellationToken, ProviderContext, RequestContext
from weather_resolver.services.geocoding import Geocoder
from weather_resolver.services.providers import WeatherFetcher
from weather_resolver.services.store import InMemoryProviderStore
from weather_resolver.services.upstream import UpstreamTimeoutError
from weather_resolver.services.weather import WeatherService

from conftest import NOON_MS, openweather_forecast, weatherapi_forecast

SUNNY = WeatherInfo(temperature_c=25.0, description="Sunny", icon=WeatherIcon.SUNNY)
RAINY = WeatherInfo(temperature_c=12.0, description="Rain", icon=WeatherIcon.RAINY)
SPRINGFIELD = [{"lat": 39.7817, "lon": -89.6501}]


class FakeFetcher(WeatherFetcher):
    """Fetcher with a scripted outcome."""

    def __init__(self, name: ProviderName, outcome: object = None) -> None:
        self.name = name
        super().__init__()
        self.outcome = outcome
        self.calls = 0
        self.cleared = 0

    async def _fetch(self, ctx: ProviderContext) -> WeatherInfo | None:
        self.calls += 1
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        if callable(self.outcome):
            return self.outcome(ctx)
        return self.outcome

    def clear_cache(self) -> None:
        self.cleared += 1


def make_service(geocoder: Geocoder, *fetchers: FakeFetcher) -> WeatherService:
    return WeatherService(geocoder, {f.name: f for f in fetchers})


class TestFallbackChain:
    """Tests for provider ordering and fallback."""

    @pytest.mark.asyncio
    async def test_raise_then_none_then_result(self, geocoder: Geocoder) -> None:
        """Test a raising provider and an empty one are skipped."""
        first = FakeFetcher(ProviderName.OPENWEATHER, RuntimeError("boom"))
        second = FakeFetcher(ProviderName.ACCUWEATHER, None)
        third = FakeFetcher(ProviderName.WEATHERAPI, SUNNY)
        service = make_service(geocoder, first, second, third)

        result = await service.resolve_by_location("Springfield")

        assert result == SUNNY
        assert (first.calls, second.calls, third.calls) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_upstream_error_is_a_miss(self, geocoder: Geocoder) -> None:
        first = FakeFetcher(ProviderName.OPENWEATHER, UpstreamTimeoutError("slow"))
        second = FakeFetcher(ProviderName.ACCUWEATHER, RAINY)
        service = make_service(geocoder, first, second)

        assert await service.resolve_by_coordinates(1.0, 2.0) == RAINY

    @pytest.mark.asyncio
    async def test_stops_at_first_result(self, geocoder: Geocoder) -> None:
        first = FakeFetcher(ProviderName.OPENWEATHER, SUNNY)
        second = FakeFetcher(ProviderName.WEATHERAPI, RAINY)
        service = make_service(geocoder, first, second)

        assert await service.resolve_by_coordinates(1.0, 2.0) == SUNNY
        assert second.calls == 0

    @pytest.mark.asyncio
    async def test_all_fail_returns_none(self, geocoder: Geocoder) -> None:
        service = make_service(
            geocoder,
            FakeFetcher(ProviderName.OPENWEATHER, ValueError("bad")),
            FakeFetcher(ProviderName.ACCUWEATHER, None),
            FakeFetcher(ProviderName.WEATHERAPI, KeyError("missing")),
        )

        assert await service.resolve_by_location("Nowhere") is None

    @pytest.mark.asyncio
    async def test_active_provider_tried_first(self, geocoder: Geocoder) -> None:
        first = FakeFetcher(ProviderName.OPENWEATHER, SUNNY)
        third = FakeFetcher(ProviderName.WEATHERAPI, RAINY)
        service = make_service(geocoder, first, third)
        service.active_provider = ProviderName.WEATHERAPI

        assert await service.resolve_by_coordinates(1.0, 2.0) == RAINY
        assert first.calls == 0

    def test_provider_order(self, geocoder: Geocoder) -> None:
        service = WeatherService(geocoder, {}, active_provider=ProviderName.ACCUWEATHER)

        assert service.provider_order() == [
            ProviderName.ACCUWEATHER,
            ProviderName.OPENWEATHER,
            ProviderName.WEATHERAPI,
        ]

    @pytest.mark.asyncio
    async def test_context_shared_across_providers(self, geocoder: Geocoder) -> None:
        seen: list[ProviderContext] = []

        def record(ctx: ProviderContext) -> None:
            seen.append(ctx)
            return None

        service = make_service(
            geocoder,
            FakeFetcher(ProviderName.OPENWEATHER, record),
            FakeFetcher(ProviderName.WEATHERAPI, record),
        )

        await service.resolve_weather(RequestContext(raw_location="Paris", target_ms=NOON_MS))

        assert len(seen) == 2
        assert seen[0] is seen[1]
        assert seen[0].target_ms == NOON_MS
        assert seen[0].queries == ["Paris"]


class TestCancellation:
    """Tests for caller cancellation."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, geocoder: Geocoder) -> None:
        fetcher = FakeFetcher(ProviderName.OPENWEATHER, SUNNY)
        service = make_service(geocoder, fetcher)
        token = CancellationToken()
        token.cancel()

        assert await service.resolve_by_location("Paris", cancellation=token) is None
        assert fetcher.calls == 0

    @pytest.mark.asyncio
    async def test_stale_result_discarded(self, geocoder: Geocoder) -> None:
        """Test a result arriving after cancellation is not returned."""
        token = CancellationToken()

        def cancel_then_answer(ctx: ProviderContext) -> WeatherInfo:
            token.cancel()
            return SUNNY

        first = FakeFetcher(ProviderName.OPENWEATHER, cancel_then_answer)
        second = FakeFetcher(ProviderName.WEATHERAPI, RAINY)
        service = make_service(geocoder, first, second)

        assert await service.resolve_by_location("Paris", cancellation=token) is None
        assert second.calls == 0

    @respx.mock
    @pytest.mark.asyncio
    async def test_cancelled_mid_flight(self, settings: Settings, weather_service: WeatherService) -> None:
        """Test cancelling during a network call yields None and stops the chain."""
        token = CancellationToken()

        def handler(request: Request) -> Response:
            token.cancel()
            return Response(200, json=openweather_forecast((NOON_MS, 20.0, "clear sky")))

        respx.get(settings.openweather_forecast_url).mock(side_effect=handler)
        weatherapi = respx.get(settings.weatherapi_forecast_url).mock(
            return_value=Response(200, json=weatherapi_forecast((NOON_MS, 1.0, 33.8, "Snow")))
        )

        result = await weather_service.resolve_by_coordinates(52.52, 13.41, NOON_MS, token)

        assert result is None
        assert weatherapi.call_count == 0


class TestCaching:
    """Tests for cache behaviour across calls and provider switches."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_repeat_coordinates_hit_cache(
        self, settings: Settings, weather_service: WeatherService
    ) -> None:
        route = respx.get(settings.openweather_forecast_url).mock(
            return_value=Response(200, json=openweather_forecast((NOON_MS, 20.0, "clear sky")))
        )

        first = await weather_service.resolve_by_coordinates(52.5201, 13.4101, NOON_MS)
        second = await weather_service.resolve_by_coordinates(52.5204, 13.4104, NOON_MS)

        assert first is not None
        assert first == second
        assert route.call_count == 1

    @respx.mock
    @pytest.mark.asyncio
    async def test_provider_switch_flushes_caches(
        self,
        settings: Settings,
        weather_service: WeatherService,
        store: InMemoryProviderStore,
    ) -> None:
        """Test cached geocodes and forecasts are refetched after a switch."""
        geocoding = respx.get(settings.geocoding_url).mock(
            return_value=Response(200, json=SPRINGFIELD)
        )
        forecast = respx.get(settings.openweather_forecast_url).mock(
            return_value=Response(200, json=openweather_forecast((NOON_MS, 20.0, "clear sky")))
        )

        await weather_service.resolve_by_location("Springfield, IL", NOON_MS)
        await weather_service.resolve_by_location("Springfield, IL", NOON_MS)
        assert (geocoding.call_count, forecast.call_count) == (1, 1)

        # AccuWeather is disabled, so OpenWeather still answers after the switch
        store.set_provider(ProviderName.ACCUWEATHER)
        assert weather_service.active_provider is ProviderName.ACCUWEATHER

        result = await weather_service.resolve_by_location("Springfield, IL", NOON_MS)

        assert result is not None
        assert (geocoding.call_count, forecast.call_count) == (2, 2)

    @respx.mock
    @pytest.mark.asyncio
    async def test_geocoding_shared_between_providers(
        self, settings: Settings, weather_service: WeatherService
    ) -> None:
        """Test one call geocodes once even when several providers need coordinates."""
        geocoding = respx.get(settings.geocoding_url).mock(
            return_value=Response(200, json=SPRINGFIELD)
        )
        respx.get(settings.openweather_forecast_url).mock(return_value=Response(503))

        def weatherapi_handler(request: Request) -> Response:
            if request.url.params["q"] == "39.7817,-89.6501":
                return Response(200, json=weatherapi_forecast((NOON_MS, 5.0, 41.0, "Light rain")))
            return Response(400, json={"error": {"code": 1006}})

        respx.get(settings.weatherapi_forecast_url).mock(side_effect=weatherapi_handler)

        result = await weather_service.resolve_by_location("Springfield", NOON_MS)

        assert result is not None
        assert result.icon is WeatherIcon.RAINY
        assert geocoding.call_count == 1


class TestLifecycle:
    """Tests for start/stop against the provider store."""

    def test_start_reads_current_provider(self, geocoder: Geocoder) -> None:
        store = InMemoryProviderStore(ProviderName.WEATHERAPI)
        service = WeatherService(geocoder, {})

        service.start(store)

        assert service.started
        assert service.active_provider is ProviderName.WEATHERAPI

    def test_switch_clears_every_cache(self, geocoder: Geocoder) -> None:
        store = InMemoryProviderStore()
        fetchers = [FakeFetcher(name) for name in ProviderName]
        service = make_service(geocoder, *fetchers)
        service.start(store)
        geocoder.cache.set("paris", object())

        store.set_provider("weatherapi")

        assert geocoder.cache.size == 0
        assert [f.cleared for f in fetchers] == [1, 1, 1]

    def test_stop_unsubscribes(self, geocoder: Geocoder) -> None:
        store = InMemoryProviderStore()
        fetcher = FakeFetcher(ProviderName.OPENWEATHER)
        service = make_service(geocoder, fetcher)
        service.start(store)
        service.stop()
        service.stop()

        store.set_provider(ProviderName.WEATHERAPI)

        assert not service.started
        assert service.active_provider is ProviderName.OPENWEATHER
        assert fetcher.cleared == 0

    def test_start_is_idempotent(self, geocoder: Geocoder) -> None:
        store = InMemoryProviderStore()
        fetcher = FakeFetcher(ProviderName.OPENWEATHER)
        service = make_service(geocoder, fetcher)
        service.start(store)
        service.start(store)

        store.set_provider(ProviderName.WEATHERAPI)

        assert fetcher.cleared == 1
