"""Per-call request state shared by the orchestrator and providers."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from weather_resolver.models import Coordinate
from weather_resolver.services.queries import build_location_queries
from weather_resolver.services.selection import now_ms


class CancellationToken:
    """Caller-controlled abort signal for one resolution call."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()


@dataclass(frozen=True)
class RequestContext:
    """Immutable description of a single weather request."""

    raw_location: str | None = None
    coordinates: Coordinate | None = None
    target_ms: int = field(default_factory=now_ms)
    cancellation: CancellationToken = field(default_factory=CancellationToken)


GeocodeFunc = Callable[[str, CancellationToken], Awaitable[Coordinate | None]]


class ProviderContext:
    """Request context handed to each provider fetcher.

    Coordinates are resolved lazily through ``ensure_coordinates`` and the
    outcome is memoized, so one call geocodes at most once no matter how
    many providers ask.
    """

    def __init__(self, request: RequestContext, geocode: GeocodeFunc) -> None:
        self.request = request
        self.queries: list[str] = (
            build_location_queries(request.raw_location) if request.raw_location else []
        )
        self._geocode = geocode
        self._coordinates = request.coordinates
        self._resolved = request.coordinates is not None

    @property
    def raw_location(self) -> str | None:
        return self.request.raw_location

    @property
    def target_ms(self) -> int:
        return self.request.target_ms

    @property
    def cancellation(self) -> CancellationToken:
        return self.request.cancellation

    @property
    def coordinates(self) -> Coordinate | None:
        """Coordinates known so far, without triggering a lookup."""
        return self._coordinates

    async def ensure_coordinates(self) -> Coordinate | None:
        if self._resolved:
            return self._coordinates
        self._resolved = True
        if self.request.raw_location:
            self._coordinates = await self._geocode(self.request.raw_location, self.cancellation)
        return self._coordinates
