"""Shared provider fetcher interface."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

import structlog

from weather_resolver.models import ForecastEntry, ProviderName, WeatherInfo
from weather_resolver.services.context import ProviderContext
from weather_resolver.services.selection import pick_nearest
from weather_resolver.services.upstream import UpstreamCancelledError, UpstreamError


def entry_timestamp(entry: ForecastEntry) -> int | None:
    return entry.timestamp_ms


class WeatherFetcher(ABC):
    """One weather provider.

    ``fetch`` returns None for every failure mode (missing credentials,
    network errors, timeouts, cancellation, unusable payloads) so the
    orchestrator can move on to the next provider.
    """

    name: ProviderName

    def __init__(self) -> None:
        self._log = structlog.get_logger().bind(provider=str(self.name))

    async def fetch(self, ctx: ProviderContext) -> WeatherInfo | None:
        """Fetch a reading for the request, or None."""
        try:
            return await self._fetch(ctx)
        except UpstreamCancelledError:
            self._log.debug("Provider request cancelled")
            return None
        except UpstreamError as e:
            self._log.warning("Provider request failed", error=str(e))
            return None
        except (ValueError, TypeError, OverflowError) as e:
            self._log.warning("Provider payload unusable", error=str(e))
            return None

    @abstractmethod
    async def _fetch(self, ctx: ProviderContext) -> WeatherInfo | None:
        """Provider-specific lookup; may raise UpstreamError."""

    @abstractmethod
    def clear_cache(self) -> None:
        """Drop every cached lookup held by this provider."""

    def _nearest_info(self, entries: Sequence[ForecastEntry], target_ms: int) -> WeatherInfo | None:
        entry = pick_nearest(entries, target_ms, entry_timestamp)
        if entry is None:
            return None
        return WeatherInfo.from_entry(entry)
