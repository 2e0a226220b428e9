"""Active-provider selection store."""

from collections.abc import Callable
from typing import Protocol

import structlog

from weather_resolver.models import ProviderName

logger = structlog.get_logger()

Listener = Callable[[ProviderName], None]


class ProviderStore(Protocol):
    """Source of the user's preferred provider."""

    def get_current_provider(self) -> ProviderName: ...

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for switch events; returns an unsubscribe function."""
        ...


class InMemoryProviderStore:
    """Process-local store, used when no external store is wired in."""

    def __init__(self, provider: ProviderName | str = ProviderName.OPENWEATHER) -> None:
        self._provider = ProviderName(provider)
        self._listeners: list[Listener] = []

    def get_current_provider(self) -> ProviderName:
        return self._provider

    def set_provider(self, provider: ProviderName | str) -> None:
        """Switch provider and notify listeners.

        Raises:
            ValueError: If ``provider`` is not a known provider name
        """
        selected = ProviderName(provider)
        if selected == self._provider:
            return
        self._provider = selected
        for listener in list(self._listeners):
            try:
                listener(selected)
            except Exception as e:
                logger.warning("Provider listener failed", provider=str(selected), error=str(e))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
