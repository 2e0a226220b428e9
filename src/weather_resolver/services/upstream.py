"""HTTP access to upstream weather and geocoding APIs."""

import asyncio
from typing import Any

import httpx
from prometheus_client import Counter, Histogram

from weather_resolver.config import Settings
from weather_resolver.services.context import CancellationToken


class UpstreamError(Exception):
    """Base exception for upstream request errors."""


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream request times out."""


class UpstreamAPIError(UpstreamError):
    """Raised when upstream returns a non-200 status."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamCancelledError(UpstreamError):
    """Raised when the caller cancels while a request is pending."""


# Metrics
upstream_requests = Counter(
    "upstream_requests_total",
    "Total upstream API requests",
    ["provider", "status"],
)
upstream_duration = Histogram(
    "upstream_request_duration_seconds",
    "Upstream request duration in seconds",
    ["provider"],
    buckets=[0.05, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0],
)


class UpstreamClient:
    """Timeout-bounded, cancellable JSON GET client."""

    def __init__(self, settings: Settings) -> None:
        """Initialize client with settings."""
        self._timeout = settings.upstream_timeout_seconds

    async def get_json(
        self,
        provider: str,
        url: str,
        params: dict[str, str],
        cancellation: CancellationToken,
    ) -> Any:
        """Fetch ``url`` and decode the JSON body.

        The request is abandoned as soon as ``cancellation`` fires.

        Raises:
            UpstreamCancelledError: If the token is cancelled before or during the request
            UpstreamTimeoutError: If the request times out
            UpstreamAPIError: If upstream returns a non-200 status
            UpstreamError: On connection failures or an undecodable body
        """
        if cancellation.cancelled:
            raise UpstreamCancelledError(f"{provider} request cancelled before start")

        with upstream_duration.labels(provider=provider).time():
            request = asyncio.ensure_future(self._send(url, params))
            cancelled = asyncio.ensure_future(cancellation.wait())
            try:
                # httpx only bounds each connect/read step; this bounds the whole call
                done, _ = await asyncio.wait(
                    {request, cancelled},
                    timeout=self._timeout,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                pending = [task for task in (request, cancelled) if not task.done()]
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)

            if cancellation.cancelled:
                upstream_requests.labels(provider=provider, status="cancelled").inc()
                raise UpstreamCancelledError(f"{provider} request cancelled")

            if request not in done:
                upstream_requests.labels(provider=provider, status="timeout").inc()
                raise UpstreamTimeoutError(
                    f"{provider} request exceeded {self._timeout}s"
                )

            try:
                response = request.result()
            except httpx.TimeoutException as e:
                upstream_requests.labels(provider=provider, status="timeout").inc()
                raise UpstreamTimeoutError(
                    f"{provider} request timed out after {self._timeout}s"
                ) from e
            except httpx.RequestError as e:
                upstream_requests.labels(provider=provider, status="error").inc()
                raise UpstreamError(f"{provider} request failed: {e}") from e

        if response.status_code != 200:
            upstream_requests.labels(provider=provider, status="error").inc()
            raise UpstreamAPIError(
                f"{provider} returned {response.status_code}",
                response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            upstream_requests.labels(provider=provider, status="malformed").inc()
            raise UpstreamError(f"{provider} returned a non-JSON body") from e

        upstream_requests.labels(provider=provider, status="success").inc()
        return payload

    async def _send(self, url: str, params: dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params)
