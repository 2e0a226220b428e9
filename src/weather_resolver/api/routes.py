"""API route definitions."""

from datetime import UTC, datetime
from typing import Annotated

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status

from weather_resolver.api.dependencies import WeatherServiceDep, disconnect_cancellation
from weather_resolver.api.schemas import (
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ReadinessResponse,
    WeatherResponse,
)

logger = structlog.get_logger()

# API router for weather endpoints
api_router = APIRouter(prefix="/api/v1", tags=["weather"])

# Health router for health checks
health_router = APIRouter(prefix="/health", tags=["health"])


@api_router.get(
    "/weather",
    response_model=WeatherResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Neither location nor coordinates given"},
    },
)
async def get_weather(
    weather_service: WeatherServiceDep,
    request: Request,
    location: Annotated[
        str | None, Query(min_length=1, max_length=512, description="Free-text location")
    ] = None,
    lat: Annotated[float | None, Query(ge=-90, le=90, description="Latitude")] = None,
    lon: Annotated[float | None, Query(ge=-180, le=180, description="Longitude")] = None,
    at: Annotated[
        str | None, Query(description="Target time (ISO-8601); defaults to now")
    ] = None,
) -> WeatherResponse:
    """Get weather for a location or coordinates at a given time.

    Coordinates take precedence when both are supplied. A null ``weather``
    means no provider had data; it is not an error. Upstream calls are
    abandoned if the client disconnects.
    """
    if lat is not None and lon is not None:
        async with disconnect_cancellation(request) as cancellation:
            weather = await weather_service.resolve_by_coordinates(lat, lon, at, cancellation)
    elif location is not None and location.strip():
        async with disconnect_cancellation(request) as cancellation:
            weather = await weather_service.resolve_by_location(location, at, cancellation)
    else:
        logger.info("Weather request without location", lat=lat, lon=lon)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=ErrorResponse(
                error=ErrorDetail(
                    code="MISSING_LOCATION",
                    message="Provide either 'location' or both 'lat' and 'lon'",
                )
            ).model_dump(),
        )

    return WeatherResponse(weather=weather, retrievedAt=datetime.now(UTC))


@health_router.get("/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe - checks if the service is running."""
    return HealthResponse(status="ok")


@health_router.get("/ready", response_model=ReadinessResponse)
async def readiness(weather_service: WeatherServiceDep) -> ReadinessResponse:
    """Readiness probe - checks if the service is ready to accept traffic."""
    checks = {
        "cache": "ok" if weather_service.caches_healthy() else "unhealthy",
        "provider_store": "ok" if weather_service.started else "unhealthy",
    }
    overall_status = "ok" if all(value == "ok" for value in checks.values()) else "unhealthy"

    response = ReadinessResponse(status=overall_status, checks=checks)

    if overall_status != "ok":
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=response.model_dump(),
        )

    return response
