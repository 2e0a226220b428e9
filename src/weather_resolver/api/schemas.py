"""API request and response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from weather_resolver.models import WeatherInfo


class WeatherResponse(BaseModel):
    """Weather API response.

    ``weather`` is null when no provider had data for the request.
    """

    weather: WeatherInfo | None = Field(default=None, description="Resolved weather, if any")
    retrievedAt: datetime = Field(..., description="Timestamp of data retrieval")  # noqa: N815


class ErrorDetail(BaseModel):
    """Error detail."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Error response."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status")


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    status: str = Field(..., description="Readiness status")
    checks: dict[str, str] = Field(default_factory=dict, description="Component checks")
