"""Common response envelopes shared by every feature."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class MessageResponse(BaseModel):
    """Success envelope: ``{message, details?}``."""

    message: str = Field(min_length=1, max_length=1000, description="Response message")
    details: dict[str, Any] | None = Field(default=None, description="Operation details")


class ErrorBody(BaseModel):
    """Inner error object of the failure envelope."""

    message: str = Field(description="Human-readable error message")
    code: str = Field(description="Stable error code")
    details: Any | None = Field(default=None, description="Additional error context")


class ErrorResponse(BaseModel):
    """Failure envelope: ``{success: false, error: {message, code, details?}}``."""

    success: bool = Field(default=False)
    error: ErrorBody
    request_id: str | None = Field(default=None, description="Request correlation ID")
