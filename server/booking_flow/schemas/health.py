"""Health and readiness schemas."""

from datetime import datetime
from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health status enumeration."""
    HEALTHY = "healthy"
    READY = "ready"
    NOT_READY = "not_ready"


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: HealthStatus = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current server time (ISO 8601)")
    version: str = Field("1.0.0", description="API version")


class ReadinessResponse(BaseModel):
    """Readiness of the service and the dependencies it cannot work without."""

    status: HealthStatus = Field(..., description="READY only if every check passed")
    service: str = Field(..., description="Service name")
    checks: Dict[str, str] = Field(default_factory=dict, description="Check name to 'ok' or an error summary")
