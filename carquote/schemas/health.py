"""
Pydantic schemas for health check endpoints.
"""

from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    Response model for basic health check.

    Attributes:
        status: Health status ("ok" if service is running)
        timestamp: Current UTC timestamp
    """
    status: Literal["ok"] = Field(description="Health status indicator")
    timestamp: datetime = Field(description="Current UTC timestamp")


class HealthCheckDetail(BaseModel):
    healthy: bool = Field(description="Whether the check passed")
    latency_ms: Optional[float] = Field(
        default=None,
        description="Check execution time in milliseconds"
    )
    error: Optional[str] = Field(
        default=None,
        description="Error message if check failed"
    )


class ReadinessResponse(BaseModel):
    """
    Response model for readiness probe.

    Attributes:
        status: Overall readiness status ("ready" if all checks pass)
        checks: Individual check results keyed by dependency name
        timestamp: Current UTC timestamp
    """
    status: Literal["ready", "not_ready"] = Field(description="Overall readiness status")
    checks: Dict[str, HealthCheckDetail] = Field(description="Individual dependency checks")
    timestamp: datetime = Field(description="Current UTC timestamp")
