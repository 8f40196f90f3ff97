"""
Health check endpoints for monitoring and readiness probes.

- Liveness probe: /health (the process is up)
- Readiness probe: /health/ready (the quote store answers)
"""

import time

from fastapi import APIRouter, Request, Response, status

from carquote.core.database import get_database
from carquote.models.base import utc_now
from carquote.schemas.health import (
    HealthCheckDetail,
    HealthResponse,
    ReadinessResponse,
)


router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
)
async def health_check() -> HealthResponse:
    """
    Basic liveness probe.

    Always 200 while the application is running.
    """
    return HealthResponse(status="ok", timestamp=utc_now())


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
)
async def readiness_check(request: Request, response: Response) -> ReadinessResponse:
    """
    Readiness probe with a database check.

    Returns 200 when the database answers ``SELECT 1`` in time, 503
    otherwise.

    Example response (unhealthy):
        {
            "status": "not_ready",
            "checks": {"db": {"healthy": false, "latency_ms": 2001.3, "error": "..."}},
            "timestamp": "2026-01-05T10:30:00.123456+00:00"
        }
    """
    started = time.perf_counter()
    db_healthy = await get_database(request).ping()
    latency = (time.perf_counter() - started) * 1000

    checks = {
        "db": HealthCheckDetail(
            healthy=db_healthy,
            latency_ms=round(latency, 2),
            error=None if db_healthy else "Database connection failed or timed out",
        ),
    }

    all_healthy = all(check.healthy for check in checks.values())
    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return ReadinessResponse(
        status="ready" if all_healthy else "not_ready",
        checks=checks,
        timestamp=utc_now(),
    )
