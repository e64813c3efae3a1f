"""Health check endpoints.

Unauthenticated; used by the hosting platform and the dashboard's
connectivity indicator.
"""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from sitecms.core import check_db_connection, settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool
    message: str
    version: str
    database: str


async def _health(response: Response) -> HealthResponse:
    db_healthy = await check_db_connection()

    # 503 lets orchestrators take the instance out of rotation
    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        ok=db_healthy,
        message="Backend is running fine" if db_healthy else "Database is unavailable",
        version=settings.app_version,
        database="connected" if db_healthy else "disconnected",
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is healthy"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Service is unhealthy"},
    },
)
async def health_check(response: Response) -> HealthResponse:
    """Health check including database connectivity."""
    return await _health(response)


@router.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def api_health_check(response: Response) -> HealthResponse:
    """Alias kept for clients that probe under /api."""
    return await _health(response)
