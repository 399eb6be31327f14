"""
GameSwipe Backend: Health Check Route
=====================================

What:  Liveness probe for Docker health checks and load balancers.
How:   Answers without touching the database or Steam; a 200 means the process
       is up and serving requests.
"""

from fastapi import APIRouter

from gameswipe.clock import utcnow
from gameswipe.schemas.common import HealthResponse

SERVICE_NAME = "gameswipe-backend"

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(ok=True, service=SERVICE_NAME, time=utcnow())
