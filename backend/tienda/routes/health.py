"""
Tienda Services: Health Check Route
=====================================

What:  GET /health on every service, for container and load balancer probes.
How:   Pings the service's Store with SELECT 1.

    healthy    database reachable (HTTP 200)
    unhealthy  database unreachable (HTTP 503)
"""

import time

from fastapi import APIRouter, Depends, Request, Response

from tienda import __version__
from tienda.database import Store, get_store
from tienda.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
)
async def health_check(
    request: Request,
    response: Response,
    store: Store = Depends(get_store),
) -> HealthResponse:
    connected = await store.ping()
    if not connected:
        response.status_code = 503

    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        service=request.app.state.service_key,
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - request.app.state.started_at, 2),
    )
