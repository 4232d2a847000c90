"""
rqserve — Health Check Route
==============================

What:  Health check endpoint for monitoring and container probes.
How:   Reports the compiled route count and whether a default endpoint is
       configured. The SPARQL endpoint itself is not probed: routes may
       target different endpoints, and each probe would be a real query.

Status levels:
    - healthy:   at least one route is compiled and a default endpoint is set
    - degraded:  no routes, or requests must name their own endpoint
"""

import logging
import time

from fastapi import APIRouter, Request

from rqserve import __version__
from rqserve.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    include_in_schema=False,
)
async def health_check(request: Request) -> HealthResponse:
    registry = request.app.state.registry
    binder = request.app.state.binder

    endpoint_configured = bool(binder.default_endpoint)
    overall = "healthy" if len(registry) and endpoint_configured else "degraded"

    return HealthResponse(
        status=overall,
        version=__version__,
        routes=len(registry),
        default_endpoint_configured=endpoint_configured,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
