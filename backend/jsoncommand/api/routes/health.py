"""Health Probe — liveness endpoint for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if the process is up
    - Reports the provider chain in resolution order (never controller internals)
"""

import logging

from fastapi import APIRouter, Request, status

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Basic liveness probe. Returns 200 if the process is up."""
    resolver = getattr(request.app.state, "resolver", None)
    return {
        "status": "healthy",
        "service": "json-command-gateway",
        "version": "1.0.0",
        "providers": resolver.provider_names if resolver else [],
    }
