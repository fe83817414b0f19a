"""
Health and readiness check endpoints for Kubernetes probes.

Health checks are used by container orchestration platforms to determine
if the application should be restarted or if it can receive traffic.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from paddle_booking.dependencies import get_backend_client
from paddle_booking.network.client import BackendClient

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check() -> JSONResponse:
    """
    Liveness probe endpoint.

    Example:
        >>> GET /health
        {"status": "ok"}
    """
    return JSONResponse(content={"status": "ok"})


@router.get("/ready")
def readiness_check(client: BackendClient = Depends(get_backend_client)) -> JSONResponse:
    """
    Readiness probe endpoint.

    Returns 200 if the backend REST API answers, 503 otherwise.

    Example:
        >>> GET /ready
        {"status": "ready", "checks": {"backend": "ok"}}
    """
    checks = {}

    if client.ping():
        checks["backend"] = "ok"
        return JSONResponse(content={"status": "ready", "checks": checks})

    logger.error("readiness_check_failed", reason="backend_not_reachable")
    checks["backend"] = "failed"
    return JSONResponse(status_code=503, content={"status": "not ready", "checks": checks})
