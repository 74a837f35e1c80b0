"""Health check endpoints.

Provides liveness (/health) and readiness (/health/ready). Readiness reports
503 until the lifespan has built the record stores and services.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from src.salepro.config import get_settings

router = APIRouter(tags=["health"])

_REQUIRED_STATE = ("stores", "deal_service", "invoice_service", "dashboard_service")


@router.get("/health")
async def health_check():
    """Basic liveness check.

    No external dependencies are checked -- just that the server is running.
    """
    settings = get_settings()
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT.value,
        "store_backend": settings.STORE_BACKEND.value,
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Readiness check: verifies stores and services are initialized.

    Returns 200 if all are present, 503 otherwise.
    """
    checks = {
        name: "ok" if getattr(request.app.state, name, None) is not None else "missing"
        for name in _REQUIRED_STATE
    }
    ready = all(value == "ok" for value in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "starting", "checks": checks},
    )
