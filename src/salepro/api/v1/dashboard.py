"""Dashboard summary endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from src.salepro.api.deps import from_state, http_error
from src.salepro.core.errors import CRMError
from src.salepro.services.dashboard import DashboardSummary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardSummary)
async def get_dashboard(request: Request) -> DashboardSummary:
    """Headline counts, revenue, recent activities, and upcoming deals."""
    service = from_state(request, "dashboard_service", "Dashboard service")
    try:
        return await service.summary()
    except CRMError as exc:
        raise http_error(exc) from exc
