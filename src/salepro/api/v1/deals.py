"""REST API endpoints for deals and the pipeline board.

Provides CRUD endpoints for deals, the stage-change endpoint used by the
pipeline board, the board view itself, and pipeline metrics. Domain errors
are translated with api.deps.http_error.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel

from src.salepro.api.deps import MessageResponse, from_state, http_error
from src.salepro.core.errors import CRMError
from src.salepro.pipeline.schemas import Deal, DealCreate, DealUpdate, PipelineMetrics
from src.salepro.services.deals import DealService, PipelineBoard, StageChangeResult

router = APIRouter(prefix="/deals", tags=["deals"])


# ── Request Schemas ──────────────────────────────────────────────────────────


class StageChangeRequest(BaseModel):
    """Request body for moving a deal to another stage."""

    stage: str


# ── Dependency Injection Helper ──────────────────────────────────────────────


def _get_deal_service(request: Request) -> DealService:
    return from_state(request, "deal_service", "Deal service")


# ── Pipeline Endpoints ───────────────────────────────────────────────────────


@router.get("/pipeline", response_model=PipelineBoard)
async def get_pipeline(request: Request) -> PipelineBoard:
    """Pipeline board: deals grouped by stage, with metrics."""
    service = _get_deal_service(request)
    try:
        return await service.pipeline()
    except CRMError as exc:
        raise http_error(exc) from exc


@router.get("/metrics", response_model=PipelineMetrics)
async def get_pipeline_metrics(request: Request) -> PipelineMetrics:
    """Aggregate pipeline metrics over every deal."""
    service = _get_deal_service(request)
    try:
        return await service.metrics()
    except CRMError as exc:
        raise http_error(exc) from exc


# ── Deal Endpoints ───────────────────────────────────────────────────────────


@router.get("", response_model=list[Deal])
async def list_deals(
    request: Request,
    stage: str | None = Query(default=None, description="Filter by pipeline stage"),
    contact_id: int | None = Query(default=None, description="Filter by contact ID"),
) -> list[Deal]:
    """List deals with optional filters."""
    service = _get_deal_service(request)
    try:
        return await service.list_deals(stage=stage, contact_id=contact_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=Deal, status_code=201)
async def create_deal(body: DealCreate, request: Request) -> Deal:
    """Create a new deal."""
    service = _get_deal_service(request)
    try:
        return await service.create_deal(body)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.get("/{deal_id}", response_model=Deal)
async def get_deal(deal_id: int, request: Request) -> Deal:
    """Get a single deal by ID."""
    service = _get_deal_service(request)
    try:
        return await service.get_deal(deal_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.patch("/{deal_id}", response_model=Deal)
async def update_deal(deal_id: int, body: DealUpdate, request: Request) -> Deal:
    """Update a deal (full-form edit)."""
    service = _get_deal_service(request)
    try:
        return await service.update_deal(deal_id, body)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.post("/{deal_id}/stage", response_model=StageChangeResult)
async def change_deal_stage(
    deal_id: int,
    body: StageChangeRequest,
    request: Request,
) -> StageChangeResult:
    """Move a deal to another pipeline stage."""
    service = _get_deal_service(request)
    try:
        return await service.change_stage(deal_id, body.stage)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.delete("/{deal_id}", response_model=MessageResponse)
async def delete_deal(deal_id: int, request: Request) -> MessageResponse:
    """Delete a deal."""
    service = _get_deal_service(request)
    try:
        await service.delete_deal(deal_id)
    except CRMError as exc:
        raise http_error(exc) from exc
    return MessageResponse(message="Deal deleted successfully!")
