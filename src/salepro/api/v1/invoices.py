"""REST API endpoints for invoices.

Totals are always computed server-side; /invoices/totals previews them for
an unsaved set of line items.
"""

from __future__ import annotations

from fastapi import APIRouter, Query, Request
from pydantic import BaseModel, Field

from src.salepro.api.deps import MessageResponse, from_state, http_error
from src.salepro.core.errors import CRMError
from src.salepro.invoices.schemas import (
    Invoice,
    InvoiceCreate,
    InvoiceStatus,
    InvoiceTotals,
    InvoiceUpdate,
    LineItem,
)
from src.salepro.invoices.totals import recompute_totals
from src.salepro.services.invoices import InvoiceService, InvoiceStatusResult

router = APIRouter(prefix="/invoices", tags=["invoices"])


# ── Request Schemas ──────────────────────────────────────────────────────────


class TotalsRequest(BaseModel):
    """Request body for previewing invoice totals."""

    line_items: list[LineItem] = Field(default_factory=list)


class StatusChangeRequest(BaseModel):
    """Request body for changing an invoice's status."""

    status: InvoiceStatus


def _get_invoice_service(request: Request) -> InvoiceService:
    return from_state(request, "invoice_service", "Invoice service")


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.post("/totals", response_model=InvoiceTotals)
async def preview_totals(body: TotalsRequest) -> InvoiceTotals:
    """Compute subtotal, tax, and total for a set of line items."""
    return recompute_totals(body.line_items)


@router.get("", response_model=list[Invoice])
async def list_invoices(
    request: Request,
    status: InvoiceStatus | None = Query(default=None, description="Filter by status"),
    contact_id: int | None = Query(default=None, description="Filter by contact ID"),
) -> list[Invoice]:
    """List invoices with optional filters."""
    service = _get_invoice_service(request)
    try:
        return await service.list_invoices(status=status, contact_id=contact_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.post("", response_model=Invoice, status_code=201)
async def create_invoice(body: InvoiceCreate, request: Request) -> Invoice:
    """Create a Draft invoice."""
    service = _get_invoice_service(request)
    try:
        return await service.create_invoice(body)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.get("/{invoice_id}", response_model=Invoice)
async def get_invoice(invoice_id: int, request: Request) -> Invoice:
    """Get a single invoice by ID."""
    service = _get_invoice_service(request)
    try:
        return await service.get_invoice(invoice_id)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.patch("/{invoice_id}", response_model=Invoice)
async def update_invoice(invoice_id: int, body: InvoiceUpdate, request: Request) -> Invoice:
    """Update an invoice; totals are recomputed when line items change."""
    service = _get_invoice_service(request)
    try:
        return await service.update_invoice(invoice_id, body)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.post("/{invoice_id}/status", response_model=InvoiceStatusResult)
async def change_invoice_status(
    invoice_id: int,
    body: StatusChangeRequest,
    request: Request,
) -> InvoiceStatusResult:
    """Change an invoice's status (Paid stamps the payment date)."""
    service = _get_invoice_service(request)
    try:
        return await service.change_status(invoice_id, body.status)
    except CRMError as exc:
        raise http_error(exc) from exc


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(invoice_id: int, request: Request) -> MessageResponse:
    """Delete an invoice."""
    service = _get_invoice_service(request)
    try:
        await service.delete_invoice(invoice_id)
    except CRMError as exc:
        raise http_error(exc) from exc
    return MessageResponse(message="Invoice deleted successfully!")
