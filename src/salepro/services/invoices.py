"""Invoice service -- numbering, totals recomputation, and status changes.

Totals are never accepted from callers: they are recomputed from the line
items on create and on every update that supplies line items.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel

from src.salepro.core.errors import StoreError
from src.salepro.invoices.schemas import (
    Invoice,
    InvoiceCreate,
    InvoiceStatus,
    InvoiceUpdate,
)
from src.salepro.invoices.totals import next_invoice_number, recompute_totals
from src.salepro.records.adapter import RecordStore

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvoiceStatusResult(BaseModel):
    """Outcome of a status change."""

    invoice: Invoice
    message: str


class InvoiceService:
    """Invoice operations over a RecordStore.

    Args:
        store: Invoice record store.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        store: RecordStore[Invoice],
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    def _status_fields(self, current: Invoice | None, status: InvoiceStatus) -> dict[str, Any]:
        """Fields implied by a status; Paid stamps the payment date once."""
        fields: dict[str, Any] = {"status": status}
        if status is InvoiceStatus.PAID and (current is None or current.payment_date is None):
            fields["payment_date"] = self._clock()
        return fields

    async def list_invoices(
        self,
        status: InvoiceStatus | None = None,
        contact_id: int | None = None,
    ) -> list[Invoice]:
        """List invoices, optionally filtered by status and/or contact."""
        return await self._store.find(status=status, contact_id=contact_id)

    async def get_invoice(self, invoice_id: int) -> Invoice:
        """Fetch an invoice by id.

        Raises:
            NotFoundError: If no invoice has this id.
        """
        return await self._store.require(invoice_id)

    async def create_invoice(self, payload: InvoiceCreate) -> Invoice:
        """Create a Draft invoice with the next invoice number and fresh totals.

        Raises:
            StoreError: If the store rejected the record.
        """
        now = self._clock()
        existing = await self._store.get_all()
        totals = recompute_totals(payload.line_items)

        data = payload.model_dump()
        data.update(totals.model_dump())
        data.update(
            invoice_number=next_invoice_number(existing, now),
            issue_date=now,
            status=InvoiceStatus.DRAFT,
            payment_date=None,
        )

        invoice = await self._store.create(data)
        if invoice is None:
            raise StoreError("Failed to create invoice", collection="invoice_c")

        logger.info(
            "invoices.created",
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            total_amount=str(invoice.total_amount),
        )
        return invoice

    async def update_invoice(self, invoice_id: int, payload: InvoiceUpdate) -> Invoice:
        """Merge the provided fields into an invoice.

        Supplying line items recomputes every total; supplying a status goes
        through the same rule as change_status.

        Raises:
            NotFoundError: If no invoice has this id.
            StoreError: If the store rejected the update.
        """
        current = await self._store.require(invoice_id)
        changes = payload.model_dump(exclude_unset=True)

        line_items = changes.pop("line_items", None)
        if line_items is not None:
            changes["line_items"] = line_items
            changes.update(recompute_totals(line_items).model_dump())

        status = changes.pop("status", None)
        if status is not None:
            changes.update(self._status_fields(current, InvoiceStatus(status)))

        invoice = await self._store.update(invoice_id, changes)
        if invoice is None:
            raise StoreError(f"Failed to update invoice {invoice_id}", collection="invoice_c")

        logger.info("invoices.updated", invoice_id=invoice_id, fields=sorted(changes))
        return invoice

    async def change_status(self, invoice_id: int, status: InvoiceStatus) -> InvoiceStatusResult:
        """Set an invoice's status; Paid stamps payment_date.

        Raises:
            NotFoundError: If no invoice has this id.
            StoreError: If the store rejected the update.
        """
        current = await self._store.require(invoice_id)
        invoice = await self._store.update(invoice_id, self._status_fields(current, status))
        if invoice is None:
            raise StoreError(f"Failed to update invoice {invoice_id}", collection="invoice_c")

        logger.info(
            "invoices.status_changed",
            invoice_id=invoice_id,
            from_status=current.status.value,
            to_status=status.value,
        )
        return InvoiceStatusResult(
            invoice=invoice,
            message=f"Invoice marked as {status.value.lower()}!",
        )

    async def delete_invoice(self, invoice_id: int) -> None:
        """Delete an invoice.

        Raises:
            NotFoundError: If no invoice has this id.
        """
        await self._store.require(invoice_id)
        if not await self._store.delete(invoice_id):
            raise StoreError(f"Failed to delete invoice {invoice_id}", collection="invoice_c")
        logger.info("invoices.deleted", invoice_id=invoice_id)
