"""Pydantic schemas for invoices and their line items."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, computed_field


class InvoiceStatus(str, Enum):
    DRAFT = "Draft"
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"


class LineItem(BaseModel):
    """A single billed line; total is derived from quantity and unit price."""

    description: str = ""
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> Decimal:
        return self.quantity * self.unit_price


class InvoiceTotals(BaseModel):
    """Derived invoice totals."""

    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice. Totals are computed, not accepted."""

    contact_id: int | None = None
    deal_id: int | None = None
    due_date: datetime | None = None
    line_items: list[LineItem] = Field(default_factory=lambda: [LineItem()])


class InvoiceUpdate(BaseModel):
    """Schema for updating an invoice (all fields optional)."""

    contact_id: int | None = None
    deal_id: int | None = None
    due_date: datetime | None = None
    line_items: list[LineItem] | None = None
    status: InvoiceStatus | None = None


class Invoice(InvoiceTotals):
    """Schema for reading an invoice (includes all persisted fields)."""

    id: int
    invoice_number: str | None = None
    contact_id: int | None = None
    deal_id: int | None = None
    issue_date: datetime | None = None
    due_date: datetime | None = None
    line_items: list[LineItem] = Field(default_factory=list)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    payment_date: datetime | None = None
