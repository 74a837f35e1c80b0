"""Tests for InvoiceService over in-memory stores."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.salepro.core.errors import NotFoundError
from src.salepro.invoices.schemas import InvoiceCreate, InvoiceStatus, InvoiceUpdate, LineItem
from src.salepro.services.invoices import InvoiceService


@pytest.fixture
def clock_values(fixed_now) -> list[datetime]:
    return [fixed_now]


@pytest.fixture
def service(stores, clock_values) -> InvoiceService:
    return InvoiceService(stores.invoices, clock=lambda: clock_values[-1])


def _payload(**overrides) -> InvoiceCreate:
    defaults = {
        "contact_id": 1,
        "line_items": [
            LineItem(description="Seats", quantity=Decimal("2"), unit_price=Decimal("50")),
            LineItem(description="Onboarding", quantity=Decimal("1"), unit_price=Decimal("100")),
        ],
    }
    defaults.update(overrides)
    return InvoiceCreate(**defaults)


class TestCreateInvoice:
    """Tests for create_invoice."""

    async def test_draft_with_number_and_totals(self, service, fixed_now):
        invoice = await service.create_invoice(_payload())

        assert invoice.status is InvoiceStatus.DRAFT
        assert invoice.invoice_number == "INV-2026-001"
        assert invoice.issue_date == fixed_now
        assert invoice.subtotal == Decimal("200")
        assert invoice.tax_amount == Decimal("16")
        assert invoice.total_amount == Decimal("216")
        assert invoice.payment_date is None

    async def test_numbers_increment(self, service):
        await service.create_invoice(_payload())
        second = await service.create_invoice(_payload())

        assert second.invoice_number == "INV-2026-002"

    async def test_default_single_empty_line(self, service):
        invoice = await service.create_invoice(InvoiceCreate())

        assert len(invoice.line_items) == 1
        assert invoice.total_amount == 0


class TestUpdateInvoice:
    """Tests for update_invoice."""

    async def test_line_items_recompute_totals(self, service):
        invoice = await service.create_invoice(_payload())

        updated = await service.update_invoice(
            invoice.id,
            InvoiceUpdate(line_items=[LineItem(quantity=Decimal("5"), unit_price=Decimal("20"))]),
        )

        assert updated.subtotal == Decimal("100")
        assert updated.tax_amount == Decimal("8")
        assert updated.total_amount == Decimal("108")
        assert len(updated.line_items) == 1

    async def test_other_fields_keep_totals(self, service):
        invoice = await service.create_invoice(_payload())
        due = datetime(2026, 4, 14, tzinfo=timezone.utc)

        updated = await service.update_invoice(invoice.id, InvoiceUpdate(due_date=due))

        assert updated.due_date == due
        assert updated.total_amount == Decimal("216")

    async def test_status_through_update_stamps_paid(self, service, fixed_now):
        invoice = await service.create_invoice(_payload())

        updated = await service.update_invoice(invoice.id, InvoiceUpdate(status=InvoiceStatus.PAID))

        assert updated.status is InvoiceStatus.PAID
        assert updated.payment_date == fixed_now

    async def test_unknown_invoice(self, service):
        with pytest.raises(NotFoundError):
            await service.update_invoice(99, InvoiceUpdate(status=InvoiceStatus.PENDING))


class TestChangeStatus:
    """Tests for change_status."""

    async def test_message_uses_lowercase_status(self, service):
        invoice = await service.create_invoice(_payload())

        result = await service.change_status(invoice.id, InvoiceStatus.PENDING)

        assert result.message == "Invoice marked as pending!"
        assert result.invoice.status is InvoiceStatus.PENDING
        assert result.invoice.payment_date is None

    async def test_paid_stamps_payment_date_once(self, service, clock_values, fixed_now):
        invoice = await service.create_invoice(_payload())

        first = await service.change_status(invoice.id, InvoiceStatus.PAID)
        clock_values.append(datetime(2026, 5, 1, tzinfo=timezone.utc))
        second = await service.change_status(invoice.id, InvoiceStatus.PAID)

        assert first.message == "Invoice marked as paid!"
        assert first.invoice.payment_date == fixed_now
        assert second.invoice.payment_date == fixed_now


class TestQueries:
    """Tests for listing and delete."""

    async def test_filters(self, service):
        first = await service.create_invoice(_payload(contact_id=1))
        await service.create_invoice(_payload(contact_id=2))
        await service.change_status(first.id, InvoiceStatus.OVERDUE)

        overdue = await service.list_invoices(status=InvoiceStatus.OVERDUE)
        by_contact = await service.list_invoices(contact_id=2)

        assert [i.id for i in overdue] == [first.id]
        assert [i.contact_id for i in by_contact] == [2]
        assert len(await service.list_invoices()) == 2

    async def test_delete(self, service):
        invoice = await service.create_invoice(_payload())

        await service.delete_invoice(invoice.id)

        with pytest.raises(NotFoundError):
            await service.get_invoice(invoice.id)
