"""Unit tests for invoice totals recomputation and invoice numbering."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from src.salepro.invoices.schemas import Invoice, LineItem
from src.salepro.invoices.totals import TAX_RATE, next_invoice_number, recompute_totals

NOW = datetime(2026, 3, 14, tzinfo=timezone.utc)


class TestRecomputeTotals:
    """Tests for recompute_totals."""

    def test_subtotal_tax_and_total(self):
        """2 x 50 + 1 x 100 -> subtotal 200, tax 16, total 216."""
        items = [
            LineItem(description="Seats", quantity=Decimal("2"), unit_price=Decimal("50")),
            LineItem(description="Onboarding", quantity=Decimal("1"), unit_price=Decimal("100")),
        ]

        totals = recompute_totals(items)

        assert totals.subtotal == Decimal("200")
        assert totals.tax_amount == Decimal("16")
        assert totals.total_amount == Decimal("216")

    def test_accepts_dict_line_items(self):
        totals = recompute_totals([{"quantity": "3", "unit_price": "10.50"}])

        assert totals.subtotal == Decimal("31.50")
        assert totals.total_amount == Decimal("31.50") * (1 + TAX_RATE)

    def test_empty_line_items(self):
        totals = recompute_totals([])

        assert totals.subtotal == 0
        assert totals.tax_amount == 0
        assert totals.total_amount == 0

    def test_line_item_total_is_derived(self):
        item = LineItem(quantity=Decimal("4"), unit_price=Decimal("2.25"))

        assert item.total == Decimal("9.00")
        assert item.model_dump()["total"] == Decimal("9.00")

    def test_matches_fresh_recomputation_after_edit(self):
        """Editing a line item and recomputing yields the new totals."""
        items = [LineItem(quantity=Decimal("1"), unit_price=Decimal("100"))]
        before = recompute_totals(items)

        items[0] = items[0].model_copy(update={"quantity": Decimal("3")})
        after = recompute_totals(items)

        assert before.subtotal == Decimal("100")
        assert after.subtotal == Decimal("300")
        assert after.tax_amount == Decimal("24")


class TestNextInvoiceNumber:
    """Tests for invoice number generation."""

    def test_continues_from_highest_id(self):
        existing = [Invoice(id=1), Invoice(id=3), Invoice(id=2)]

        assert next_invoice_number(existing, NOW) == "INV-2026-004"

    def test_first_invoice(self):
        assert next_invoice_number([], NOW) == "INV-2026-001"

    def test_year_follows_clock(self):
        later = datetime(2027, 1, 2, tzinfo=timezone.utc)

        assert next_invoice_number([Invoice(id=41)], later) == "INV-2027-042"
