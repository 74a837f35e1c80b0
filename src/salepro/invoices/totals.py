"""Invoice totals recomputation and invoice numbering.

Totals are always derived from the line items: callers recompute after every
line-item insert/update/remove and before every submission, so the stored
totals match a fresh recomputation.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.salepro.invoices.schemas import Invoice, InvoiceTotals, LineItem

# Fixed sales tax rate applied to the subtotal.
TAX_RATE = Decimal("0.08")


def _as_line_item(item: LineItem | Mapping[str, Any]) -> LineItem:
    if isinstance(item, LineItem):
        return item
    return LineItem.model_validate(item)


def recompute_totals(line_items: Iterable[LineItem | Mapping[str, Any]]) -> InvoiceTotals:
    """Compute subtotal, tax, and grand total for a set of line items.

    Args:
        line_items: LineItem models or dicts with quantity/unit_price.

    Returns:
        InvoiceTotals where subtotal = sum(quantity x unit_price),
        tax_amount = subtotal x TAX_RATE, total_amount = subtotal + tax_amount.
    """
    subtotal = sum((_as_line_item(item).total for item in line_items), Decimal("0"))
    tax_amount = subtotal * TAX_RATE
    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total_amount=subtotal + tax_amount,
    )


def next_invoice_number(existing: Iterable[Invoice], now: datetime) -> str:
    """Return the next invoice number, e.g. INV-2026-007.

    The sequence continues from the highest existing invoice id.
    """
    next_id = max((invoice.id for invoice in existing), default=0) + 1
    return f"INV-{now.year}-{next_id:03d}"
