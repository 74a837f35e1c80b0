"""Integration tests for the invoice API endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.salepro.records.registry import build_memory_stores
from src.salepro.services.invoices import InvoiceService

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)

LINE_ITEMS = [
    {"description": "Seats", "quantity": "2", "unit_price": "50"},
    {"description": "Onboarding", "quantity": "1", "unit_price": "100"},
]


def _make_app():
    """Create a minimal FastAPI app with the invoices router."""
    from fastapi import FastAPI

    from src.salepro.api.v1.invoices import router

    app = FastAPI()
    app.include_router(router, prefix="/v1")
    return app


@pytest_asyncio.fixture
async def client():
    app = _make_app()
    app.state.invoice_service = InvoiceService(build_memory_stores().invoices, clock=lambda: NOW)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_preview_totals(client):
    """POST /v1/invoices/totals -> computed totals without persisting."""
    response = await client.post("/v1/invoices/totals", json={"line_items": LINE_ITEMS})

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["subtotal"]) == Decimal("200")
    assert Decimal(data["tax_amount"]) == Decimal("16")
    assert Decimal(data["total_amount"]) == Decimal("216")


async def test_create_invoice_ignores_client_totals(client):
    """Totals sent by the caller are discarded and recomputed."""
    response = await client.post(
        "/v1/invoices",
        json={"contact_id": 3, "line_items": LINE_ITEMS, "total_amount": "1"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["invoice_number"] == "INV-2026-001"
    assert data["status"] == "Draft"
    assert Decimal(data["total_amount"]) == Decimal("216")
    assert Decimal(data["line_items"][0]["total"]) == Decimal("100")


async def test_update_line_items(client):
    created = (await client.post("/v1/invoices", json={"line_items": LINE_ITEMS})).json()

    response = await client.patch(
        f"/v1/invoices/{created['id']}",
        json={"line_items": [{"description": "Seats", "quantity": "10", "unit_price": "50"}]},
    )

    assert response.status_code == 200
    assert Decimal(response.json()["subtotal"]) == Decimal("500")


async def test_mark_paid(client):
    """POST /v1/invoices/{id}/status -> message and payment date."""
    created = (await client.post("/v1/invoices", json={"line_items": LINE_ITEMS})).json()

    response = await client.post(f"/v1/invoices/{created['id']}/status", json={"status": "Paid"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Invoice marked as paid!"
    assert data["invoice"]["payment_date"] is not None


async def test_invalid_status(client):
    created = (await client.post("/v1/invoices", json={})).json()

    response = await client.post(f"/v1/invoices/{created['id']}/status", json={"status": "Void"})

    assert response.status_code == 422


async def test_filter_by_status(client):
    first = (await client.post("/v1/invoices", json={})).json()
    await client.post("/v1/invoices", json={})
    await client.post(f"/v1/invoices/{first['id']}/status", json={"status": "Pending"})

    response = await client.get("/v1/invoices", params={"status": "Pending"})

    assert [i["id"] for i in response.json()] == [first["id"]]


async def test_get_and_delete(client):
    created = (await client.post("/v1/invoices", json={})).json()

    fetched = await client.get(f"/v1/invoices/{created['id']}")
    deleted = await client.delete(f"/v1/invoices/{created['id']}")
    missing = await client.get(f"/v1/invoices/{created['id']}")

    assert fetched.status_code == 200
    assert deleted.json() == {"message": "Invoice deleted successfully!"}
    assert missing.status_code == 404


async def test_invoices_api_503_when_not_initialized():
    app = _make_app()
    app.state.invoice_service = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/v1/invoices")
        assert response.status_code == 503
