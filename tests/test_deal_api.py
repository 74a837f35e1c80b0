"""Integration tests for the deal and pipeline API endpoints.

Builds a minimal FastAPI app with the deals router, wires a DealService over
in-memory stores onto app.state, and drives it with httpx AsyncClient over
ASGITransport.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.salepro.core.errors import StoreError
from src.salepro.pipeline.hooks import ClientConversionHook, PostTransitionHooks
from src.salepro.records.registry import build_memory_stores
from src.salepro.services.deals import DealService

NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


# ── Test Fixtures ────────────────────────────────────────────────────────────


def _make_app():
    """Create a minimal FastAPI app with the deals router."""
    from fastapi import FastAPI

    from src.salepro.api.v1.deals import router

    app = FastAPI()
    app.include_router(router, prefix="/v1")
    return app


@pytest_asyncio.fixture
async def client_and_stores():
    """Test client with a DealService over fresh in-memory stores."""
    app = _make_app()
    stores = build_memory_stores()
    hooks = PostTransitionHooks([ClientConversionHook(stores.contacts, stores.clients)])
    app.state.deal_service = DealService(stores.deals, hooks, clock=lambda: NOW)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client, stores


async def _create(client, **fields) -> dict:
    body = {"title": "Acme Rollout", "value": "5000", "probability": 40}
    body.update(fields)
    response = await client.post("/v1/deals", json=body)
    assert response.status_code == 201
    return response.json()


# ── CRUD ─────────────────────────────────────────────────────────────────────


async def test_create_deal(client_and_stores):
    """POST /v1/deals -> 201 with derived status."""
    client, _ = client_and_stores

    data = await _create(client, stage="Proposal", products=["Basic CRM", "Basic CRM"])

    assert data["id"] == 1
    assert data["stage"] == "Proposal"
    assert data["status"] == "Open"
    assert data["products"] == ["Basic CRM"]
    assert data["stage_updated_at"].startswith("2026-03-14T09:30")


async def test_create_deal_invalid_body(client_and_stores):
    """Negative value -> 422 from request validation."""
    client, _ = client_and_stores

    response = await client.post("/v1/deals", json={"title": "X", "value": "-1"})

    assert response.status_code == 422


async def test_create_deal_invalid_stage(client_and_stores):
    client, _ = client_and_stores

    response = await client.post("/v1/deals", json={"title": "X", "stage": "Won"})

    assert response.status_code == 422


async def test_list_and_filter_deals(client_and_stores):
    client, _ = client_and_stores
    await _create(client, title="A", contact_id=1)
    await _create(client, title="B", stage="Qualified", contact_id=2)

    all_deals = await client.get("/v1/deals")
    qualified = await client.get("/v1/deals", params={"stage": "Qualified"})
    by_contact = await client.get("/v1/deals", params={"contact_id": 1})

    assert len(all_deals.json()) == 2
    assert [d["title"] for d in qualified.json()] == ["B"]
    assert [d["title"] for d in by_contact.json()] == ["A"]


async def test_list_invalid_stage_filter(client_and_stores):
    client, _ = client_and_stores

    response = await client.get("/v1/deals", params={"stage": "Prospecting"})

    assert response.status_code == 422
    assert "Prospecting" in response.json()["detail"]


async def test_get_deal_not_found(client_and_stores):
    """GET /v1/deals/{bad_id} -> 404."""
    client, _ = client_and_stores

    response = await client.get("/v1/deals/99")

    assert response.status_code == 404


async def test_update_deal(client_and_stores):
    client, _ = client_and_stores
    deal = await _create(client)

    response = await client.patch(f"/v1/deals/{deal['id']}", json={"notes": "Call Tuesday"})

    assert response.status_code == 200
    assert response.json()["notes"] == "Call Tuesday"
    assert response.json()["stage_updated_at"] == deal["stage_updated_at"]


async def test_delete_deal(client_and_stores):
    client, _ = client_and_stores
    deal = await _create(client)

    response = await client.delete(f"/v1/deals/{deal['id']}")
    missing = await client.delete(f"/v1/deals/{deal['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Deal deleted successfully!"}
    assert missing.status_code == 404


# ── Stage Changes ────────────────────────────────────────────────────────────


async def test_change_stage_to_won(client_and_stores):
    """POST /v1/deals/{id}/stage -> persisted Won deal, message, client created."""
    client, stores = client_and_stores
    contact = await stores.contacts.create(
        {"first_name": "Ned", "last_name": "Flanders", "email": "ned@leftorium.example"}
    )
    deal = await _create(client, contact_id=contact.id, stage="Negotiation")

    response = await client.post(f"/v1/deals/{deal['id']}/stage", json={"stage": "Closed Won"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Deal moved to Closed Won successfully!"
    assert data["previous_stage"] == "Negotiation"
    assert data["deal"]["status"] == "Won"
    assert data["deal"]["actual_close_date"] is not None
    assert len(data["hooks"]["actions"]) == 1
    assert len(await stores.clients.get_all()) == 1


async def test_change_stage_invalid(client_and_stores):
    client, _ = client_and_stores
    deal = await _create(client)

    response = await client.post(f"/v1/deals/{deal['id']}/stage", json={"stage": "Closed Maybe"})

    assert response.status_code == 422


async def test_change_stage_unknown_deal(client_and_stores):
    client, _ = client_and_stores

    response = await client.post("/v1/deals/42/stage", json={"stage": "New"})

    assert response.status_code == 404


async def test_store_failure_is_502(client_and_stores):
    client, stores = client_and_stores
    deal = await _create(client)
    stores.deals.update = AsyncMock(side_effect=StoreError("record store down"))

    response = await client.post(f"/v1/deals/{deal['id']}/stage", json={"stage": "Qualified"})

    assert response.status_code == 502


# ── Pipeline Board ───────────────────────────────────────────────────────────


async def test_pipeline_board(client_and_stores):
    """GET /v1/deals/pipeline -> every stage column plus metrics."""
    client, _ = client_and_stores
    await _create(client, title="A", stage="New")
    await _create(client, title="B", stage="Closed Won", value="1000")

    response = await client.get("/v1/deals/pipeline")

    assert response.status_code == 200
    data = response.json()
    assert list(data["columns"]) == [
        "New",
        "Qualified",
        "Proposal",
        "Negotiation",
        "Closed Won",
        "Closed Lost",
    ]
    assert [d["title"] for d in data["columns"]["New"]] == ["A"]
    assert data["metrics"]["total_deals"] == 2
    assert float(data["metrics"]["win_rate"]) == 1.0


async def test_pipeline_metrics(client_and_stores):
    client, _ = client_and_stores
    await _create(client, value="500", probability=50, stage="Proposal")

    response = await client.get("/v1/deals/metrics")

    assert response.status_code == 200
    assert float(response.json()["open_weighted_value"]) == 250.0


# ── 503 When Not Initialized ────────────────────────────────────────────────


async def test_deals_api_503_when_not_initialized():
    """app.state.deal_service = None -> 503."""
    app = _make_app()
    app.state.deal_service = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/v1/deals")
        assert response.status_code == 503
        assert "not initialized" in response.json()["detail"]
