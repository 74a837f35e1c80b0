"""Builds the set of entity stores for the configured backend.

build_stores() is called once from the application lifespan. With
STORE_BACKEND=remote every store shares one RecordStoreClient; with
STORE_BACKEND=memory each store is an InMemoryRecordStore.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import structlog

from src.salepro.config import Settings, StoreBackend
from src.salepro.invoices.schemas import Invoice
from src.salepro.pipeline.schemas import Deal
from src.salepro.records.adapter import RecordStore
from src.salepro.records.client import RecordStoreClient
from src.salepro.records.memory import InMemoryRecordStore
from src.salepro.records.remote import RemoteRecordStore
from src.salepro.records.schemas import Activity, Client, Contact, Lead, SalesTeam

logger = structlog.get_logger(__name__)


@dataclass
class RecordStores:
    """One store per entity collection."""

    leads: RecordStore[Lead]
    contacts: RecordStore[Contact]
    clients: RecordStore[Client]
    deals: RecordStore[Deal]
    invoices: RecordStore[Invoice]
    activities: RecordStore[Activity]
    sales_teams: RecordStore[SalesTeam]


# ── Create defaults ─────────────────────────────────────────────────────────


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _lead_defaults() -> dict[str, Any]:
    now = _now()
    return {"created_date": now, "last_contact": now}


def _contact_defaults() -> dict[str, Any]:
    return {"last_interaction": _now()}


def _activity_defaults() -> dict[str, Any]:
    return {"date": _now()}


def _activity_recency(activity: Activity) -> float:
    return activity.date.timestamp() if activity.date is not None else float("-inf")


# ── Builders ────────────────────────────────────────────────────────────────


def build_remote_stores(client: RecordStoreClient, page_size: int = 100) -> RecordStores:
    """Stores backed by the hosted record API."""
    return RecordStores(
        leads=RemoteRecordStore(
            client, "lead_c", "Lead", Lead,
            page_size=page_size, create_defaults=_lead_defaults,
        ),
        contacts=RemoteRecordStore(
            client, "contact_c", "Contact", Contact,
            page_size=page_size, create_defaults=_contact_defaults,
        ),
        clients=RemoteRecordStore(
            client, "client_c", "Client", Client,
            page_size=page_size, create_defaults=_contact_defaults,
        ),
        deals=RemoteRecordStore(client, "deal_c", "Deal", Deal, page_size=page_size),
        invoices=RemoteRecordStore(client, "invoice_c", "Invoice", Invoice, page_size=page_size),
        activities=RemoteRecordStore(
            client, "activity_c", "Activity", Activity,
            order_by=[{"fieldName": "date_c", "sorttype": "DESC"}],
            page_size=page_size, create_defaults=_activity_defaults,
        ),
        sales_teams=RemoteRecordStore(
            client, "sales_team_c", "SalesTeam", SalesTeam,
            order_by=[{"fieldName": "Name", "sorttype": "ASC"}],
            page_size=page_size,
        ),
    )


def build_memory_stores() -> RecordStores:
    """Empty in-memory stores for development and tests."""
    return RecordStores(
        leads=InMemoryRecordStore("Lead", Lead, create_defaults=_lead_defaults),
        contacts=InMemoryRecordStore("Contact", Contact, create_defaults=_contact_defaults),
        clients=InMemoryRecordStore("Client", Client, create_defaults=_contact_defaults),
        deals=InMemoryRecordStore("Deal", Deal),
        invoices=InMemoryRecordStore("Invoice", Invoice),
        activities=InMemoryRecordStore(
            "Activity", Activity,
            sort_key=_activity_recency, reverse=True,
            create_defaults=_activity_defaults,
        ),
        sales_teams=InMemoryRecordStore(
            "SalesTeam", SalesTeam, sort_key=lambda team: team.name
        ),
    )


def build_stores(settings: Settings, client: RecordStoreClient | None = None) -> RecordStores:
    """Build stores for settings.STORE_BACKEND.

    Args:
        settings: Application settings.
        client: Pre-built client for the remote backend; created from
            settings when omitted.
    """
    if settings.STORE_BACKEND == StoreBackend.remote:
        if client is None:
            client = RecordStoreClient(
                base_url=settings.RECORD_STORE_URL,
                project_id=settings.RECORD_STORE_PROJECT_ID,
                public_key=settings.RECORD_STORE_PUBLIC_KEY,
                timeout=settings.RECORD_STORE_TIMEOUT,
            )
        logger.info("records.backend_selected", backend="remote", url=settings.RECORD_STORE_URL)
        return build_remote_stores(client, page_size=settings.RECORD_STORE_PAGE_SIZE)

    logger.info("records.backend_selected", backend="memory")
    return build_memory_stores()
