"""CRUD endpoints for the plain record entities.

Leads, contacts, clients, activities, and sales teams have no business rules
beyond their schemas, so one router factory serves all of them straight from
their RecordStore. List endpoints accept equality filters on a fixed set of
fields per entity (e.g. /activities?contact_id=3&type=Call).
"""

# Annotations stay eager here: endpoint body types are closure variables.
from enum import Enum
from typing import Any

import structlog
from fastapi import APIRouter, Body, HTTPException, Request, status
from pydantic import BaseModel

from src.salepro.api.deps import MessageResponse, http_error, store_from_state
from src.salepro.core.errors import CRMError, NotFoundError, StoreError
from src.salepro.records.adapter import RecordStore
from src.salepro.records.schemas import (
    Activity,
    ActivityCreate,
    ActivityUpdate,
    Client,
    ClientCreate,
    ClientUpdate,
    Contact,
    ContactCreate,
    ContactUpdate,
    Lead,
    LeadCreate,
    LeadUpdate,
    SalesTeam,
    SalesTeamCreate,
    SalesTeamUpdate,
)

logger = structlog.get_logger(__name__)


def _matches(record: BaseModel, field: str, raw: str) -> bool:
    value = getattr(record, field, None)
    if isinstance(value, Enum):
        value = value.value
    return value is not None and str(value) == raw


def _clearable(model: type[BaseModel], field: str) -> bool:
    info = model.model_fields.get(field)
    return info is not None and not info.is_required() and info.default is None


def _update_fields(read_model: type[BaseModel], body: BaseModel) -> dict[str, Any]:
    """Fields set on a PATCH body, minus nulls for fields the record cannot clear."""
    return {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or _clearable(read_model, key)
    }


def build_records_router(
    *,
    prefix: str,
    store_name: str,
    entity: str,
    read_model: type[BaseModel],
    create_model: type[BaseModel],
    update_model: type[BaseModel],
    filter_fields: tuple[str, ...] = (),
) -> APIRouter:
    """Build list/get/create/update/delete endpoints for one entity store.

    Args:
        prefix: Route prefix, e.g. "/leads".
        store_name: Attribute of app.state.stores holding the store.
        entity: Display name used in messages ("Lead").
        read_model: Response model.
        create_model: POST body model.
        update_model: PATCH body model (all fields optional).
        filter_fields: Fields the list endpoint filters on by query parameter.
    """
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])

    def _store(request: Request) -> RecordStore[Any]:
        return store_from_state(request, store_name, entity)

    @router.get("", response_model=list[read_model])
    async def list_records(request: Request) -> list[Any]:
        store = _store(request)
        filters = {
            key: value for key, value in request.query_params.items() if key in filter_fields
        }
        try:
            records = await store.get_all()
        except CRMError as exc:
            raise http_error(exc) from exc
        return [
            record
            for record in records
            if all(_matches(record, key, raw) for key, raw in filters.items())
        ]

    @router.post("", response_model=read_model, status_code=201)
    async def create_record(request: Request, body: create_model = Body(...)) -> Any:  # type: ignore[valid-type]
        store = _store(request)
        try:
            record = await store.create(body)
        except CRMError as exc:
            raise http_error(exc) from exc
        if record is None:
            raise http_error(StoreError(f"Failed to create {entity.lower()}"))
        return record

    @router.get("/{record_id}", response_model=read_model)
    async def get_record(record_id: int, request: Request) -> Any:
        store = _store(request)
        try:
            return await store.require(record_id)
        except CRMError as exc:
            raise http_error(exc) from exc

    @router.patch("/{record_id}", response_model=read_model)
    async def update_record(
        record_id: int,
        request: Request,
        body: update_model = Body(...),  # type: ignore[valid-type]
    ) -> Any:
        store = _store(request)
        try:
            await store.require(record_id)
            record = await store.update(record_id, _update_fields(read_model, body))
        except CRMError as exc:
            raise http_error(exc) from exc
        if record is None:
            raise http_error(StoreError(f"Failed to update {entity.lower()} {record_id}"))
        return record

    @router.delete("/{record_id}", response_model=MessageResponse)
    async def delete_record(record_id: int, request: Request) -> MessageResponse:
        store = _store(request)
        try:
            deleted = await store.delete(record_id)
        except CRMError as exc:
            raise http_error(exc) from exc
        if not deleted:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=str(NotFoundError(entity, record_id)),
            )
        logger.info("records.api_deleted", entity=entity, record_id=record_id)
        return MessageResponse(message=f"{entity} deleted successfully!")

    return router


# ── Entity Routers ───────────────────────────────────────────────────────────

leads_router = build_records_router(
    prefix="/leads",
    store_name="leads",
    entity="Lead",
    read_model=Lead,
    create_model=LeadCreate,
    update_model=LeadUpdate,
    filter_fields=("status", "lead_source", "company"),
)

contacts_router = build_records_router(
    prefix="/contacts",
    store_name="contacts",
    entity="Contact",
    read_model=Contact,
    create_model=ContactCreate,
    update_model=ContactUpdate,
    filter_fields=("account_id", "relationship_level", "company"),
)

clients_router = build_records_router(
    prefix="/clients",
    store_name="clients",
    entity="Client",
    read_model=Client,
    create_model=ClientCreate,
    update_model=ClientUpdate,
    filter_fields=("account_id", "relationship_level", "company"),
)

activities_router = build_records_router(
    prefix="/activities",
    store_name="activities",
    entity="Activity",
    read_model=Activity,
    create_model=ActivityCreate,
    update_model=ActivityUpdate,
    filter_fields=("contact_id", "deal_id", "type", "outcome"),
)

sales_teams_router = build_records_router(
    prefix="/sales-teams",
    store_name="sales_teams",
    entity="Sales team",
    read_model=SalesTeam,
    create_model=SalesTeamCreate,
    update_model=SalesTeamUpdate,
    filter_fields=("region", "team_lead"),
)
