"""Field mappings between internal record fields and the hosted record store.

Defines:
- FIELD_MAPS: per-collection maps from internal field names to remote field
  names and value types. Custom remote fields carry the store's ``_c`` suffix;
  ``Name`` is the store's built-in display field.
- to_remote_fields(): Converts an internal field dict to remote record fields.
- from_remote_record(): Converts a remote record to an internal field dict.

Numbers (deal value, invoice totals) travel as decimal strings, never floats.
List fields (deal products) travel as comma-joined strings and structured
fields (invoice line items) as JSON text. That serialization lives only here.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

# Remote primary key field.
REMOTE_ID_FIELD = "Id"

# Value types understood by the converters.
TEXT = "text"
NUMBER = "number"
INTEGER = "integer"
DATE = "date"
LIST = "list"
JSON = "json"


# ── Field Maps ─────────────────────────────────────────────────────────────
# internal field -> (remote field, type)

LEAD_FIELDS: dict[str, tuple[str, str]] = {
    "first_name": ("first_name_c", TEXT),
    "last_name": ("last_name_c", TEXT),
    "email": ("email_c", TEXT),
    "phone": ("phone_c", TEXT),
    "company": ("company_c", TEXT),
    "job_title": ("job_title_c", TEXT),
    "industry": ("industry_c", TEXT),
    "lead_source": ("lead_source_c", TEXT),
    "status": ("status_c", TEXT),
    "created_date": ("created_date_c", DATE),
    "last_contact": ("last_contact_c", DATE),
}

CONTACT_FIELDS: dict[str, tuple[str, str]] = {
    "first_name": ("first_name_c", TEXT),
    "last_name": ("last_name_c", TEXT),
    "email": ("email_c", TEXT),
    "phone": ("phone_c", TEXT),
    "company": ("company_c", TEXT),
    "job_title": ("job_title_c", TEXT),
    "account_id": ("account_id_c", TEXT),
    "relationship_level": ("relationship_level_c", TEXT),
    "notes": ("notes_c", TEXT),
    "last_interaction": ("last_interaction_c", DATE),
}

# Clients share the contact layout in their own collection.
CLIENT_FIELDS: dict[str, tuple[str, str]] = dict(CONTACT_FIELDS)

DEAL_FIELDS: dict[str, tuple[str, str]] = {
    "title": ("Name", TEXT),
    "contact_id": ("contact_id_c", INTEGER),
    "account_id": ("account_id_c", TEXT),
    "value": ("value_c", NUMBER),
    "probability": ("probability_c", INTEGER),
    "stage": ("stage_c", TEXT),
    "status": ("status_c", TEXT),
    "expected_close_date": ("expected_close_date_c", DATE),
    "actual_close_date": ("actual_close_date_c", DATE),
    "stage_updated_at": ("stage_updated_at_c", DATE),
    "products": ("products_c", LIST),
    "notes": ("notes_c", TEXT),
    "sales_team": ("sales_team_c", TEXT),
}

INVOICE_FIELDS: dict[str, tuple[str, str]] = {
    "invoice_number": ("Name", TEXT),
    "contact_id": ("contact_id_c", INTEGER),
    "deal_id": ("deal_id_c", INTEGER),
    "issue_date": ("issue_date_c", DATE),
    "due_date": ("due_date_c", DATE),
    "line_items": ("line_items_c", JSON),
    "subtotal": ("subtotal_c", NUMBER),
    "tax_amount": ("tax_amount_c", NUMBER),
    "total_amount": ("total_amount_c", NUMBER),
    "status": ("status_c", TEXT),
    "payment_date": ("payment_date_c", DATE),
}

ACTIVITY_FIELDS: dict[str, tuple[str, str]] = {
    "subject": ("Name", TEXT),
    "type": ("type_c", TEXT),
    "contact_id": ("contact_id_c", INTEGER),
    "deal_id": ("deal_id_c", INTEGER),
    "description": ("description_c", TEXT),
    "date": ("date_c", DATE),
    "duration": ("duration_c", INTEGER),
    "outcome": ("outcome_c", TEXT),
}

SALES_TEAM_FIELDS: dict[str, tuple[str, str]] = {
    "name": ("Name", TEXT),
    "member_name": ("Name_c", TEXT),
    "description": ("description_c", TEXT),
    "team_lead": ("team_lead_c", TEXT),
    "region": ("region_c", TEXT),
    "user": ("user_c", TEXT),
}

FIELD_MAPS: dict[str, dict[str, tuple[str, str]]] = {
    "lead_c": LEAD_FIELDS,
    "contact_c": CONTACT_FIELDS,
    "client_c": CLIENT_FIELDS,
    "deal_c": DEAL_FIELDS,
    "invoice_c": INVOICE_FIELDS,
    "activity_c": ACTIVITY_FIELDS,
    "sales_team_c": SALES_TEAM_FIELDS,
}


# ── Conversion Functions ───────────────────────────────────────────────────


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _encode(value: Any, value_type: str) -> Any:
    """Convert one internal value to its remote representation."""
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value

    if value_type == NUMBER:
        return str(Decimal(str(value)))
    if value_type == INTEGER:
        return int(value)
    if value_type == DATE:
        return value.isoformat() if hasattr(value, "isoformat") else str(value)
    if value_type == LIST:
        return ",".join(str(item) for item in value)
    if value_type == JSON:
        items = [
            item.model_dump(mode="json") if hasattr(item, "model_dump") else item
            for item in value
        ]
        return json.dumps(items, default=_json_default)
    return str(value)


def _decode(value: Any, value_type: str) -> Any:
    """Convert one remote value back to its internal representation."""
    if value is None:
        return [] if value_type in (LIST, JSON) else None

    if value_type == NUMBER:
        return Decimal(str(value))
    if value_type == INTEGER and isinstance(value, dict):
        # Lookup fields come back as {"Id": ..., "Name": ...}
        return value.get(REMOTE_ID_FIELD)
    if value_type == LIST:
        if isinstance(value, list):
            return [str(item).strip() for item in value if str(item).strip()]
        return [item.strip() for item in str(value).split(",") if item.strip()]
    if value_type == JSON:
        if isinstance(value, str):
            return json.loads(value) if value.strip() else []
        return value
    return value


def to_remote_fields(
    data: dict[str, Any],
    field_map: dict[str, tuple[str, str]],
) -> dict[str, Any]:
    """Convert an internal field dict to remote record fields.

    Unmapped keys are dropped. None values are kept so that an update can
    clear a remote field (e.g. actual_close_date when a deal is reopened).

    Args:
        data: Internal field names to values.
        field_map: Map for the target collection.

    Returns:
        Dict suitable for the record store's ``records`` payload.
    """
    record: dict[str, Any] = {}
    for field_name, value in data.items():
        if field_name not in field_map:
            continue
        remote_name, value_type = field_map[field_name]
        record[remote_name] = _encode(value, value_type)
    return record


def from_remote_record(
    record: dict[str, Any],
    field_map: dict[str, tuple[str, str]],
) -> dict[str, Any]:
    """Convert a remote record to an internal field dict.

    Args:
        record: Remote record as returned by the store.
        field_map: Map for the source collection.

    Returns:
        Internal field dict including ``id``; remote fields that are absent
        or null are omitted so model defaults apply.
    """
    result: dict[str, Any] = {}
    if REMOTE_ID_FIELD in record:
        result["id"] = record[REMOTE_ID_FIELD]

    for internal_name, (remote_name, value_type) in field_map.items():
        if remote_name not in record:
            continue
        if record[remote_name] is None and value_type not in (LIST, JSON):
            continue
        result[internal_name] = _decode(record[remote_name], value_type)

    return result


def remote_field_names(field_map: dict[str, tuple[str, str]]) -> list[str]:
    """Return the remote field list to request, primary key first."""
    names = [REMOTE_ID_FIELD]
    for remote_name, _ in field_map.values():
        if remote_name not in names:
            names.append(remote_name)
    return names
