"""Record store abstract base class -- the interface every entity store implements.

Every backend (the hosted record API, the in-memory development store) implements
this ABC. Services depend only on RecordStore, so the backend is chosen once in
records.registry from settings.

Stores are generic over the pydantic read model they return (Deal, Lead, ...).
Create and update accept either a field mapping or a pydantic payload; for
updates only the fields actually set on the payload are merged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from src.salepro.core.errors import NotFoundError

RecordT = TypeVar("RecordT", bound=BaseModel)

FieldInput = Mapping[str, Any] | BaseModel


def as_field_dict(fields: FieldInput, *, partial: bool = False) -> dict[str, Any]:
    """Normalize create/update input into a plain field dict.

    Args:
        fields: Mapping or pydantic payload.
        partial: For pydantic payloads, keep only explicitly set fields.
    """
    if isinstance(fields, BaseModel):
        return fields.model_dump(exclude_unset=partial)
    return dict(fields)


class RecordStore(ABC, Generic[RecordT]):
    """Abstract interface for one entity collection.

    Methods:
        get_all: List every record in the collection.
        get_by_id: Fetch one record, None when absent.
        create: Create a record, return it (None when the store rejected it).
        update: Merge fields into a record, return it (None when rejected).
        delete: Delete a record, return whether it was deleted.

    Args:
        entity: Display name used in errors and logs ("Deal", "Lead").
        model: Pydantic read model records are validated into.
        create_defaults: Callable returning fields stamped onto new records
            when the caller leaves them unset (e.g. created_date).
    """

    def __init__(
        self,
        entity: str,
        model: type[RecordT],
        create_defaults: Callable[[], dict[str, Any]] | None = None,
    ) -> None:
        self.entity = entity
        self.model = model
        self._create_defaults = create_defaults

    @abstractmethod
    async def get_all(self) -> list[RecordT]:
        """List every record in the collection."""
        ...

    @abstractmethod
    async def get_by_id(self, record_id: int) -> RecordT | None:
        """Fetch a record by id."""
        ...

    @abstractmethod
    async def create(self, fields: FieldInput) -> RecordT | None:
        """Create a record, return it."""
        ...

    @abstractmethod
    async def update(self, record_id: int, fields: FieldInput) -> RecordT | None:
        """Merge fields into an existing record, return it."""
        ...

    @abstractmethod
    async def delete(self, record_id: int) -> bool:
        """Delete a record by id."""
        ...

    # ── Shared helpers ──────────────────────────────────────────────────────

    def with_create_defaults(self, fields: FieldInput) -> dict[str, Any]:
        """Return create fields with configured defaults filled in where unset."""
        data = as_field_dict(fields)
        if self._create_defaults is not None:
            for key, value in self._create_defaults().items():
                if data.get(key) is None:
                    data[key] = value
        return data

    async def require(self, record_id: int) -> RecordT:
        """Fetch a record by id or raise NotFoundError."""
        record = await self.get_by_id(record_id)
        if record is None:
            raise NotFoundError(self.entity, record_id)
        return record

    async def find(self, **criteria: Any) -> list[RecordT]:
        """List records whose fields equal every given criterion.

        Criteria set to None are ignored, so optional query parameters can be
        passed straight through.
        """
        active = {key: value for key, value in criteria.items() if value is not None}
        records = await self.get_all()
        if not active:
            return records
        return [
            record
            for record in records
            if all(getattr(record, key, None) == value for key, value in active.items())
        ]
