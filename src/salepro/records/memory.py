"""In-memory record store for development and tests.

Implements RecordStore with a dict keyed by id. Ids are assigned as the
current maximum plus one, mirroring the hosted store's integer ids. Records are
re-validated through the read model on every write and copies are returned, so
callers never mutate stored state.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from src.salepro.core.errors import ValidationError
from src.salepro.records.adapter import FieldInput, RecordStore, RecordT, as_field_dict

logger = structlog.get_logger(__name__)


class InMemoryRecordStore(RecordStore[RecordT]):
    """Dict-backed RecordStore.

    Args:
        entity: Display name for errors and logs.
        model: Pydantic read model.
        seed: Initial records (mappings or models carrying an ``id``).
        sort_key: Ordering applied by get_all; insertion order when None.
        reverse: Reverse the sort_key ordering (newest first for activities).
        create_defaults: Fields stamped onto new records when unset.
    """

    def __init__(
        self,
        entity: str,
        model: type[RecordT],
        seed: Iterable[Mapping[str, Any] | RecordT] = (),
        sort_key: Callable[[RecordT], Any] | None = None,
        reverse: bool = False,
        create_defaults: Callable[[], dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(entity, model, create_defaults)
        self._records: dict[int, RecordT] = {}
        self._sort_key = sort_key
        self._reverse = reverse
        for item in seed:
            record = self.model.model_validate(as_field_dict(item))
            self._records[record.id] = record

    def _validate(self, data: dict[str, Any]) -> RecordT:
        try:
            return self.model.model_validate(data)
        except PydanticValidationError as exc:
            errors = [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ]
            raise ValidationError(f"Invalid {self.entity.lower()} fields", errors) from exc

    def _next_id(self) -> int:
        return max(self._records, default=0) + 1

    async def get_all(self) -> list[RecordT]:
        records = [record.model_copy(deep=True) for record in self._records.values()]
        if self._sort_key is not None:
            records.sort(key=self._sort_key, reverse=self._reverse)
        return records

    async def get_by_id(self, record_id: int) -> RecordT | None:
        record = self._records.get(int(record_id))
        return record.model_copy(deep=True) if record is not None else None

    async def create(self, fields: FieldInput) -> RecordT | None:
        data = self.with_create_defaults(fields)
        data["id"] = self._next_id()
        record = self._validate(data)
        self._records[record.id] = record
        logger.info("records.created", entity=self.entity, record_id=record.id)
        return record.model_copy(deep=True)

    async def update(self, record_id: int, fields: FieldInput) -> RecordT | None:
        current = self._records.get(int(record_id))
        if current is None:
            logger.warning("records.update_failed", entity=self.entity, record_id=record_id)
            return None

        merged = {**current.model_dump(), **as_field_dict(fields, partial=True)}
        merged["id"] = current.id
        record = self._validate(merged)
        self._records[record.id] = record
        logger.info("records.updated", entity=self.entity, record_id=record.id)
        return record.model_copy(deep=True)

    async def delete(self, record_id: int) -> bool:
        deleted = self._records.pop(int(record_id), None) is not None
        if deleted:
            logger.info("records.deleted", entity=self.entity, record_id=record_id)
        return deleted
