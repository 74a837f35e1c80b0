"""Record store backed by the hosted record API.

Implements RecordStore over an injected RecordStoreClient, one instance per
collection. Field names and value encodings are translated with
field_mapping.to_remote_fields / from_remote_record.

Envelope handling:
- get_all pages through ``data`` until a short page; ``success: false`` raises
  StoreError since an empty list would be indistinguishable from no records.
- get_by_id returns None for missing records.
- create/update return the first successful result, or None when every result
  failed; each failed result message is logged.
- delete returns True only when the record was deleted.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from src.salepro.core.errors import StoreError
from src.salepro.records.adapter import FieldInput, RecordStore, RecordT, as_field_dict
from src.salepro.records.client import RecordStoreClient
from src.salepro.records.field_mapping import (
    FIELD_MAPS,
    REMOTE_ID_FIELD,
    from_remote_record,
    remote_field_names,
    to_remote_fields,
)

logger = structlog.get_logger(__name__)


class RemoteRecordStore(RecordStore[RecordT]):
    """One hosted collection exposed as a RecordStore.

    Args:
        client: Shared RecordStoreClient.
        collection: Remote collection name, e.g. "deal_c".
        entity: Display name for errors and logs.
        model: Pydantic read model.
        order_by: Remote ordering, e.g. [{"fieldName": "date_c", "sorttype": "DESC"}].
        page_size: Records requested per query page.
        create_defaults: Fields stamped onto new records when unset.
    """

    def __init__(
        self,
        client: RecordStoreClient,
        collection: str,
        entity: str,
        model: type[RecordT],
        order_by: list[dict[str, str]] | None = None,
        page_size: int = 100,
        create_defaults: Callable[[], dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(entity, model, create_defaults)
        self._client = client
        self._collection = collection
        self._field_map = FIELD_MAPS[collection]
        self._fields = remote_field_names(self._field_map)
        self._order_by = order_by
        self._page_size = page_size

    def _to_model(self, record: dict[str, Any]) -> RecordT:
        return self.model.model_validate(from_remote_record(record, self._field_map))

    def _first_result(self, envelope: dict[str, Any], operation: str) -> dict[str, Any] | None:
        """Return data of the first successful result; log every failure."""
        if not envelope.get("success"):
            logger.error(
                f"records.{operation}_failed",
                collection=self._collection,
                message=envelope.get("message"),
            )
            return None

        results = envelope.get("results") or []
        failed = [result for result in results if not result.get("success")]
        for result in failed:
            logger.error(
                f"records.{operation}_failed",
                collection=self._collection,
                message=result.get("message"),
            )

        for result in results:
            if result.get("success"):
                return result.get("data") or {}
        return None

    async def get_all(self) -> list[RecordT]:
        records: list[RecordT] = []
        offset = 0
        while True:
            envelope = await self._client.fetch_records(
                self._collection,
                self._fields,
                order_by=self._order_by,
                limit=self._page_size,
                offset=offset,
            )
            if not envelope.get("success"):
                message = envelope.get("message") or "unknown error"
                logger.error(
                    "records.fetch_failed",
                    collection=self._collection,
                    message=message,
                )
                raise StoreError(
                    f"Failed to load {self._collection}: {message}",
                    collection=self._collection,
                )

            page = envelope.get("data") or []
            records.extend(self._to_model(record) for record in page)
            if len(page) < self._page_size:
                return records
            offset += self._page_size

    async def get_by_id(self, record_id: int) -> RecordT | None:
        envelope = await self._client.get_record_by_id(self._collection, record_id, self._fields)
        if not envelope.get("success") or not envelope.get("data"):
            return None
        return self._to_model(envelope["data"])

    async def create(self, fields: FieldInput) -> RecordT | None:
        payload = to_remote_fields(self.with_create_defaults(fields), self._field_map)
        envelope = await self._client.create_record(self._collection, [payload])
        data = self._first_result(envelope, "create")
        if data is None:
            return None

        logger.info(
            "records.created",
            collection=self._collection,
            record_id=data.get(REMOTE_ID_FIELD),
        )
        return self._to_model({**payload, **data})

    async def update(self, record_id: int, fields: FieldInput) -> RecordT | None:
        payload = to_remote_fields(as_field_dict(fields, partial=True), self._field_map)
        payload[REMOTE_ID_FIELD] = int(record_id)
        envelope = await self._client.update_record(self._collection, [payload])
        data = self._first_result(envelope, "update")
        if data is None:
            return None

        logger.info("records.updated", collection=self._collection, record_id=record_id)
        # The store may echo only the changed fields; re-read the full record.
        if set(data) <= set(payload):
            return await self.get_by_id(record_id)
        return self._to_model(data)

    async def delete(self, record_id: int) -> bool:
        envelope = await self._client.delete_record(self._collection, [record_id])
        deleted = self._first_result(envelope, "delete") is not None
        if deleted:
            logger.info("records.deleted", collection=self._collection, record_id=record_id)
        return deleted
