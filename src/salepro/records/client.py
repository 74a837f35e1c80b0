"""Async HTTP client for the hosted record-storage API.

Provides RecordStoreClient with retry logic (tenacity, 3 attempts, exponential
backoff 1-10s) on transport errors, 429 and 5xx responses. The client is
constructed once from settings and passed explicitly to every
RemoteRecordStore; nothing reaches for a global SDK instance.

The client only speaks the wire envelope. Interpreting ``success: false``
envelopes is left to RemoteRecordStore; exhausted retries and non-retryable
HTTP errors surface as StoreError.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from src.salepro.core.errors import StoreError
from src.salepro.core.monitoring import track_store_call

logger = structlog.get_logger(__name__)


def _is_transient(exc: BaseException) -> bool:
    """Retry transport failures, rate limiting, and server errors only."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429 or exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


_store_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_transient),
    reraise=True,
)


class RecordStoreClient:
    """Async client for the hosted record store REST API.

    Args:
        base_url: API root, e.g. https://api.apper.io/v1.
        project_id: Project identifier sent as X-Project-Id.
        public_key: Project public key sent as a bearer token.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str,
        project_id: str,
        public_key: str,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {public_key}",
            "X-Project-Id": project_id,
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        """Create a new httpx client with the configured timeout."""
        return httpx.AsyncClient(headers=self._headers, timeout=self._timeout)

    @_store_retry
    async def _send(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None,
        params: dict[str, str] | None,
    ) -> dict[str, Any]:
        async with self._client() as client:
            response = await client.request(
                method, f"{self._base_url}{path}", json=payload, params=params
            )
            if response.status_code == 404:
                return {"success": False, "message": "Record not found", "data": None}
            response.raise_for_status()
            return response.json()

    async def _request(
        self,
        method: str,
        collection: str,
        operation: str,
        path: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            async with track_store_call(collection, operation):
                return await self._send(method, path, payload, params)
        except httpx.HTTPError as exc:
            logger.error(
                "records.request_failed",
                collection=collection,
                operation=operation,
                error=str(exc),
            )
            raise StoreError(
                f"Record store {operation} on {collection} failed: {exc}",
                collection=collection,
            ) from exc

    async def fetch_records(
        self,
        collection: str,
        fields: list[str],
        order_by: list[dict[str, str]] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Query one page of a collection.

        POST /collections/{collection}/query
        """
        payload: dict[str, Any] = {
            "fields": [{"field": {"Name": name}} for name in fields],
            "pagingInfo": {"limit": limit, "offset": offset},
        }
        if order_by:
            payload["orderBy"] = order_by
        return await self._request(
            "POST", collection, "fetch", f"/collections/{collection}/query", payload
        )

    async def get_record_by_id(
        self, collection: str, record_id: int, fields: list[str]
    ) -> dict[str, Any]:
        """Fetch a single record.

        GET /collections/{collection}/records/{id}. A 404 yields an
        unsuccessful envelope rather than an error.
        """
        return await self._request(
            "GET",
            collection,
            "get",
            f"/collections/{collection}/records/{int(record_id)}",
            params={"fields": ",".join(fields)},
        )

    async def create_record(self, collection: str, records: list[dict[str, Any]]) -> dict[str, Any]:
        """Create records. POST /collections/{collection}/records"""
        return await self._request(
            "POST",
            collection,
            "create",
            f"/collections/{collection}/records",
            {"records": records},
        )

    async def update_record(self, collection: str, records: list[dict[str, Any]]) -> dict[str, Any]:
        """Merge fields into existing records (each carries its Id).

        PATCH /collections/{collection}/records
        """
        return await self._request(
            "PATCH",
            collection,
            "update",
            f"/collections/{collection}/records",
            {"records": records},
        )

    async def delete_record(self, collection: str, record_ids: list[int]) -> dict[str, Any]:
        """Delete records. DELETE /collections/{collection}/records"""
        return await self._request(
            "DELETE",
            collection,
            "delete",
            f"/collections/{collection}/records",
            {"RecordIds": [int(record_id) for record_id in record_ids]},
        )
