"""Shared API helpers: app.state lookups and domain-error translation.

Services and stores are built once in the application lifespan and stored on
app.state. Endpoints fetch them with from_state(), which answers 503 while
they are not initialized.
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status
from pydantic import BaseModel

from src.salepro.core.errors import CRMError, NotFoundError, StoreError, ValidationError


class MessageResponse(BaseModel):
    """Plain confirmation message (e.g. after a delete)."""

    message: str


def from_state(request: Request, name: str, label: str) -> Any:
    """Retrieve an initialized service from app.state, 503 if not available."""
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} not initialized",
        )
    return value


def store_from_state(request: Request, store_name: str, label: str) -> Any:
    """Retrieve one entity store from app.state.stores, 503 if not available."""
    stores = from_state(request, "stores", "Record stores")
    store = getattr(stores, store_name, None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} store not initialized",
        )
    return store


def http_error(exc: CRMError) -> HTTPException:
    """Translate a domain error into the matching HTTPException."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, StoreError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
