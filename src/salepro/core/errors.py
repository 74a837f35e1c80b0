"""Error taxonomy shared by the pipeline engine, services, and record stores.

- ValidationError: a required field is missing or malformed.
- InvalidStageError: a stage value is not a member of DealStage.
- NotFoundError: a referenced record id is absent from its collection.
- StoreError: opaque failure surfaced by the record store collaborator.

The API layer maps these onto HTTP status codes; nothing below the API
knows about HTTP.
"""

from __future__ import annotations

from typing import Any


class CRMError(Exception):
    """Base class for all domain errors raised by this package."""


class ValidationError(CRMError):
    """Raised when input fields or a record violate the data model.

    Args:
        message: Human-readable summary.
        errors: Individual violations, one string per failed field/invariant.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.errors = errors or []
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)


class InvalidStageError(ValidationError):
    """Raised when a stage value is not a recognized pipeline stage."""

    def __init__(self, stage: Any) -> None:
        from src.salepro.pipeline.schemas import DealStage

        self.stage = stage
        allowed = ", ".join(s.value for s in DealStage)
        super().__init__(f"Invalid stage: {stage!r}. Allowed stages: {allowed}")


class NotFoundError(CRMError):
    """Raised when a record with the given id does not exist."""

    def __init__(self, entity: str, record_id: Any) -> None:
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found: {record_id}")


class StoreError(CRMError):
    """Raised when the record store fails (transport error, exhausted retries)."""

    def __init__(self, message: str, collection: str | None = None) -> None:
        self.collection = collection
        super().__init__(message)
