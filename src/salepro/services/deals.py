"""Deal service -- CRUD over the deal store plus pipeline stage transitions.

Every stage change, whether from the pipeline board (change_stage) or a
full-form edit (update_deal), goes through pipeline.engine.apply_stage_change,
so status, actual close date, and stage timestamp always agree with the stage.
Post-transition hooks run only after the store accepted the new stage.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.salepro.core.errors import StoreError, ValidationError
from src.salepro.pipeline.engine import (
    apply_stage_change,
    coerce_stage,
    parse_deal_fields,
    reconcile_stage_fields,
    validate_deal,
)
from src.salepro.pipeline.hooks import HookResult, PostTransitionHooks
from src.salepro.pipeline.metrics import compute_metrics, group_by_stage
from src.salepro.pipeline.schemas import (
    Deal,
    DealCreate,
    DealStage,
    DealUpdate,
    PipelineMetrics,
)
from src.salepro.records.adapter import RecordStore

logger = structlog.get_logger(__name__)

# Fields a full-form edit may not blank out.
_REQUIRED_ON_UPDATE = ("title", "value", "probability", "stage", "products", "notes")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_form(model: type[DealCreate] | type[DealUpdate], raw: Mapping[str, Any]) -> Any:
    """Parse raw form input into a deal payload, reporting every bad field."""
    try:
        return model.model_validate(parse_deal_fields(dict(raw)))
    except PydanticValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ValidationError("Invalid deal fields", errors) from exc


class StageChangeResult(BaseModel):
    """Outcome of a stage change: the persisted deal and hook summary."""

    deal: Deal
    previous_stage: DealStage
    message: str
    hooks: HookResult


class PipelineBoard(BaseModel):
    """Deals grouped into board columns, with rollups over all of them."""

    columns: dict[DealStage, list[Deal]]
    metrics: PipelineMetrics


class DealService:
    """Deal operations over a RecordStore.

    Args:
        store: Deal record store.
        hooks: Post-transition hooks run after persisted stage changes.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        store: RecordStore[Deal],
        hooks: PostTransitionHooks | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._hooks = hooks or PostTransitionHooks()
        self._clock = clock

    # ── Queries ─────────────────────────────────────────────────────────────

    async def list_deals(
        self,
        stage: DealStage | str | None = None,
        contact_id: int | None = None,
    ) -> list[Deal]:
        """List deals, optionally filtered by stage and/or contact.

        Raises:
            InvalidStageError: If stage is not a pipeline stage.
        """
        stage_filter = coerce_stage(stage) if stage is not None else None
        return await self._store.find(stage=stage_filter, contact_id=contact_id)

    async def get_deal(self, deal_id: int) -> Deal:
        """Fetch a deal by id.

        Raises:
            NotFoundError: If no deal has this id.
        """
        return await self._store.require(deal_id)

    async def pipeline(self) -> PipelineBoard:
        """Return every deal grouped per stage, with pipeline metrics."""
        deals = await self._store.get_all()
        return PipelineBoard(columns=group_by_stage(deals), metrics=compute_metrics(deals))

    async def metrics(self) -> PipelineMetrics:
        """Return pipeline metrics over every deal."""
        return compute_metrics(await self._store.get_all())

    # ── Mutations ───────────────────────────────────────────────────────────

    async def create_deal(self, fields: DealCreate | Mapping[str, Any]) -> Deal:
        """Create a deal; status and close date are derived from its initial stage.

        Raises:
            ValidationError: If the fields are malformed.
            InvalidStageError: If the stage is not a pipeline stage.
            StoreError: If the store rejected the record.
        """
        if not isinstance(fields, DealCreate):
            fields = _parse_form(DealCreate, fields)

        data = fields.model_dump()
        data.update(apply_stage_change(None, fields.stage, self._clock()).as_update())
        validate_deal(Deal.model_validate({**data, "id": 0}))

        deal = await self._store.create(data)
        if deal is None:
            raise StoreError("Failed to create deal", collection="deal_c")

        logger.info(
            "deals.created",
            deal_id=deal.id,
            stage=deal.stage.value,
            value=str(deal.value),
        )
        return deal

    async def update_deal(self, deal_id: int, fields: DealUpdate | Mapping[str, Any]) -> Deal:
        """Merge the provided fields into a deal.

        When the stage changes it goes through the stage rule and the
        post-transition hooks run. Otherwise the stage timestamp is left alone,
        and status and close date are only repaired when a stored record
        disagrees with its own stage.

        Raises:
            NotFoundError: If no deal has this id.
            ValidationError: If the fields are malformed.
            StoreError: If the store rejected the update.
        """
        if not isinstance(fields, DealUpdate):
            fields = _parse_form(DealUpdate, fields)

        current = await self._store.require(deal_id)
        changes = {
            key: value
            for key, value in fields.model_dump(exclude_unset=True).items()
            if value is not None or key not in _REQUIRED_ON_UPDATE
        }

        new_stage = changes.pop("stage", None)
        stage_changed = new_stage is not None and new_stage is not current.stage
        if stage_changed:
            changes.update(apply_stage_change(current, new_stage, self._clock()).as_update())
        else:
            fixes = reconcile_stage_fields(current, self._clock())
            if fixes:
                logger.warning(
                    "deals.stage_fields_reconciled",
                    deal_id=deal_id,
                    stage=current.stage.value,
                    fields=sorted(fixes),
                )
                changes.update(fixes)

        validate_deal(Deal.model_validate({**current.model_dump(), **changes}))

        deal = await self._store.update(deal_id, changes)
        if deal is None:
            raise StoreError(f"Failed to update deal {deal_id}", collection="deal_c")

        logger.info(
            "deals.updated",
            deal_id=deal_id,
            fields=sorted(changes),
            stage_changed=stage_changed,
        )
        if stage_changed:
            await self._hooks.run(deal, current.stage)
        return deal

    async def change_stage(self, deal_id: int, new_stage: DealStage | str) -> StageChangeResult:
        """Move a deal to a new stage (pipeline board drag).

        Steps:
        1. Stage rule -- derive status, close date, stage timestamp
        2. Persist through the deal store
        3. Post-transition hooks -- only after a successful persist

        Raises:
            InvalidStageError: If new_stage is not a pipeline stage.
            NotFoundError: If no deal has this id.
            StoreError: If the store rejected the update.
        """
        stage = coerce_stage(new_stage)
        current = await self._store.require(deal_id)
        change = apply_stage_change(current, stage, self._clock())

        deal = await self._store.update(deal_id, change.as_update())
        if deal is None:
            raise StoreError(f"Failed to move deal {deal_id} to {stage.value}", collection="deal_c")

        logger.info(
            "deals.stage_changed",
            deal_id=deal_id,
            from_stage=current.stage.value,
            to_stage=stage.value,
            status=deal.status.value,
        )

        hook_result = await self._hooks.run(deal, current.stage)
        return StageChangeResult(
            deal=deal,
            previous_stage=current.stage,
            message=f"Deal moved to {stage.value} successfully!",
            hooks=hook_result,
        )

    async def delete_deal(self, deal_id: int) -> None:
        """Delete a deal.

        Raises:
            NotFoundError: If no deal has this id.
        """
        await self._store.require(deal_id)
        if not await self._store.delete(deal_id):
            raise StoreError(f"Failed to delete deal {deal_id}", collection="deal_c")
        logger.info("deals.deleted", deal_id=deal_id)
