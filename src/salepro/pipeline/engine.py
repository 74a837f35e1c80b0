"""Deal stage-transition rule and deal invariant validation.

The stage rule is the single place where status, actual close date, and the
stage timestamp are derived from a stage change. It is pure: callers persist
the returned fields through the deal store and run post-transition hooks
themselves.

Moving a closed deal back to an open stage reopens it (status Open, close
date cleared) so mis-closed deals can be corrected from the board.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from src.salepro.core.errors import InvalidStageError, ValidationError
from src.salepro.pipeline.schemas import (
    CLOSED_STAGE_STATUS,
    Deal,
    DealStage,
    DealStatus,
    StageChange,
)

logger = structlog.get_logger(__name__)


def coerce_stage(value: Any) -> DealStage:
    """Convert a raw stage value into a DealStage.

    Raises:
        InvalidStageError: If the value is not one of the pipeline stages.
    """
    if isinstance(value, DealStage):
        return value
    try:
        return DealStage(value)
    except ValueError:
        raise InvalidStageError(value) from None


def status_for_stage(stage: DealStage) -> DealStatus:
    """Return the status implied by a stage (Open for every non-closed stage)."""
    return CLOSED_STAGE_STATUS.get(stage, DealStatus.OPEN)


def apply_stage_change(deal: Deal | None, new_stage: Any, now: datetime) -> StageChange:
    """Compute the fields that result from moving a deal to a new stage.

    Args:
        deal: Current deal, or None when stamping a deal that is being created.
        new_stage: Target stage (DealStage or its string value).
        now: Timestamp of the change.

    Returns:
        StageChange with stage, status, actual_close_date, and stage_updated_at.

    Raises:
        InvalidStageError: If new_stage is not a pipeline stage.
    """
    stage = coerce_stage(new_stage)
    status = status_for_stage(stage)
    close_date = now if status is not DealStatus.OPEN else None

    change = StageChange(
        stage=stage,
        status=status,
        actual_close_date=close_date,
        stage_updated_at=now,
    )

    if deal is not None:
        logger.debug(
            "pipeline.stage_change_computed",
            deal_id=deal.id,
            from_stage=deal.stage.value,
            to_stage=stage.value,
            status=status.value,
            reopened=deal.status is not DealStatus.OPEN and status is DealStatus.OPEN,
        )
    return change


def reconcile_stage_fields(deal: Deal, now: datetime) -> dict[str, Any]:
    """Return the status and close-date fixes a deal needs to agree with its stage.

    Records written before every stage change went through apply_stage_change
    can carry a closed stage with an Open status or no close date. An existing
    close date is kept and stage_updated_at is never touched, since the stage
    itself did not move. Returns an empty dict for a consistent deal.
    """
    fixes: dict[str, Any] = {}
    status = status_for_stage(deal.stage)
    if deal.status is not status:
        fixes["status"] = status

    if status is not DealStatus.OPEN and deal.actual_close_date is None:
        fixes["actual_close_date"] = now
    elif status is DealStatus.OPEN and deal.actual_close_date is not None:
        fixes["actual_close_date"] = None

    if fixes:
        logger.debug(
            "pipeline.stage_fields_reconciled",
            deal_id=deal.id,
            stage=deal.stage.value,
            fields=sorted(fixes),
        )
    return fixes


# ── Validation ──────────────────────────────────────────────────────────────


def deal_violations(deal: Deal) -> list[str]:
    """List every data-model invariant the deal violates (empty when well-formed)."""
    violations: list[str] = []

    expected_status = status_for_stage(deal.stage)
    if deal.status is not expected_status:
        violations.append(
            f"status {deal.status.value} does not match stage {deal.stage.value} "
            f"(expected {expected_status.value})"
        )

    closed = deal.status in (DealStatus.WON, DealStatus.LOST)
    if closed and deal.actual_close_date is None:
        violations.append(f"actual_close_date is required for {deal.status.value} deals")
    if not closed and deal.actual_close_date is not None:
        violations.append("actual_close_date must be empty for Open deals")

    if not 0 <= deal.probability <= 100:
        violations.append(f"probability {deal.probability} outside 0-100")
    if deal.value < 0:
        violations.append(f"value {deal.value} is negative")

    return violations


def validate_deal(deal: Deal) -> Deal:
    """Return the deal unchanged if it satisfies every invariant.

    Raises:
        ValidationError: Listing each violated invariant.
    """
    violations = deal_violations(deal)
    if violations:
        raise ValidationError(f"Deal {deal.id} is inconsistent", violations)
    return deal


def parse_deal_fields(raw: dict[str, Any]) -> dict[str, Any]:
    """Convert raw form input into typed deal fields.

    Only keys present in ``raw`` are returned. Blank strings for optional
    fields become None.

    Raises:
        ValidationError: If value or probability is not numeric, or title is blank.
        InvalidStageError: If stage is not a pipeline stage.
    """
    fields: dict[str, Any] = dict(raw)
    errors: list[str] = []

    if "title" in fields and not str(fields["title"] or "").strip():
        errors.append("title is required")

    if "value" in fields:
        try:
            fields["value"] = Decimal(str(fields["value"]).strip() or "0")
        except InvalidOperation:
            errors.append(f"value must be numeric, got {raw['value']!r}")
        else:
            if not fields["value"].is_finite():
                errors.append(f"value must be numeric, got {raw['value']!r}")
            elif fields["value"] < 0:
                errors.append("value must not be negative")

    if "probability" in fields:
        try:
            fields["probability"] = int(str(fields["probability"]).strip())
        except ValueError:
            errors.append(f"probability must be an integer, got {raw['probability']!r}")
        else:
            if not 0 <= fields["probability"] <= 100:
                errors.append("probability must be between 0 and 100")

    for key in ("contact_id", "account_id", "expected_close_date", "sales_team"):
        if key in fields and fields[key] == "":
            fields[key] = None

    if errors:
        raise ValidationError("Invalid deal fields", errors)

    if "stage" in fields and fields["stage"] is not None:
        fields["stage"] = coerce_stage(fields["stage"])

    return fields
