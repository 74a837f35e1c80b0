"""Deal pipeline engine -- stage-transition rule, validation, and aggregate metrics.

Provides:
- apply_stage_change: Derives status, close date, and stage timestamp from a stage
- reconcile_stage_fields: Repairs status and close date on records that disagree with their stage
- validate_deal / parse_deal_fields: Deal invariant checks and form-input parsing
- compute_metrics / group_by_stage: Pipeline rollups and board columns

Post-transition hooks live in pipeline.hooks.
"""

from src.salepro.pipeline.engine import (
    apply_stage_change,
    coerce_stage,
    parse_deal_fields,
    reconcile_stage_fields,
    status_for_stage,
    validate_deal,
)
from src.salepro.pipeline.metrics import compute_metrics, group_by_stage
from src.salepro.pipeline.schemas import DealStage, DealStatus

__all__ = [
    "DealStage",
    "DealStatus",
    "apply_stage_change",
    "coerce_stage",
    "reconcile_stage_fields",
    "status_for_stage",
    "validate_deal",
    "parse_deal_fields",
    "compute_metrics",
    "group_by_stage",
]
