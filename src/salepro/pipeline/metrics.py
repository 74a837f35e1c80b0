"""Pipeline aggregate metrics -- per-stage rollups, weighted value, win rate.

Pure functions over a deal collection. Recomputed on every deal-list change;
no incremental or cached state.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from src.salepro.pipeline.schemas import (
    STAGE_ORDER,
    Deal,
    DealStage,
    DealStatus,
    PipelineMetrics,
)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def compute_metrics(deals: Iterable[Deal]) -> PipelineMetrics:
    """Compute pipeline rollups for a deal collection.

    - count_by_stage / value_by_stage: every stage present, zero when empty.
    - open_weighted_value: sum of value x probability/100 over Open deals.
    - avg_deal_size: mean value over all deals, 0 for an empty collection.
    - win_rate: Won / (Won + Lost), 0 when nothing has closed.

    Args:
        deals: Deal records (any iterable; consumed once).

    Returns:
        PipelineMetrics for the collection.
    """
    deals = list(deals)

    count_by_stage: dict[DealStage, int] = {stage: 0 for stage in STAGE_ORDER}
    value_by_stage: dict[DealStage, Decimal] = {stage: _ZERO for stage in STAGE_ORDER}
    open_weighted = _ZERO
    total_value = _ZERO
    won_value = _ZERO
    open_count = won_count = lost_count = 0

    for deal in deals:
        count_by_stage[deal.stage] += 1
        value_by_stage[deal.stage] += deal.value
        total_value += deal.value

        if deal.status is DealStatus.OPEN:
            open_count += 1
            open_weighted += deal.value * Decimal(deal.probability) / _HUNDRED
        elif deal.status is DealStatus.WON:
            won_count += 1
            won_value += deal.value
        elif deal.status is DealStatus.LOST:
            lost_count += 1

    closed_count = won_count + lost_count

    return PipelineMetrics(
        count_by_stage=count_by_stage,
        value_by_stage=value_by_stage,
        open_weighted_value=open_weighted,
        avg_deal_size=total_value / len(deals) if deals else _ZERO,
        win_rate=Decimal(won_count) / Decimal(closed_count) if closed_count else _ZERO,
        total_deals=len(deals),
        open_deals=open_count,
        won_value=won_value,
    )


def group_by_stage(deals: Iterable[Deal]) -> dict[DealStage, list[Deal]]:
    """Group deals into pipeline board columns, preserving input order."""
    columns: dict[DealStage, list[Deal]] = {stage: [] for stage in STAGE_ORDER}
    for deal in deals:
        columns[deal.stage].append(deal)
    return columns
