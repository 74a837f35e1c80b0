"""Pydantic schemas for deals and the pipeline -- stages, statuses, payloads, metrics.

Defines:
- Enums: DealStage (pipeline board columns), DealStatus (derived Open/Won/Lost)
- Deal payloads: DealCreate, DealUpdate, Deal (persisted record)
- StageChange: field set produced by the stage-transition rule
- PipelineMetrics: aggregate rollups over a deal collection
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


# ── Enums ───────────────────────────────────────────────────────────────────


class DealStage(str, Enum):
    """Sales pipeline stage for a deal, in board order."""

    NEW = "New"
    QUALIFIED = "Qualified"
    PROPOSAL = "Proposal"
    NEGOTIATION = "Negotiation"
    CLOSED_WON = "Closed Won"
    CLOSED_LOST = "Closed Lost"


class DealStatus(str, Enum):
    """Tri-state deal status, always derived from the stage."""

    OPEN = "Open"
    WON = "Won"
    LOST = "Lost"


# Board column order. Deals may move between any two stages.
STAGE_ORDER: list[DealStage] = list(DealStage)

# Terminal stages and the status each one implies.
CLOSED_STAGE_STATUS: dict[DealStage, DealStatus] = {
    DealStage.CLOSED_WON: DealStatus.WON,
    DealStage.CLOSED_LOST: DealStatus.LOST,
}

PRODUCT_OPTIONS: list[str] = [
    "Basic CRM",
    "Standard CRM",
    "Enterprise CRM",
    "Advanced Analytics",
    "API Integration",
    "Inventory Module",
    "Reporting Suite",
    "Compliance Module",
    "Training Package",
    "Custom Development",
]


def _dedupe_products(value: Any) -> Any:
    """Normalize products to an ordered list with duplicates and blanks removed."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    seen: list[str] = []
    for item in value:
        name = str(item).strip()
        if name and name not in seen:
            seen.append(name)
    return seen


# ── Deal Payloads ───────────────────────────────────────────────────────────


class DealCreate(BaseModel):
    """Schema for creating a new deal."""

    title: str = Field(min_length=1)
    contact_id: int | None = None
    account_id: str | None = None
    value: Decimal = Field(default=Decimal("0"), ge=0)
    probability: int = Field(default=50, ge=0, le=100)
    stage: DealStage = DealStage.NEW
    expected_close_date: date | None = None
    products: list[str] = Field(default_factory=list)
    notes: str = ""
    sales_team: str | None = None

    @field_validator("products", mode="before")
    @classmethod
    def normalize_products(cls, value: Any) -> Any:
        return _dedupe_products(value)


class DealUpdate(BaseModel):
    """Schema for a full-form deal edit (all fields optional).

    Status and close-date fields are absent on purpose: they are derived
    from the stage by the pipeline engine, never edited directly.
    """

    title: str | None = Field(default=None, min_length=1)
    contact_id: int | None = None
    account_id: str | None = None
    value: Decimal | None = Field(default=None, ge=0)
    probability: int | None = Field(default=None, ge=0, le=100)
    stage: DealStage | None = None
    expected_close_date: date | None = None
    products: list[str] | None = None
    notes: str | None = None
    sales_team: str | None = None

    @field_validator("products", mode="before")
    @classmethod
    def normalize_products(cls, value: Any) -> Any:
        if value is None:
            return None
        return _dedupe_products(value)


class Deal(BaseModel):
    """Schema for reading a deal (includes all persisted fields)."""

    id: int
    title: str
    contact_id: int | None = None
    account_id: str | None = None
    value: Decimal = Decimal("0")
    probability: int = 0
    stage: DealStage = DealStage.NEW
    status: DealStatus = DealStatus.OPEN
    expected_close_date: date | None = None
    actual_close_date: datetime | None = None
    stage_updated_at: datetime | None = None
    products: list[str] = Field(default_factory=list)
    notes: str = ""
    sales_team: str | None = None

    @field_validator("products", mode="before")
    @classmethod
    def normalize_products(cls, value: Any) -> Any:
        return _dedupe_products(value)


# ── Stage Transition ────────────────────────────────────────────────────────


class StageChange(BaseModel):
    """Fields produced by a stage transition, ready to merge into a deal."""

    stage: DealStage
    status: DealStatus
    actual_close_date: datetime | None = None
    stage_updated_at: datetime

    def as_update(self) -> dict[str, Any]:
        """Return the field dict to persist (None close date included)."""
        return self.model_dump()


# ── Metrics ─────────────────────────────────────────────────────────────────


class PipelineMetrics(BaseModel):
    """Aggregate pipeline rollups over a deal collection."""

    count_by_stage: dict[DealStage, int] = Field(default_factory=dict)
    value_by_stage: dict[DealStage, Decimal] = Field(default_factory=dict)
    open_weighted_value: Decimal = Decimal("0")
    avg_deal_size: Decimal = Decimal("0")
    win_rate: Decimal = Decimal("0")
    total_deals: int = 0
    open_deals: int = 0
    won_value: Decimal = Decimal("0")
