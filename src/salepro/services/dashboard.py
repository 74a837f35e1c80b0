"""Dashboard summary across leads, deals, invoices, and activities."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal

import structlog
from pydantic import BaseModel, Field

from src.salepro.invoices.schemas import Invoice, InvoiceStatus
from src.salepro.pipeline.metrics import compute_metrics
from src.salepro.pipeline.schemas import Deal, DealStage, DealStatus, PipelineMetrics
from src.salepro.records.adapter import RecordStore
from src.salepro.records.schemas import Activity, Lead, LeadStatus

logger = structlog.get_logger(__name__)

# Items shown in the recent-activity and upcoming-deal panels.
PANEL_SIZE = 5


class DashboardSummary(BaseModel):
    """Headline figures and panels for the dashboard."""

    total_leads: int = 0
    qualified_leads: int = 0
    total_deals: int = 0
    open_deals: int = 0
    won_revenue: Decimal = Decimal("0")
    pending_invoices: int = 0
    recent_activities: list[Activity] = Field(default_factory=list)
    upcoming_deals: list[Deal] = Field(default_factory=list)
    deals_by_stage: dict[DealStage, int] = Field(default_factory=dict)
    metrics: PipelineMetrics = Field(default_factory=PipelineMetrics)


def _close_date_key(deal: Deal) -> tuple[bool, date]:
    # Deals without an expected close date sort last.
    return (deal.expected_close_date is None, deal.expected_close_date or date.max)


class DashboardService:
    """Builds the dashboard summary from the entity stores.

    Args:
        leads: Lead store.
        deals: Deal store.
        invoices: Invoice store.
        activities: Activity store (newest first).
    """

    def __init__(
        self,
        leads: RecordStore[Lead],
        deals: RecordStore[Deal],
        invoices: RecordStore[Invoice],
        activities: RecordStore[Activity],
    ) -> None:
        self._leads = leads
        self._deals = deals
        self._invoices = invoices
        self._activities = activities

    async def summary(self) -> DashboardSummary:
        """Load every collection concurrently and compute the summary."""
        leads, deals, invoices, activities = await asyncio.gather(
            self._leads.get_all(),
            self._deals.get_all(),
            self._invoices.get_all(),
            self._activities.get_all(),
        )

        metrics = compute_metrics(deals)
        open_deals = [deal for deal in deals if deal.status is DealStatus.OPEN]

        summary = DashboardSummary(
            total_leads=len(leads),
            qualified_leads=sum(1 for lead in leads if lead.status is LeadStatus.QUALIFIED),
            total_deals=metrics.total_deals,
            open_deals=metrics.open_deals,
            won_revenue=metrics.won_value,
            pending_invoices=sum(
                1 for invoice in invoices if invoice.status is InvoiceStatus.PENDING
            ),
            recent_activities=activities[:PANEL_SIZE],
            upcoming_deals=sorted(open_deals, key=_close_date_key)[:PANEL_SIZE],
            deals_by_stage=metrics.count_by_stage,
            metrics=metrics,
        )

        logger.debug(
            "dashboard.summary_built",
            leads=summary.total_leads,
            deals=summary.total_deals,
            invoices=len(invoices),
            activities=len(activities),
        )
        return summary
