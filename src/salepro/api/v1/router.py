"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.salepro.api.v1 import dashboard, deals, health, invoices, records

router = APIRouter()

router.include_router(health.router)
router.include_router(dashboard.router)
router.include_router(deals.router)
router.include_router(invoices.router)
router.include_router(records.leads_router)
router.include_router(records.contacts_router)
router.include_router(records.clients_router)
router.include_router(records.activities_router)
router.include_router(records.sales_teams_router)
