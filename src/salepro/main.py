"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
lifespan events for record store and service initialization, and the v1 API
router mounted under /v1.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.salepro.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.salepro.api.v1.router import router as v1_router
from src.salepro.config import Settings, get_settings
from src.salepro.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.salepro.pipeline.hooks import (
    ClientConversionHook,
    PostTransitionHooks,
    WonDealNotificationHook,
)
from src.salepro.records.registry import RecordStores, build_stores
from src.salepro.services.dashboard import DashboardService
from src.salepro.services.deals import DealService
from src.salepro.services.invoices import InvoiceService
from src.salepro.services.sales_teams import ensure_default_sales_teams

_SERVICE_STATE = ("stores", "deal_service", "invoice_service", "dashboard_service")


def init_services(app: FastAPI, settings: Settings, stores: RecordStores) -> None:
    """Wire services over the given stores onto app.state."""
    hooks = PostTransitionHooks(
        [
            ClientConversionHook(stores.contacts, stores.clients),
            WonDealNotificationHook(settings.WON_DEAL_WEBHOOK_URL),
        ]
    )
    app.state.stores = stores
    app.state.deal_service = DealService(stores.deals, hooks)
    app.state.invoice_service = InvoiceService(stores.invoices)
    app.state.dashboard_service = DashboardService(
        leads=stores.leads,
        deals=stores.deals,
        invoices=stores.invoices,
        activities=stores.activities,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build stores and services, seed sales teams."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()

    # Initialize Sentry if DSN is configured
    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    # A failure leaves the services unset; endpoints answer 503 until restart.
    try:
        stores = build_stores(settings)
        init_services(app, settings, stores)
        log.info("app.services_initialized", backend=settings.STORE_BACKEND.value)
    except Exception:
        log.error("app.services_init_failed", exc_info=True)
        for name in _SERVICE_STATE:
            setattr(app.state, name, None)
    else:
        # A seeding failure is logged; the services stay up without default teams.
        try:
            await ensure_default_sales_teams(
                stores.sales_teams, settings.get_default_sales_teams()
            )
        except Exception:
            log.warning("app.sales_team_seed_failed", exc_info=True)

    yield

    log.info("app.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SalePro CRM API",
        version="0.1.0",
        description="Sales CRM with leads, contacts, deal pipeline, and invoicing",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router, prefix="/v1")

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
