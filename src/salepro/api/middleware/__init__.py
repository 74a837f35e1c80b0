"""API middleware package."""

from src.salepro.api.middleware.logging import LoggingMiddleware, configure_structlog

__all__ = ["LoggingMiddleware", "configure_structlog"]
