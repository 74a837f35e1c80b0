"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class StoreBackend(str, Enum):
    memory = "memory"
    remote = "remote"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # Record store
    STORE_BACKEND: StoreBackend = StoreBackend.memory
    RECORD_STORE_URL: str = "https://api.apper.io/v1"
    RECORD_STORE_PROJECT_ID: str = ""
    RECORD_STORE_PUBLIC_KEY: str = ""
    RECORD_STORE_TIMEOUT: float = 10.0
    RECORD_STORE_PAGE_SIZE: int = 100

    # CORS
    CORS_ALLOWED_ORIGINS: str = "*"

    # Monitoring
    SENTRY_DSN: str = ""

    # Post-transition hooks
    WON_DEAL_WEBHOOK_URL: str = ""  # Chat webhook notified when a deal is won

    # Comma-separated sales team names created on startup if missing
    DEFAULT_SALES_TEAMS: str = ""

    def get_default_sales_teams(self) -> list[str]:
        """Return configured default sales team names, blanks removed."""
        return [name.strip() for name in self.DEFAULT_SALES_TEAMS.split(",") if name.strip()]


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
