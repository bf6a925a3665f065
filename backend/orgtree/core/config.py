"""Configuration settings using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str
    slow_query_ms: float = 0.0

    environment: Literal["development", "production"] = "development"
    api_docs_enabled: bool | None = None
    log_level: str = "INFO"

    # CORS
    cors_allow_origins: list[str] = ["http://localhost:3000"]
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = [
        "Accept",
        "Authorization",
        "Content-Type",
        "X-Request-ID",
        "X-Metrics-Token",
    ]
    cors_allow_credentials: bool = True

    # Key for the transaction-scoped advisory lock taken around structural changes
    hierarchy_lock_key: int = 7_340_021

    # Required in production to scrape /api/metrics
    metrics_token: str | None = None

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        mode="before",
    )
    @classmethod
    def _parse_csv_lists(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def async_database_url(self) -> str:
        """Database URL with the async driver selected for PostgreSQL."""
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://")

    @property
    def docs_enabled(self) -> bool:
        if self.api_docs_enabled is None:
            return self.environment != "production"
        return self.api_docs_enabled

    @model_validator(mode="after")
    def _validate_production_settings(self) -> Settings:
        if self.environment != "production":
            return self

        if any(x == "*" for x in self.cors_allow_origins):
            raise ValueError("CORS_ALLOW_ORIGINS cannot contain '*' in production")
        if any(x == "*" for x in self.cors_allow_methods):
            raise ValueError("CORS_ALLOW_METHODS cannot contain '*' in production")
        if any(x == "*" for x in self.cors_allow_headers):
            raise ValueError("CORS_ALLOW_HEADERS cannot contain '*' in production")

        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
