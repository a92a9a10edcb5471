"""Base configuration using Pydantic Settings.

All service-specific settings should inherit from ``BaseServiceSettings``.
Values are loaded from environment variables and .env files.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseServiceSettings(BaseSettings):
    """Common settings shared across all boutique services."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── General ───────────────────────────────
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    service_name: str = "boutique"
    service_port: int = 8080

    # ── Tracing ───────────────────────────────
    otel_console_export: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def json_logs(self) -> bool:
        return self.is_production
