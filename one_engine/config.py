"""
Application configuration.

Loads settings from environment variables (and an optional .env file)
with sensible development defaults.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # ==========================================================================
    # API Server
    # ==========================================================================

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_version: str = "1.0.0"
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # ==========================================================================
    # Authentication
    # ==========================================================================

    jwt_secret_key: str = "dev-jwt-secret-change-in-production"
    # Comma-separated keys still accepted for verification after a rotation
    jwt_previous_secret_keys: str = ""
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24 * 7

    # Prefix for generated project API keys
    api_key_prefix: str = "one_"

    # ==========================================================================
    # Error reporting
    # ==========================================================================

    # Adds the raw exception text as details.debug on 500 responses.
    # Never honoured in production.
    expose_error_details: bool = False
    sentry_dsn: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def verification_keys(self) -> list[str]:
        """Primary signing key first, then any rotated-out keys."""
        previous = [k.strip() for k in self.jwt_previous_secret_keys.split(",") if k.strip()]
        return [self.jwt_secret_key, *previous]

    @property
    def show_error_details(self) -> bool:
        return self.expose_error_details and not self.is_production


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure the root logger once per process."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
