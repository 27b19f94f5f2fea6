"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
"""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables prefixed with
    FISCALCHECK_. Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FISCALCHECK_",
        case_sensitive=False,
    )

    # Validation defaults
    default_regulatory_year: int | None = Field(
        default=None,
        ge=2000,
        description="Regulatory year forced on every document (None uses the document date)",
    )
    default_tax_regime: Literal["ordinary", "flat_rate", "agricultural", "cash_vat"] = Field(
        default="ordinary",
        description="VAT regime applied when a payload does not declare one",
    )

    # Batch processing
    batch_workers: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Thread pool size for batch validation",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    """
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the application log format and level."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)
    logging.basicConfig(level=level, format=LOG_FORMAT)
