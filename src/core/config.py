"""
Application configuration using Pydantic Settings.

All values can be overridden through environment variables or a local
.env file. Supabase and OpenAI are optional: without them the app runs
with the local mirror only and the AI panel is disabled.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Branding
    APP_NAME: str = "FarmaINPER"
    APP_SUBTITLE: str = "Hospital Inventory Management System"
    APP_VERSION: str = "1.2"

    # Remote store (Supabase)
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None
    SUPABASE_TABLE: str = "medications"
    SUPABASE_SQL_EDITOR_URL: Optional[str] = None
    STORE_PAGE_SIZE: int = 1000
    STORE_CHUNK_SIZE: int = 500

    # Local mirror of the inventory
    LOCAL_CACHE_PATH: str = ".medstats/inventory.json"

    # Password required to wipe the whole inventory
    DELETE_PASSWORD: str = "farmaciahospitalaria"

    # AI insights
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    INSIGHT_MAX_ITEMS: int = 300

    # Import / classification
    HEADER_SCAN_ROWS: int = 15
    EXPIRY_WARNING_MONTHS: int = 3

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.SUPABASE_URL and self.SUPABASE_KEY)

    @property
    def insights_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Apply the configured level and format to the root logger."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
    )
