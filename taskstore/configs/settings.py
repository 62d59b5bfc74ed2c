"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator
"""

from functools import lru_cache

from pydantic import Field

from taskstore.configs.base import BaseSettings
from taskstore.configs.database import DatabaseSettings
from taskstore.configs.document_store import DocumentStoreSettings
from taskstore.configs.reconciliation import ReconciliationSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    document_store: DocumentStoreSettings = Field(default_factory=DocumentStoreSettings)
    reconciliation: ReconciliationSettings = Field(default_factory=ReconciliationSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached so environment variables are read once.

    Returns:
        Settings: Application settings instance

    Usage:
        from taskstore.configs import get_settings
        settings = get_settings()
    """
    return Settings()
