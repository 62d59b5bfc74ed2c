"""
Document store configuration settings.

Connection parameters for the MongoDB-compatible document store that runs
alongside the relational store during a migration window.

Dependencies: pydantic, pydantic_settings
System role: Document store connection configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from taskstore.configs.base import BaseSettings


class DocumentStoreSettings(BaseSettings):
    """MongoDB connection configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MONGO_",
        case_sensitive=False,
        extra="ignore",
    )

    uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI",
    )
    db_name: str = Field(default="todos_db", description="MongoDB database name")
    server_selection_timeout_ms: int = Field(
        default=5000,
        description="How long the driver waits for a reachable server before failing",
    )
    connect_retries: int = Field(default=10, ge=1, description="Startup ping attempts before giving up")
    connect_retry_delay: float = Field(default=5.0, ge=0, description="Base seconds between startup ping attempts")
