"""
Shared settings base.

Every config module reads the same .env file case-insensitively and ignores
variables it does not own. LOG_LEVEL lives here because both entry points
configure logging before any store settings are needed.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from pydantic import Field
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict


class BaseSettings(PydanticBaseSettings):
    """Common .env handling plus the log level."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Root log level for the CLI entry points (DEBUG, INFO, WARNING, ERROR)",
    )
