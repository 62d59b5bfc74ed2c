"""
Relational database configuration settings.

Manages PostgreSQL connection parameters for SQLAlchemy.
Supports connection pooling and async operations.

Dependencies: pydantic, pydantic_settings
System role: Relational store connection configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from taskstore.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="POSTGRES_",
        case_sensitive=False,
        extra="ignore",
    )

    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", description="PostgreSQL user")
    password: str = Field(default="postgres", description="PostgreSQL password")
    db: str = Field(default="todos_db", description="PostgreSQL database name")

    url: str | None = Field(
        default=None,
        description="Full SQLAlchemy async URL; overrides host/port/user/password/db",
    )

    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=20, description="Maximum overflow connections")
    pool_timeout: int = Field(default=30, description="Connection pool timeout in seconds")
    echo_sql: bool = Field(default=False, description="Echo SQL statements to logs")

    sslmode: str = Field(default="prefer", description="SSL mode for the connection")

    connect_retries: int = Field(default=10, ge=1, description="Startup connectivity attempts before giving up")
    connect_retry_delay: float = Field(default=5.0, ge=0, description="Base seconds between startup connectivity attempts")

    @property
    def async_database_url(self) -> str:
        """
        Construct async PostgreSQL connection URL.

        Returns:
            str: SQLAlchemy async-compatible database URL (asyncpg uses 'ssl' param)
        """
        if self.url:
            return self.url
        url = f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{url}?ssl=require" if self.sslmode == "require" else url

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL targets SQLite (no pool sizing, no advisory locks)."""
        return self.async_database_url.startswith("sqlite")
