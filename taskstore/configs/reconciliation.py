"""
Dual-backend reconciliation settings.

Read routing, write fan-out mode and migration lock parameters.
Variables are read without a prefix (READ_SOURCE, WRITE_MODE, ...).

Dependencies: pydantic, pydantic_settings
System role: Feature toggles for the migration window
"""

import enum

from pydantic import Field

from taskstore.configs.base import BaseSettings


class ReadSource(str, enum.Enum):
    """
    Which store answers reads.

    PRIMARY: Relational store, falling back to the document store on error
    SECONDARY: Document store only
    SECONDARY_PREFERRED: Document store, falling back to the relational store
    """

    PRIMARY = "primary"
    SECONDARY = "secondary"
    SECONDARY_PREFERRED = "secondary-preferred"


class WriteMode(str, enum.Enum):
    """
    Which stores receive writes.

    PRIMARY_ONLY: Relational store only
    DUAL: Both stores, concurrently, tolerant of one side failing
    SECONDARY_ONLY: Document store only
    """

    PRIMARY_ONLY = "primary-only"
    DUAL = "dual"
    SECONDARY_ONLY = "secondary-only"


class ReconciliationSettings(BaseSettings):
    """Routing and migration-lock configuration."""

    read_source: ReadSource = Field(
        default=ReadSource.PRIMARY,
        description="Read routing: primary, secondary, secondary-preferred",
    )
    write_mode: WriteMode = Field(
        default=WriteMode.PRIMARY_ONLY,
        description="Write fan-out: primary-only, dual, secondary-only",
    )
    migration_lock_name: str = Field(
        default="taskstore_migrations_lock",
        description="Name of the advisory lock serializing migrations",
    )
    migration_lock_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Seconds to wait for the migration lock before failing",
    )
    migration_lock_poll_interval: float = Field(
        default=0.5,
        gt=0,
        description="Seconds between lock attempts while waiting",
    )
