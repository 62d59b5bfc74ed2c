"""
Migration runner.

Applies the ordered migration list exactly once across a fleet of service
instances. A named advisory lock is taken with a bounded wait before anything
touches the schema, the ledger table included. Every unapplied version runs
in its own transaction together with its ledger row, and the lock is always
released.

Dependencies: sqlalchemy, taskstore.boundary.db, taskstore.application.services.migrations
System role: Migration Runner
"""

import enum
import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncEngine

from taskstore.application.services.migrations import MIGRATIONS, Migration
from taskstore.boundary.db.advisory_lock import advisory_lock_for
from taskstore.boundary.db.CRUD.migration_crud import schema_migration_crud
from taskstore.core.exceptions import MigrationFailedError, MigrationLockContentionError

logger = logging.getLogger(__name__)


class AdvisoryLock(Protocol):
    async def acquire(self, timeout: float) -> bool: ...

    async def release(self) -> bool: ...


class MigrationState(str, enum.Enum):
    """Runner lifecycle states."""

    NOT_STARTED = "not_started"
    LOCK_ACQUIRED = "lock_acquired"
    APPLYING = "applying"
    APPLIED = "applied"
    RELEASED = "released"


class MigrationRunner:
    """
    Runs versioned migrations under an advisory lock.

    The state history is kept on the instance, e.g.
    [(NOT_STARTED, None), (LOCK_ACQUIRED, None), (APPLYING, 1), (APPLIED, 1),
    (RELEASED, None)].
    """

    def __init__(
        self,
        engine: AsyncEngine,
        lock_name: str,
        lock_timeout: float = 60.0,
        poll_interval: float = 0.5,
        migrations: list[Migration] | None = None,
        lock: AdvisoryLock | None = None,
    ) -> None:
        """
        Initialize runner.

        Args:
            engine: Relational engine
            lock_name: Advisory lock name shared by every instance
            lock_timeout: Seconds to wait for the lock before failing
            poll_interval: Seconds between lock attempts (PostgreSQL)
            migrations: Migration list (defaults to MIGRATIONS)
            lock: Lock override; defaults to the engine dialect's lock
        """
        self.engine = engine
        self.lock_name = lock_name
        self.lock_timeout = lock_timeout
        self.poll_interval = poll_interval
        self.migrations = sorted(migrations if migrations is not None else MIGRATIONS, key=lambda m: m.version)
        self.lock = lock
        self.history: list[tuple[MigrationState, int | None]] = [(MigrationState.NOT_STARTED, None)]

    @property
    def state(self) -> MigrationState:
        return self.history[-1][0]

    def _transition(self, state: MigrationState, version: int | None = None) -> None:
        self.history.append((state, version))
        logger.debug("Migration runner state changed", extra={"state": state.value, "version": version})

    async def run(self) -> list[int]:
        """
        Apply every unapplied migration.

        Returns:
            list[int]: Versions applied by this run (empty when up to date)

        Raises:
            MigrationLockContentionError: If the lock was not acquired within lock_timeout
            MigrationFailedError: If a body raised; raised after the lock is released
        """
        self.history = [(MigrationState.NOT_STARTED, None)]

        lock = self.lock or advisory_lock_for(self.engine, self.lock_name, self.poll_interval)
        if not await lock.acquire(self.lock_timeout):
            logger.error(
                "Migration lock not acquired, another instance may be migrating",
                extra={"lock_name": self.lock_name, "timeout": self.lock_timeout},
            )
            raise MigrationLockContentionError(self.lock_name, self.lock_timeout)
        self._transition(MigrationState.LOCK_ACQUIRED)

        applied_now: list[int] = []
        failure: tuple[Migration, Exception] | None = None
        try:
            async with self.engine.begin() as conn:
                await schema_migration_crud.ensure_table(conn)
                applied = await schema_migration_crud.get_applied_versions(conn)

            for migration in self.migrations:
                if migration.version in applied:
                    logger.info(
                        "Migration already applied, skipping",
                        extra={"version": migration.version, "migration_name": migration.name},
                    )
                    continue

                self._transition(MigrationState.APPLYING, migration.version)
                logger.info(
                    "Applying migration",
                    extra={"version": migration.version, "migration_name": migration.name},
                )
                try:
                    async with self.engine.begin() as conn:
                        await migration.body(conn)
                        await schema_migration_crud.mark_applied(conn, migration.version, migration.name)
                except Exception as e:
                    logger.error(
                        "Migration failed",
                        extra={"version": migration.version, "migration_name": migration.name, "error": str(e)},
                    )
                    failure = (migration, e)
                    break

                self._transition(MigrationState.APPLIED, migration.version)
                applied_now.append(migration.version)
        finally:
            await self._release(lock)

        if failure is not None:
            migration, error = failure
            raise MigrationFailedError(migration.version, migration.name) from error

        logger.info("Migrations up to date", extra={"applied": applied_now})
        return applied_now

    async def _release(self, lock: AdvisoryLock) -> None:
        try:
            released = await lock.release()
        except Exception as e:
            logger.warning(
                "Error releasing migration lock",
                extra={"lock_name": self.lock_name, "error": str(e)},
            )
        else:
            if not released:
                logger.warning(
                    "Migration lock release returned false, lock may already be gone",
                    extra={"lock_name": self.lock_name},
                )
        self._transition(MigrationState.RELEASED)
