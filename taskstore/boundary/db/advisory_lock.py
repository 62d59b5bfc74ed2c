"""
Named advisory locks for cross-instance mutual exclusion.

Serializes migration runs across service instances. PostgreSQL locks are
held on a dedicated connection for the lock's lifetime; SQLite has no
server-side locks, so a process-local registry stands in for single-host
development and tests.

Dependencies: sqlalchemy, hashlib
System role: Distributed lock primitive for the migration runner
"""

import asyncio
import hashlib
import logging
import time
import weakref

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger(__name__)


def lock_key(name: str) -> int:
    """
    Derive a stable signed 64-bit advisory lock key from a lock name.

    Args:
        name: Human-readable lock name

    Returns:
        int: Key usable with pg_try_advisory_lock(bigint)
    """
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=True)


class PostgresAdvisoryLock:
    """
    Session-level PostgreSQL advisory lock.

    Acquisition polls pg_try_advisory_lock until the deadline instead of
    blocking inside the server, so the wait is bounded by our own timeout.
    """

    def __init__(self, engine: AsyncEngine, name: str, poll_interval: float = 0.5) -> None:
        """
        Initialize lock handle.

        Args:
            engine: Engine used to open the dedicated lock connection
            name: Lock name
            poll_interval: Seconds between acquisition attempts
        """
        self.engine = engine
        self.name = name
        self.key = lock_key(name)
        self.poll_interval = poll_interval
        self._conn: AsyncConnection | None = None

    async def acquire(self, timeout: float) -> bool:
        """
        Try to take the lock, waiting at most timeout seconds.

        Args:
            timeout: Maximum seconds to wait

        Returns:
            bool: True if the lock is now held

        Raises:
            Exception: Connection errors, after the lock connection is invalidated
        """
        conn = await self.engine.connect()
        deadline = time.monotonic() + timeout
        try:
            while True:
                result = await conn.execute(
                    text("SELECT pg_try_advisory_lock(:key)"), {"key": self.key}
                )
                if result.scalar():
                    # keep the connection open: the lock belongs to this session
                    await conn.commit()
                    self._conn = conn
                    return True
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    await conn.close()
                    return False
                await asyncio.sleep(min(self.poll_interval, remaining))
        except BaseException:
            # a cancelled or failed attempt may still hold the lock server-side
            await conn.invalidate()
            await conn.close()
            raise

    async def release(self) -> bool:
        """
        Release the lock and close its connection.

        If the unlock statement fails the connection is invalidated rather than
        returned to the pool, so the server session and its lock go with it.

        Returns:
            bool: True if the server confirmed the release
        """
        if self._conn is None:
            return False
        conn, self._conn = self._conn, None
        try:
            result = await conn.execute(
                text("SELECT pg_advisory_unlock(:key)"), {"key": self.key}
            )
            released = bool(result.scalar())
            await conn.commit()
            return released
        except BaseException:
            # invalidating ends the server session, which drops its locks
            logger.warning("Advisory unlock failed, discarding lock connection", extra={"lock_name": self.name})
            await conn.invalidate()
            raise
        finally:
            await conn.close()


class LocalAdvisoryLock:
    """
    Process-local named lock for stores without advisory locks (SQLite).

    Locks with the same name on the same event loop share one asyncio.Lock,
    so concurrent runners inside one process still serialize.
    """

    _registry: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, asyncio.Lock]]" = (
        weakref.WeakKeyDictionary()
    )

    def __init__(self, name: str) -> None:
        self.name = name
        self._held = False

    @classmethod
    def _lock_for(cls, name: str) -> asyncio.Lock:
        locks = cls._registry.setdefault(asyncio.get_running_loop(), {})
        lock = locks.get(name)
        if lock is None:
            lock = asyncio.Lock()
            locks[name] = lock
        return lock

    async def acquire(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self._lock_for(self.name).acquire(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        self._held = True
        return True

    async def release(self) -> bool:
        if not self._held:
            return False
        self._held = False
        self._lock_for(self.name).release()
        return True


def advisory_lock_for(
    engine: AsyncEngine,
    name: str,
    poll_interval: float = 0.5,
) -> PostgresAdvisoryLock | LocalAdvisoryLock:
    """
    Pick the lock implementation matching the engine's dialect.

    Args:
        engine: Relational engine
        name: Lock name
        poll_interval: Seconds between attempts (PostgreSQL only)

    Returns:
        Lock object exposing acquire(timeout) and release()
    """
    if engine.dialect.name == "postgresql":
        return PostgresAdvisoryLock(engine, name, poll_interval=poll_interval)
    logger.info(
        "Dialect has no advisory locks, using process-local lock",
        extra={"dialect": engine.dialect.name, "lock_name": name},
    )
    return LocalAdvisoryLock(name)
