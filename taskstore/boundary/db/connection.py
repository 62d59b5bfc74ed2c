"""
Relational database connection management.

Provides the async SQLAlchemy engine and session factory. Both are built
once at startup and handed to the relational adapter and migration runner
through the store context; nothing here caches module-level handles.

Dependencies: sqlalchemy, tenacity, taskstore.configs
System role: Relational connection lifecycle management
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from taskstore.configs.database import DatabaseSettings

logger = logging.getLogger(__name__)


def get_async_engine(db_config: DatabaseSettings) -> AsyncEngine:
    """
    Create async SQLAlchemy engine with connection pooling.

    pool_pre_ping=True verifies connections before use to detect stale or
    broken connections early. SQLite URLs skip pool sizing, which its
    pool does not accept.

    Args:
        db_config: Relational connection settings

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Raises:
        ArgumentError: If database URL is invalid or engine creation fails

    Usage:
        engine = get_async_engine(settings.database)
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    if db_config.is_sqlite:
        return create_async_engine(db_config.async_database_url, echo=db_config.echo_sql)

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def get_async_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create async session factory for database operations.

    Returns async_sessionmaker bound to engine with autoflush=False and
    expire_on_commit=False so rows stay readable after the transaction
    block that loaded them has committed.

    Args:
        engine: Async engine to bind

    Returns:
        async_sessionmaker: Async session factory

    Usage:
        SessionFactory = get_async_session_factory(engine)
        async with SessionFactory() as session, session.begin():
            session.add(obj)
    """
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def check_connection(engine: AsyncEngine, attempts: int = 10, retry_delay: float = 5.0) -> None:
    """
    Wait until the relational store answers SELECT 1.

    Connection errors are retried with exponential backoff; anything else
    propagates immediately.

    Args:
        engine: Engine to check
        attempts: Maximum attempts before the last error is re-raised
        retry_delay: Base delay in seconds between attempts

    Raises:
        DBAPIError | OSError: If the store is still unreachable after every attempt
    """
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type((DBAPIError, OSError)),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=retry_delay, max=60, jitter=retry_delay),
        before_sleep=lambda retry_state: logger.warning(
            "Relational store unreachable, retrying",
            extra={
                "attempt": retry_state.attempt_number,
                "max_attempts": attempts,
                "error": str(retry_state.outcome.exception()),
            },
        ),
        reraise=True,
    ):
        with attempt:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
    logger.info("Relational store reachable", extra={"dialect": engine.dialect.name})
