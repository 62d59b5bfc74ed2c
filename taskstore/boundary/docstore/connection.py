"""
Document store connection management.

Builds the pymongo async client and resolves the configured database. The
client is created once at startup and owned by the store context.

Dependencies: pymongo, tenacity, taskstore.configs
System role: Document store connection lifecycle management
"""

import logging
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConnectionFailure
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from taskstore.configs.document_store import DocumentStoreSettings

logger = logging.getLogger(__name__)


def get_document_client(doc_config: DocumentStoreSettings) -> AsyncMongoClient:
    """
    Create the async document store client.

    The driver connects lazily; the first operation surfaces connectivity
    errors, bounded by server_selection_timeout_ms.

    Args:
        doc_config: Document store settings

    Returns:
        AsyncMongoClient: Configured client
    """
    return AsyncMongoClient(
        doc_config.uri,
        serverSelectionTimeoutMS=doc_config.server_selection_timeout_ms,
        tz_aware=True,
    )


def get_document_database(client: AsyncMongoClient, doc_config: DocumentStoreSettings) -> AsyncDatabase:
    """
    Resolve the configured database on a client.

    Args:
        client: Async client
        doc_config: Document store settings

    Returns:
        AsyncDatabase: Database handle
    """
    return client[doc_config.db_name]


async def ping_document_store(database: Any, attempts: int = 10, retry_delay: float = 5.0) -> None:
    """
    Wait until the document store answers a ping.

    Args:
        database: Async database handle
        attempts: Maximum attempts before the last error is re-raised
        retry_delay: Base delay in seconds between attempts

    Raises:
        ConnectionFailure: If the store is still unreachable after every attempt
    """
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type((ConnectionFailure, OSError)),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=retry_delay, max=60, jitter=retry_delay),
        before_sleep=lambda retry_state: logger.warning(
            "Document store unreachable, retrying",
            extra={
                "attempt": retry_state.attempt_number,
                "max_attempts": attempts,
                "error": str(retry_state.outcome.exception()),
            },
        ),
        reraise=True,
    ):
        with attempt:
            await database.command("ping")
    logger.info("Document store reachable")
