"""
Relational migration runner entry point.

Usage:
    python -m taskstore.scripts.run_migrations

Exit codes:
    0: migrations applied (or already up to date)
    1: a migration failed, or the relational store stayed unreachable
    2: the migration lock is held by another instance

Dependencies: taskstore.dependencies
System role: Operator CLI for schema migrations
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv
from sqlalchemy.exc import DBAPIError

from taskstore.boundary.db.connection import check_connection
from taskstore.configs import get_settings
from taskstore.core.exceptions import MigrationFailedError, MigrationLockContentionError
from taskstore.dependencies import create_store_context
from taskstore.observability.logger import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)


async def _run() -> list[int]:
    settings = get_settings()
    context = create_store_context(settings)
    try:
        database = settings.database
        await check_connection(context.engine, database.connect_retries, database.connect_retry_delay)
        return await context.migration_runner().run()
    finally:
        await context.close()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Apply pending relational migrations.")
    parser.parse_args(argv)
    configure_logging(get_settings().log_level)

    try:
        applied = asyncio.run(_run())
    except MigrationLockContentionError as e:
        logger.error(f"Another instance is migrating: {e}")
        return 2
    except MigrationFailedError as e:
        logger.error(f"Migration failed: {e} (cause: {e.__cause__})")
        return 1
    except (DBAPIError, OSError) as e:
        logger.error(f"Relational store unreachable: {e}")
        return 1

    logger.info(f"Applied versions: {applied or 'none, already up to date'}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
