"""
Document store backfill entry point.

Usage:
    python -m taskstore.scripts.backfill_documents [--dry-run] [--batch-size N]

Copies groups, users, memberships and tasks from the relational store into
the document store, keyed by mirror id, then compares record counts.
Exits 1 when any record failed to copy or the counts differ.

Dependencies: taskstore.dependencies
System role: Operator CLI for seeding the document store
"""

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from taskstore.application.services.backfill import DEFAULT_BATCH_SIZE
from taskstore.boundary.docstore.schema import ensure_indexes
from taskstore.configs import get_settings
from taskstore.dependencies import create_store_context
from taskstore.observability.logger import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


async def _run(batch_size: int, dry_run: bool) -> bool:
    context = create_store_context(get_settings())
    try:
        backfill = context.backfill()
        if not dry_run:
            await ensure_indexes(context.document_database)
        report = await backfill.run(batch_size=batch_size, dry_run=dry_run)
        for name, counts in report.items():
            logger.info(
                f"{name}: scanned={counts.scanned} inserted={counts.inserted} "
                f"updated={counts.updated} failed={counts.failed}"
            )
        if dry_run:
            return True

        ok = not any(counts.failed for counts in report.values())
        for name, (relational, document) in (await backfill.verify()).items():
            logger.info(f"{name}: relational={relational} document={document}")
            ok = ok and relational == document
        return ok
    finally:
        await context.close()


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Seed the document store from the relational store.")
    parser.add_argument("--dry-run", action="store_true", help="scan and count without writing")
    parser.add_argument(
        "--batch-size",
        type=_positive_int,
        default=DEFAULT_BATCH_SIZE,
        help=f"rows read per page (default {DEFAULT_BATCH_SIZE})",
    )
    args = parser.parse_args(argv)
    configure_logging(get_settings().log_level)

    try:
        ok = asyncio.run(_run(args.batch_size, args.dry_run))
    except Exception as e:
        logger.error(f"Backfill aborted: {e}")
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
