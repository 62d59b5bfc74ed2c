"""
Versioned relational migrations.

Ordered list of migration bodies applied by the MigrationRunner. Each body
receives the connection of the transaction that also records it in the
ledger, so a body that raises leaves its version unrecorded.

Dependencies: sqlalchemy, taskstore.boundary.db
System role: Migration definitions
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from taskstore.boundary.db.base import Base
from taskstore.boundary.db.insert_ignore import insert_ignore
from taskstore.boundary.db.models import ENTITY_TABLES, MembershipModel, UserModel

logger = logging.getLogger(__name__)

MigrationBody = Callable[[AsyncConnection], Awaitable[None]]


@dataclass(frozen=True)
class Migration:
    """
    One versioned migration.

    Attributes:
        version: Strictly increasing version number
        name: Name recorded in the ledger
        body: Coroutine function applying the change
    """

    version: int
    name: str
    body: MigrationBody


async def create_initial_schema(conn: AsyncConnection) -> None:
    """Create groups, users, user_group_memberships and tasks."""
    await conn.run_sync(
        lambda sync_conn: Base.metadata.create_all(sync_conn, tables=ENTITY_TABLES, checkfirst=True)
    )
    logger.info("Initial schema created", extra={"tables": [t.name for t in ENTITY_TABLES]})


async def migrate_user_group_memberships(conn: AsyncConnection) -> None:
    """
    Derive memberships from the legacy users.group_id column.

    Existing pairs are skipped, so running this again after a partial
    failure inserts nothing twice.
    """
    users = UserModel.__table__
    memberships = MembershipModel.__table__
    source = select(users.c.id, users.c.group_id, users.c.created_at).where(
        users.c.group_id.is_not(None)
    )
    stmt = insert_ignore(conn.dialect.name, memberships).from_select(
        ["user_id", "group_id", "joined_at"], source
    )
    result = await conn.execute(stmt)
    logger.info(
        "Legacy group memberships migrated",
        extra={"rows_inserted": max(result.rowcount, 0)},
    )


MIGRATIONS: list[Migration] = [
    Migration(version=1, name="initial_schema", body=create_initial_schema),
    Migration(version=2, name="migrate_user_group_memberships", body=migrate_user_group_memberships),
]
