"""
Migration ledger CRUD operations.

Dependencies: sqlalchemy, taskstore.boundary.db.models
System role: Applied-version bookkeeping for the migration runner
"""

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.schema import CreateTable

from taskstore.boundary.db.base import utcnow
from taskstore.boundary.db.models.migration_model import SchemaMigrationModel


class SchemaMigrationCRUD:
    """
    Ledger access on a raw connection.

    Works on AsyncConnection rather than AsyncSession because migration
    bodies run DDL on the same connection.
    """

    table = SchemaMigrationModel.__table__

    async def ensure_table(self, conn: AsyncConnection) -> None:
        """
        Create the ledger table if it does not exist.

        Not safe to race: concurrent CREATE TABLE IF NOT EXISTS can fail with a
        duplicate type error on PostgreSQL. Call it only under the migration lock.
        """
        await conn.execute(CreateTable(self.table, if_not_exists=True))

    async def get_applied_versions(self, conn: AsyncConnection) -> set[int]:
        """
        Read every recorded version.

        Returns:
            set[int]: Applied migration versions
        """
        result = await conn.execute(select(self.table.c.version).order_by(self.table.c.version))
        return {row[0] for row in result}

    async def mark_applied(self, conn: AsyncConnection, version: int, name: str) -> None:
        """Record a version as applied."""
        await conn.execute(
            insert(self.table).values(version=version, name=name, applied_at=utcnow())
        )


schema_migration_crud = SchemaMigrationCRUD()
