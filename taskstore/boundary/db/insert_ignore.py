"""
Dialect-aware INSERT ... ignoring unique conflicts.

Membership inserts and the legacy membership backfill must be no-ops when
the (user_id, group_id) pair already exists.

Dependencies: sqlalchemy
System role: Idempotent inserts for the relational store
"""

from typing import Any

from sqlalchemy import Insert, Table, insert
from sqlalchemy.dialects import postgresql, sqlite


def insert_ignore(dialect_name: str, table: Table, rows: list[dict[str, Any]] | None = None) -> Insert:
    """
    Build an INSERT statement that skips rows violating a unique constraint.

    Args:
        dialect_name: Name of the bound dialect (engine.dialect.name)
        table: Target table
        rows: Optional row values; omit when used with from_select()

    Returns:
        Insert: Statement ready for session.execute / conn.execute
    """
    if dialect_name == "postgresql":
        stmt = postgresql.insert(table)
    elif dialect_name == "sqlite":
        stmt = sqlite.insert(table)
    else:
        stmt = insert(table).prefix_with("IGNORE")
        return stmt.values(rows) if rows else stmt

    if rows:
        stmt = stmt.values(rows)
    return stmt.on_conflict_do_nothing()
