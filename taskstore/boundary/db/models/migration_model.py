"""
Schema migration ledger ORM model.

Dependencies: sqlalchemy, taskstore.boundary.db.base
System role: Records which migration versions have been applied
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskstore.boundary.db.base import Base, utcnow


class SchemaMigrationModel(Base):
    """
    One row per applied migration version.

    A row is written only after the migration body succeeded, so a missing
    row means the version is still pending.

    Attributes:
        version: Migration version (primary key)
        name: Migration name
        applied_at: When the migration completed (UTC)
    """

    __tablename__ = "schema_migrations"

    version: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
