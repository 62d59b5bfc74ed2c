"""
SQLAlchemy declarative base and common mixins.

Provides base class for all ORM models and reusable mixins
for common fields (integer keys, timestamps).

Dependencies: sqlalchemy
System role: Foundation for all relational models
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base for ORM model registration.

    All database models inherit from this class to ensure they're
    registered with the metadata and included in table creation.
    """

    pass


class IntegerIdMixin:
    """
    Mixin providing an auto-increment integer primary key.

    The integer id is the canonical cross-store join key; document-store
    records copy it into their mirror field.

    Attributes:
        id: Auto-increment integer primary key
    """

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )


class CreatedAtMixin:
    """
    Mixin providing an immutable creation timestamp (UTC).

    Attributes:
        created_at: Row creation timestamp
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )


class TimestampMixin(CreatedAtMixin):
    """
    Mixin providing creation and last-modification timestamps.

    updated_at is refreshed on every ORM update via the onupdate hook.

    Attributes:
        created_at: Row creation timestamp (UTC, immutable)
        updated_at: Last modification timestamp (UTC, auto-updated)
    """

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
