"""
Group ORM model.

Dependencies: sqlalchemy, taskstore.boundary.db.base
System role: Group persistence in the relational store
"""

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskstore.boundary.db.base import Base, CreatedAtMixin, IntegerIdMixin


class GroupModel(Base, IntegerIdMixin, CreatedAtMixin):
    """
    Group ORM model.

    Attributes:
        id: Auto-increment primary key
        name: Unique group name (50 char limit)
        description: Optional free text
        leaders: JSON list of leader user ids (numeric)
        created_at: Creation timestamp (UTC)
    """

    __tablename__ = "groups"

    name: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        doc="Group name",
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    leaders: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Leader user ids",
    )
