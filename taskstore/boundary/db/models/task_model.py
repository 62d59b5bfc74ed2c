"""
Task ORM model.

Dependencies: sqlalchemy, taskstore.boundary.db.base
System role: Task persistence in the relational store
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskstore.boundary.db.base import Base, IntegerIdMixin, TimestampMixin


class TaskModel(Base, IntegerIdMixin, TimestampMixin):
    """
    Task ORM model.

    belonging_users and belonging_groups hold de-duplicated numeric ids.
    Priority and status are stored as plain integers.

    Attributes:
        id: Auto-increment primary key
        name: Task title
        description: Optional free text
        deadline: Optional due date
        priority: 0 (low) to 3 (urgent)
        status: Signed status code, -1 means planned
        creator_id: Creating user (SET NULL on user deletion)
        administrator_id: Optional administrating user (SET NULL on deletion)
        belonging_users: JSON list of user ids
        belonging_groups: JSON list of group ids
        completion_time: When the task was completed
        created_at: Creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """

    __tablename__ = "tasks"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)

    creator_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    administrator_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    belonging_users: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    belonging_groups: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    completion_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
