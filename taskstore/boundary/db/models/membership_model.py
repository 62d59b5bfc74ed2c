"""
User-group membership ORM model.

Dependencies: sqlalchemy, taskstore.boundary.db.base
System role: Many-to-many association between users and groups
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from taskstore.boundary.db.base import Base, IntegerIdMixin, utcnow


class MembershipModel(Base, IntegerIdMixin):
    """
    Membership ORM model.

    The (user_id, group_id) pair is unique; inserts go through the
    insert-ignore helper so re-adding a pair is a no-op.

    Attributes:
        id: Auto-increment primary key
        user_id: Member user (CASCADE on user deletion)
        group_id: Group (CASCADE on group deletion)
        joined_at: When the membership was created (UTC)
    """

    __tablename__ = "user_group_memberships"
    __table_args__ = (
        UniqueConstraint("user_id", "group_id", name="unique_user_group"),
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
