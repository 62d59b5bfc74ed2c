"""
User ORM model.

Dependencies: sqlalchemy, taskstore.boundary.db.base
System role: User persistence in the relational store
"""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskstore.boundary.db.base import Base, CreatedAtMixin, IntegerIdMixin


class UserModel(Base, IntegerIdMixin, CreatedAtMixin):
    """
    User ORM model.

    group_id is the legacy single-group field. Memberships are the source
    of truth for group association; migration v2 derives them from it.

    Attributes:
        id: Auto-increment primary key
        username: Unique login name
        name: Display name
        password: Password hash
        role: "user" or "admin"
        group_id: Optional primary group (SET NULL on group deletion)
        created_at: Creation timestamp (UTC)
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")

    group_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("groups.id", ondelete="SET NULL"),
        nullable=True,
        default=None,
    )
