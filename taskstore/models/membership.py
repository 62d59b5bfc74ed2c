"""
Membership domain models.

A membership associates one user with one group; the pair is unique in
both stores.

Dependencies: pydantic
System role: Membership contracts for the repository layer
"""

from datetime import datetime

from pydantic import BaseModel

from taskstore.models.user import UserRole


class Membership(BaseModel):
    """Single (user, group) association."""

    user_id: int
    group_id: int
    joined_at: datetime | None = None


class GroupMember(BaseModel):
    """User as seen from a group's member list."""

    id: int
    username: str
    name: str
    role: UserRole = UserRole.USER
    joined_at: datetime | None = None
