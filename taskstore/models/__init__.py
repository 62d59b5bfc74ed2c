"""
Domain models package.

Exports canonical records (User, Group, Task, Membership, GroupMember),
their create/patch inputs, the tagged EntityId and the Actor.

Dependencies: pydantic
System role: Store-independent data contracts
"""

from taskstore.models.actor import Actor, TaskVisibility
from taskstore.models.group import Group, GroupCreate, GroupUpdate
from taskstore.models.identifiers import (
    EntityId,
    EntityKind,
    IdKind,
    coerce_numeric,
    extract_hex_id,
)
from taskstore.models.membership import GroupMember, Membership
from taskstore.models.task import PLANNED_STATUS, Task, TaskCreate, TaskPriority, TaskUpdate
from taskstore.models.user import User, UserCreate, UserRole, UserUpdate

__all__ = [
    "Actor",
    "TaskVisibility",
    "EntityId",
    "EntityKind",
    "IdKind",
    "coerce_numeric",
    "extract_hex_id",
    "User",
    "UserCreate",
    "UserUpdate",
    "UserRole",
    "Group",
    "GroupCreate",
    "GroupUpdate",
    "Membership",
    "GroupMember",
    "Task",
    "TaskCreate",
    "TaskUpdate",
    "TaskPriority",
    "PLANNED_STATUS",
]
