"""
Task domain models.

Priority and status are opaque integers here. Human-readable labels belong
to the API layer and are never stored.

Dependencies: pydantic
System role: Task contracts for the repository layer
"""

import enum
from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field

from taskstore.models.common import PatchModel
from taskstore.models.identifiers import EntityId

PLANNED_STATUS = -1


class TaskPriority(int, enum.Enum):
    """Priority levels, low to urgent."""

    LOW = 0
    NORMAL = 1
    IMPORTANT = 2
    URGENT = 3


class Task(BaseModel):
    """Canonical task record returned by either store."""

    id: EntityId
    name: str
    description: str | None = None
    deadline: datetime | None = None
    priority: int = TaskPriority.LOW.value
    status: int = PLANNED_STATUS
    creator_id: int | str | None = None
    administrator_id: int | str | None = None
    belonging_users: list[int] = Field(default_factory=list)
    belonging_groups: list[int] = Field(default_factory=list)
    completion_time: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskCreate(BaseModel):
    """Input for creating a task. Reference lists accept any id tokens."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    deadline: datetime | None = None
    priority: int = Field(default=TaskPriority.LOW.value, ge=0, le=3)
    status: int = PLANNED_STATUS
    administrator_id: int | str | None = None
    belonging_users: list[int | str] = Field(default_factory=list)
    belonging_groups: list[int | str] = Field(default_factory=list)


class TaskUpdate(PatchModel):
    """Patch for a task; only fields explicitly set are written. None clears a reference list."""

    non_nullable: ClassVar[tuple[str, ...]] = ("name", "priority", "status")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    deadline: datetime | None = None
    priority: int | None = Field(default=None, ge=0, le=3)
    status: int | None = None
    administrator_id: int | str | None = None
    belonging_users: list[int | str] | None = None
    belonging_groups: list[int | str] | None = None
    completion_time: datetime | None = None
