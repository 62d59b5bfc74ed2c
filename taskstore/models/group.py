"""
Group domain models.

Dependencies: pydantic
System role: Group contracts for the repository layer
"""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field

from taskstore.models.common import PatchModel
from taskstore.models.identifiers import EntityId


class Group(BaseModel):
    """Canonical group record returned by either store."""

    id: EntityId
    name: str
    description: str | None = None
    leaders: list[int] = Field(default_factory=list, description="Leader user ids (numeric)")
    created_at: datetime | None = None


class GroupCreate(BaseModel):
    """Input for creating a group. leaders accepts any id tokens."""

    name: str = Field(min_length=1, max_length=50)
    description: str | None = None
    leaders: list[int | str] = Field(default_factory=list)


class GroupUpdate(PatchModel):
    """Patch for a group; only fields explicitly set are written."""

    non_nullable: ClassVar[tuple[str, ...]] = ("name",)

    name: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = None
    leaders: list[int | str] | None = None
