"""
User domain models.

Canonical user record plus create/patch inputs shared by both adapters.

Dependencies: pydantic
System role: User contracts for the repository layer
"""

import enum
from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, Field

from taskstore.models.common import PatchModel
from taskstore.models.identifiers import EntityId


class UserRole(str, enum.Enum):
    """Authorization role carried on the user record."""

    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """Canonical user record returned by either store."""

    id: EntityId
    username: str
    name: str = Field(description="Display name")
    password: str = Field(description="Password hash, never plaintext")
    role: UserRole = UserRole.USER
    group_id: int | None = Field(default=None, description="Primary group (numeric id)")
    created_at: datetime | None = None


class UserCreate(BaseModel):
    """Input for creating a user. group_id may be any accepted id token."""

    username: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=100)
    password: str
    role: UserRole = UserRole.USER
    group_id: int | str | None = None


class UserUpdate(PatchModel):
    """Patch for a user; only fields explicitly set are written."""

    non_nullable: ClassVar[tuple[str, ...]] = ("username", "name", "password", "role")

    username: str | None = Field(default=None, min_length=1, max_length=50)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    password: str | None = None
    role: UserRole | None = None
    group_id: int | str | None = None
