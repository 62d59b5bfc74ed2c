"""
Actor model for read-side access filtering.

The authenticated caller as handed down by the API layer. Ids may arrive in
either key space; the Read Router normalizes them before filtering.

Dependencies: pydantic
System role: Access-control input
"""

from typing import Any

from pydantic import BaseModel, Field

from taskstore.models.user import UserRole


class Actor(BaseModel):
    """Caller identity used to decide which tasks are visible."""

    user_id: int | str
    role: UserRole = UserRole.USER
    group_ids: list[int | str] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


class TaskVisibility(BaseModel):
    """
    Resolved access predicate for task listings.

    Built by the Read Router from an Actor after every id has been
    normalized. Adapters may push it down as a query; the router always
    re-applies permits() to whatever an adapter returns.

    Attributes:
        is_admin: Admins see every task
        user_ids: Numeric ids the actor is known by
        raw_user_ids: Raw string forms of the actor id, matched against
            creator/administrator fields of documents without mirrors
        group_ids: Numeric ids of the actor's groups
    """

    is_admin: bool = False
    user_ids: set[int] = Field(default_factory=set)
    raw_user_ids: set[str] = Field(default_factory=set)
    group_ids: set[int] = Field(default_factory=set)

    def permits(self, task: Any) -> bool:
        """
        Decide whether the actor may see a task.

        Args:
            task: Canonical Task record

        Returns:
            bool: True for admins, creators, administrators, listed users,
                and members of a listed group
        """
        if self.is_admin:
            return True
        owners = self.user_ids | self.raw_user_ids
        if task.creator_id in owners or task.administrator_id in owners:
            return True
        if self.user_ids.intersection(task.belonging_users):
            return True
        return bool(self.group_ids.intersection(task.belonging_groups))
