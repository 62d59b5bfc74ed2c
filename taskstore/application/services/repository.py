"""
Repository facade.

The interface consumed by the API layer. Writes go through the
DualWriteCoordinator, reads through the ReadRouter; callers see canonical
records and a single aggregated error, never which store answered.

Dependencies: taskstore.application.services.dual_write, taskstore.application.services.read_router
System role: Repository interface of the reconciliation layer
"""

from typing import Any

from taskstore.application.services.dual_write import DualWriteCoordinator
from taskstore.application.services.read_router import ReadRouter
from taskstore.models.actor import Actor
from taskstore.models.group import Group, GroupCreate, GroupUpdate
from taskstore.models.identifiers import EntityId
from taskstore.models.membership import GroupMember
from taskstore.models.task import Task, TaskCreate, TaskUpdate
from taskstore.models.user import User, UserCreate, UserUpdate


class _Repository:
    def __init__(self, writer: DualWriteCoordinator, reader: ReadRouter) -> None:
        """
        Initialize repository.

        Args:
            writer: Dual-write coordinator
            reader: Read router
        """
        self.writer = writer
        self.reader = reader


class UserRepository(_Repository):
    """User operations."""

    async def create(self, data: UserCreate) -> EntityId:
        return await self.writer.create_user(data)

    async def find_by_id(self, user_id: Any) -> User | None:
        return await self.reader.get_user(user_id)

    async def find_by_username(self, username: str) -> User | None:
        return await self.reader.get_user_by_username(username)

    async def list(self) -> list[User]:
        return await self.reader.list_users()

    async def update(self, user_id: Any, patch: UserUpdate) -> bool:
        return await self.writer.update_user(user_id, patch)

    async def delete(self, user_id: Any) -> bool:
        return await self.writer.delete_user(user_id)


class GroupRepository(_Repository):
    """Group operations."""

    async def create(self, data: GroupCreate) -> EntityId:
        return await self.writer.create_group(data)

    async def find_by_id(self, group_id: Any) -> Group | None:
        return await self.reader.get_group(group_id)

    async def find_by_name(self, name: str) -> Group | None:
        return await self.reader.get_group_by_name(name)

    async def list(self) -> list[Group]:
        return await self.reader.list_groups()

    async def update(self, group_id: Any, patch: GroupUpdate) -> bool:
        return await self.writer.update_group(group_id, patch)

    async def delete(self, group_id: Any) -> bool:
        return await self.writer.delete_group(group_id)


class TaskRepository(_Repository):
    """Task operations. Listings are filtered by the caller's visibility."""

    async def create(self, data: TaskCreate, creator_id: Any) -> EntityId:
        return await self.writer.create_task(data, creator_id)

    async def find_by_id(self, task_id: Any) -> Task | None:
        return await self.reader.get_task(task_id)

    async def list(self, actor: Actor | None = None) -> list[Task]:
        return await self.reader.list_tasks(actor)

    async def update(self, task_id: Any, patch: TaskUpdate) -> bool:
        return await self.writer.update_task(task_id, patch)

    async def delete(self, task_id: Any) -> bool:
        return await self.writer.delete_task(task_id)


class MembershipRepository(_Repository):
    """User-group membership operations."""

    async def add(self, user_id: Any, group_id: Any) -> bool:
        return await self.writer.add_membership(user_id, group_id)

    async def remove(self, user_id: Any, group_id: Any) -> bool:
        return await self.writer.remove_membership(user_id, group_id)

    async def list_group_members(self, group_id: Any) -> list[GroupMember]:
        return await self.reader.list_group_members(group_id)

    async def list_user_groups(self, user_id: Any) -> list[Group]:
        return await self.reader.list_user_groups(user_id)

    async def replace_user_memberships(self, user_id: Any, group_ids: list[Any]) -> list[int]:
        return await self.writer.replace_user_memberships(user_id, group_ids)
