"""
Relational store adapter.

Exposes the store-scoped CRUD primitives over the relational CRUD layer and
maps ORM rows into canonical records. Each call runs in its own session and
transaction; no cross-store knowledge lives here.

Dependencies: sqlalchemy, taskstore.boundary.db, taskstore.models
System role: Primary (relational) Store Adapter
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskstore.boundary.db.CRUD.group_crud import group_crud
from taskstore.boundary.db.CRUD.membership_crud import membership_crud
from taskstore.boundary.db.CRUD.task_crud import task_crud
from taskstore.boundary.db.CRUD.user_crud import user_crud
from taskstore.boundary.db.models.group_model import GroupModel
from taskstore.boundary.db.models.task_model import TaskModel
from taskstore.boundary.db.models.user_model import UserModel
from taskstore.core.outcome import StoreName
from taskstore.models.actor import TaskVisibility
from taskstore.models.group import Group
from taskstore.models.identifiers import EntityId, coerce_numeric
from taskstore.models.membership import GroupMember, Membership
from taskstore.models.task import Task
from taskstore.models.user import User, UserRole


def _id_list(values: Any) -> list[int]:
    if not values:
        return []
    ids = (coerce_numeric(v) for v in values)
    return list(dict.fromkeys(i for i in ids if i is not None))


def user_from_row(row: UserModel) -> User:
    return User(
        id=EntityId.numeric(row.id),
        username=row.username,
        name=row.name,
        password=row.password,
        role=UserRole(row.role) if row.role in {r.value for r in UserRole} else UserRole.USER,
        group_id=row.group_id,
        created_at=row.created_at,
    )


def group_from_row(row: GroupModel) -> Group:
    return Group(
        id=EntityId.numeric(row.id),
        name=row.name,
        description=row.description,
        leaders=_id_list(row.leaders),
        created_at=row.created_at,
    )


def task_from_row(row: TaskModel) -> Task:
    return Task(
        id=EntityId.numeric(row.id),
        name=row.name,
        description=row.description,
        deadline=row.deadline,
        priority=row.priority,
        status=row.status,
        creator_id=row.creator_id,
        administrator_id=row.administrator_id,
        belonging_users=_id_list(row.belonging_users),
        belonging_groups=_id_list(row.belonging_groups),
        completion_time=row.completion_time,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class RelationalAdapter:
    """
    Store Adapter for the relational store.

    All ids passed in are relational numeric ids; resolving other id forms
    is the caller's job.
    """

    store = StoreName.RELATIONAL

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize adapter.

        Args:
            session_factory: Async session factory bound to the relational engine
        """
        self.session_factory = session_factory

    # Users

    async def create_user(self, data: dict[str, Any]) -> EntityId:
        """
        Insert a user.

        Args:
            data: Normalized column values (username, name, password, role, group_id)

        Returns:
            EntityId: Numeric id of the new row
        """
        async with self.session_factory() as session, session.begin():
            row = await user_crud.create(session, **data)
            return EntityId.numeric(row.id)

    async def get_user(self, user_id: int) -> User | None:
        async with self.session_factory() as session:
            row = await user_crud.get_by_id(session, user_id)
            return user_from_row(row) if row else None

    async def get_user_by_username(self, username: str) -> User | None:
        async with self.session_factory() as session:
            row = await user_crud.get_by_username(session, username)
            return user_from_row(row) if row else None

    async def list_users(self) -> list[User]:
        async with self.session_factory() as session:
            return [user_from_row(row) for row in await user_crud.get_all(session)]

    async def update_user(self, user_id: int, patch: dict[str, Any]) -> bool:
        async with self.session_factory() as session, session.begin():
            return await user_crud.update_by_id(session, user_id, **patch)

    async def delete_user(self, user_id: int) -> bool:
        """Delete a user and its memberships."""
        async with self.session_factory() as session, session.begin():
            await membership_crud.remove_for_user(session, user_id)
            return await user_crud.delete_by_id(session, user_id)

    # Groups

    async def create_group(self, data: dict[str, Any]) -> EntityId:
        async with self.session_factory() as session, session.begin():
            row = await group_crud.create(session, **data)
            return EntityId.numeric(row.id)

    async def get_group(self, group_id: int) -> Group | None:
        async with self.session_factory() as session:
            row = await group_crud.get_by_id(session, group_id)
            return group_from_row(row) if row else None

    async def get_group_by_name(self, name: str) -> Group | None:
        async with self.session_factory() as session:
            row = await group_crud.get_by_name(session, name)
            return group_from_row(row) if row else None

    async def list_groups(self) -> list[Group]:
        async with self.session_factory() as session:
            return [group_from_row(row) for row in await group_crud.get_all(session)]

    async def update_group(self, group_id: int, patch: dict[str, Any]) -> bool:
        async with self.session_factory() as session, session.begin():
            return await group_crud.update_by_id(session, group_id, **patch)

    async def delete_group(self, group_id: int) -> bool:
        """
        Delete a group, detaching users whose legacy group_id points at it
        and removing its memberships in the same transaction.
        """
        async with self.session_factory() as session, session.begin():
            await user_crud.detach_group(session, group_id)
            await membership_crud.remove_for_group(session, group_id)
            return await group_crud.delete_by_id(session, group_id)

    # Tasks

    async def create_task(self, data: dict[str, Any]) -> EntityId:
        async with self.session_factory() as session, session.begin():
            row = await task_crud.create(session, **data)
            return EntityId.numeric(row.id)

    async def get_task(self, task_id: int) -> Task | None:
        async with self.session_factory() as session:
            row = await task_crud.get_by_id(session, task_id)
            return task_from_row(row) if row else None

    async def list_tasks(self, visibility: TaskVisibility | None = None) -> list[Task]:
        """
        List every task.

        The visibility predicate is not pushed into SQL (the reference lists
        are JSON columns); the Read Router filters the result.
        """
        async with self.session_factory() as session:
            return [task_from_row(row) for row in await task_crud.get_all(session)]

    async def update_task(self, task_id: int, patch: dict[str, Any]) -> bool:
        async with self.session_factory() as session, session.begin():
            return await task_crud.update_by_id(session, task_id, **patch)

    async def delete_task(self, task_id: int) -> bool:
        async with self.session_factory() as session, session.begin():
            return await task_crud.delete_by_id(session, task_id)

    # Memberships

    async def add_membership(self, user_id: int, group_id: int) -> bool:
        """
        Add a membership; an existing pair is left untouched.

        Returns:
            bool: True once the pair exists
        """
        async with self.session_factory() as session, session.begin():
            await membership_crud.add_many(session, [(user_id, group_id)])
            return True

    async def remove_membership(self, user_id: int, group_id: int) -> bool:
        async with self.session_factory() as session, session.begin():
            return await membership_crud.remove(session, user_id, group_id)

    async def list_group_members(self, group_id: int) -> list[GroupMember]:
        async with self.session_factory() as session:
            rows = await membership_crud.get_group_members(session, group_id)
            return [
                GroupMember(
                    id=user.id,
                    username=user.username,
                    name=user.name,
                    role=user_from_row(user).role,
                    joined_at=joined_at,
                )
                for user, joined_at in rows
            ]

    async def list_user_groups(self, user_id: int) -> list[Group]:
        async with self.session_factory() as session:
            rows = await membership_crud.get_user_groups(session, user_id)
            return [group_from_row(row) for row in rows]

    async def replace_user_memberships(self, user_id: int, group_ids: list[int]) -> int:
        """
        Replace a user's memberships atomically (delete and insert commit together).

        Returns:
            int: Number of memberships now held
        """
        async with self.session_factory() as session, session.begin():
            return await membership_crud.replace_for_user(session, user_id, group_ids)

    async def list_memberships(self) -> list[Membership]:
        """List every membership row, used by the document backfill."""
        async with self.session_factory() as session:
            rows = await membership_crud.get_all(session)
            return [
                Membership(user_id=row.user_id, group_id=row.group_id, joined_at=row.joined_at)
                for row in rows
            ]
