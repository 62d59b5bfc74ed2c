"""
CRUD operations for relational models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from taskstore.boundary.db.CRUD import user_crud, task_crud

    async with session_factory() as session, session.begin():
        user = await user_crud.get_by_username(session, "alice")
"""

from taskstore.boundary.db.CRUD.base_crud import BaseCRUD
from taskstore.boundary.db.CRUD.group_crud import GroupCRUD, group_crud
from taskstore.boundary.db.CRUD.membership_crud import MembershipCRUD, membership_crud
from taskstore.boundary.db.CRUD.migration_crud import SchemaMigrationCRUD, schema_migration_crud
from taskstore.boundary.db.CRUD.task_crud import TaskCRUD, task_crud
from taskstore.boundary.db.CRUD.user_crud import UserCRUD, user_crud

__all__ = [
    "BaseCRUD",
    "UserCRUD",
    "user_crud",
    "GroupCRUD",
    "group_crud",
    "MembershipCRUD",
    "membership_crud",
    "TaskCRUD",
    "task_crud",
    "SchemaMigrationCRUD",
    "schema_migration_crud",
]
