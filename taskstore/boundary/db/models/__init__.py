"""
Relational models package.

Exports:
  - GroupModel, UserModel, MembershipModel, TaskModel: entity tables
  - SchemaMigrationModel: migration ledger table
  - ENTITY_TABLES: entity tables in dependency order for schema creation

Dependencies: sqlalchemy, taskstore.boundary.db.base
System role: Relational model definitions for domain entities
"""

from taskstore.boundary.db.models.group_model import GroupModel
from taskstore.boundary.db.models.membership_model import MembershipModel
from taskstore.boundary.db.models.migration_model import SchemaMigrationModel
from taskstore.boundary.db.models.task_model import TaskModel
from taskstore.boundary.db.models.user_model import UserModel

ENTITY_TABLES = [
    GroupModel.__table__,
    UserModel.__table__,
    MembershipModel.__table__,
    TaskModel.__table__,
]

__all__ = [
    "GroupModel",
    "UserModel",
    "MembershipModel",
    "TaskModel",
    "SchemaMigrationModel",
    "ENTITY_TABLES",
]
