"""
Relational boundary layer: ORM models, CRUD operations, connection management
and advisory locks.

Exports:
  - Base, IntegerIdMixin, CreatedAtMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(): Async connection management
  - GroupModel, UserModel, MembershipModel, TaskModel, SchemaMigrationModel
  - advisory_lock_for(): Dialect-appropriate named lock

Dependencies: sqlalchemy, taskstore.configs
System role: Relational store adapter foundation
"""

from taskstore.boundary.db.advisory_lock import (
    LocalAdvisoryLock,
    PostgresAdvisoryLock,
    advisory_lock_for,
    lock_key,
)
from taskstore.boundary.db.base import Base, CreatedAtMixin, IntegerIdMixin, TimestampMixin
from taskstore.boundary.db.connection import get_async_engine, get_async_session_factory
from taskstore.boundary.db.models import (
    ENTITY_TABLES,
    GroupModel,
    MembershipModel,
    SchemaMigrationModel,
    TaskModel,
    UserModel,
)

__all__ = [
    "Base",
    "IntegerIdMixin",
    "CreatedAtMixin",
    "TimestampMixin",
    "get_async_engine",
    "get_async_session_factory",
    "GroupModel",
    "UserModel",
    "MembershipModel",
    "TaskModel",
    "SchemaMigrationModel",
    "ENTITY_TABLES",
    "LocalAdvisoryLock",
    "PostgresAdvisoryLock",
    "advisory_lock_for",
    "lock_key",
]
