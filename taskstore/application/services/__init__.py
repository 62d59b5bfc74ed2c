"""Reconciliation services."""

from .backfill import DocumentBackfill
from .dual_write import DualWriteCoordinator
from .id_normalizer import IdNormalizer
from .migration_runner import MigrationRunner, MigrationState
from .migrations import MIGRATIONS, Migration
from .read_router import ReadRouter
from .repository import GroupRepository, MembershipRepository, TaskRepository, UserRepository

__all__ = [
    "DocumentBackfill",
    "DualWriteCoordinator",
    "IdNormalizer",
    "MigrationRunner",
    "MigrationState",
    "MIGRATIONS",
    "Migration",
    "ReadRouter",
    "UserRepository",
    "GroupRepository",
    "TaskRepository",
    "MembershipRepository",
]
