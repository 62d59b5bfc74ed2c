"""
Exception hierarchy for the taskstore persistence layer.

Provides layered exception structure for reconciliation errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class TaskStoreException(Exception):
    """Base exception for all taskstore errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class StoreWriteError(TaskStoreException):
    """
    Raised when a logical write produced no usable result.

    In dual mode this means both stores rejected the write. The original
    store error is chained as __cause__; the message itself never says which
    store failed.
    """

    def __init__(self, operation: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize write error.

        Args:
            operation: Repository operation that failed (e.g. "create_task")
            details: Additional context
        """
        details = details or {}
        details["operation"] = operation
        self.operation = operation
        super().__init__(f"Write failed: {operation}", details)


class StoreReadError(TaskStoreException):
    """Raised when no configured read source could answer a read."""

    def __init__(self, operation: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize read error.

        Args:
            operation: Repository operation that failed (e.g. "list_tasks")
            details: Additional context
        """
        details = details or {}
        details["operation"] = operation
        self.operation = operation
        super().__init__(f"Read failed: {operation}", details)


class MigrationLockContentionError(TaskStoreException):
    """
    Raised when the migration advisory lock is not acquired in time.

    Another instance is most likely migrating. This is distinct from
    MigrationFailedError so operators can tell contention from a broken
    migration.
    """

    def __init__(self, lock_name: str, timeout: float) -> None:
        """
        Initialize lock contention error.

        Args:
            lock_name: Name of the advisory lock
            timeout: Seconds waited before giving up
        """
        self.lock_name = lock_name
        self.timeout = timeout
        super().__init__(
            f"Migration lock contention: '{lock_name}' not acquired within {timeout}s",
            {"lock_name": lock_name, "timeout": timeout},
        )


class MigrationFailedError(TaskStoreException):
    """Raised when a migration body fails. The version stays unrecorded."""

    def __init__(self, version: int, name: str) -> None:
        """
        Initialize migration failure.

        Args:
            version: Migration version number
            name: Migration name
        """
        self.version = version
        self.name = name
        super().__init__(
            f"Migration v{version} ({name}) failed",
            {"version": version, "name": name},
        )
