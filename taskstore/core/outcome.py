"""
Settle results for best-effort store calls.

An Outcome captures either the value or the exception of one store call, so
fan-out code can wait for every side to finish and decide afterwards which
failures are fatal. Nothing here raises.

Dependencies: None (pure domain layer)
System role: Explicit warning-vs-error channel for the reconciliation layer
"""

import enum
from dataclasses import dataclass
from typing import Awaitable, Generic, TypeVar

T = TypeVar("T")


class StoreName(str, enum.Enum):
    """Physical backing stores."""

    RELATIONAL = "relational"
    DOCUMENT = "document"


@dataclass
class Outcome(Generic[T]):
    """
    Settled result of a single store call.

    Attributes:
        store: Which store produced this outcome
        value: Returned value when the call succeeded
        error: Captured exception when the call failed
    """

    store: StoreName
    value: T | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        """Whether the call completed without raising."""
        return self.error is None


async def settle(store: StoreName, awaitable: Awaitable[T]) -> Outcome[T]:
    """
    Await a store call and capture its result or exception.

    Args:
        store: Store the call targets
        awaitable: Pending store call

    Returns:
        Outcome[T]: Settled result, never raises for ordinary exceptions
    """
    try:
        return Outcome(store=store, value=await awaitable)
    except Exception as e:
        return Outcome(store=store, error=e)
