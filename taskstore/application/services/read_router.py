"""
Read router.

Chooses which store answers a read according to READ_SOURCE and falls back
to the other store when the chosen one fails. Task listings are filtered
through the caller's TaskVisibility after the store returns, whichever store
that was.

Dependencies: taskstore.application.adapters, taskstore.application.services.id_normalizer
System role: Read Router
"""

import logging
from typing import Any, Awaitable, Callable, TypeVar

from taskstore.application.adapters.document_adapter import DocumentAdapter
from taskstore.application.adapters.relational_adapter import RelationalAdapter
from taskstore.application.services.id_normalizer import IdNormalizer
from taskstore.configs.reconciliation import ReadSource
from taskstore.core.exceptions import StoreReadError
from taskstore.core.outcome import StoreName, settle
from taskstore.models.actor import Actor, TaskVisibility
from taskstore.models.group import Group
from taskstore.models.identifiers import EntityKind, extract_hex_id
from taskstore.models.membership import GroupMember
from taskstore.models.task import Task
from taskstore.models.user import User

logger = logging.getLogger(__name__)

T = TypeVar("T")

SOURCE_ORDER = {
    ReadSource.PRIMARY: (StoreName.RELATIONAL, StoreName.DOCUMENT),
    ReadSource.SECONDARY: (StoreName.DOCUMENT,),
    ReadSource.SECONDARY_PREFERRED: (StoreName.DOCUMENT, StoreName.RELATIONAL),
}


async def _missing() -> None:
    return None


class ReadRouter:
    """
    Routes reads to a store with fallback.

    Order per READ_SOURCE:
        primary: relational, then document on error
        secondary: document only
        secondary-preferred: document, then relational on error or on a
            single-record miss
    """

    def __init__(
        self,
        primary: RelationalAdapter,
        secondary: DocumentAdapter,
        normalizer: IdNormalizer,
        read_source: ReadSource = ReadSource.PRIMARY,
    ) -> None:
        """
        Initialize router.

        Args:
            primary: Relational store adapter
            secondary: Document store adapter
            normalizer: Id normalizer shared with the coordinator
            read_source: Which store answers reads first
        """
        self.primary = primary
        self.secondary = secondary
        self.normalizer = normalizer
        self.read_source = read_source

    async def _route(
        self,
        operation: str,
        calls: dict[StoreName, Callable[[], Awaitable[T]]],
        single: bool = False,
    ) -> T:
        """
        Try each configured source in order until one answers.

        Args:
            operation: Operation name for logs and errors
            calls: Factory per store producing the read
            single: Whether this is a single-record lookup (a None result
                counts as a miss in secondary-preferred mode)

        Returns:
            T: Result from the first source that answered

        Raises:
            StoreReadError: If every attempted source failed
        """
        order = SOURCE_ORDER[self.read_source]
        first_error: BaseException | None = None
        missed = False

        for position, store in enumerate(order):
            outcome = await settle(store, calls[store]())
            if not outcome.ok:
                first_error = first_error or outcome.error
                logger.warning(
                    "Read source failed",
                    extra={
                        "operation": operation,
                        "failed_store": store.value,
                        "fallback": position + 1 < len(order),
                        "error": str(outcome.error),
                    },
                )
                continue
            has_fallback = position + 1 < len(order)
            if (
                single
                and outcome.value is None
                and self.read_source is ReadSource.SECONDARY_PREFERRED
                and has_fallback
            ):
                missed = True
                continue
            return outcome.value

        if missed:
            return None
        raise StoreReadError(operation) from first_error

    # Users

    async def get_user(self, user_id: Any) -> User | None:
        numeric_id = await self.normalizer.normalize_one(user_id, EntityKind.USER)
        return await self._route(
            "get_user",
            {
                StoreName.RELATIONAL: lambda: self.primary.get_user(numeric_id) if numeric_id is not None else _missing(),
                StoreName.DOCUMENT: lambda: self.secondary.get_user(user_id),
            },
            single=True,
        )

    async def get_user_by_username(self, username: str) -> User | None:
        return await self._route(
            "get_user_by_username",
            {
                StoreName.RELATIONAL: lambda: self.primary.get_user_by_username(username),
                StoreName.DOCUMENT: lambda: self.secondary.get_user_by_username(username),
            },
            single=True,
        )

    async def list_users(self) -> list[User]:
        return await self._route(
            "list_users",
            {
                StoreName.RELATIONAL: self.primary.list_users,
                StoreName.DOCUMENT: self.secondary.list_users,
            },
        )

    # Groups

    async def get_group(self, group_id: Any) -> Group | None:
        numeric_id = await self.normalizer.normalize_one(group_id, EntityKind.GROUP)
        return await self._route(
            "get_group",
            {
                StoreName.RELATIONAL: lambda: self.primary.get_group(numeric_id) if numeric_id is not None else _missing(),
                StoreName.DOCUMENT: lambda: self.secondary.get_group(group_id),
            },
            single=True,
        )

    async def get_group_by_name(self, name: str) -> Group | None:
        return await self._route(
            "get_group_by_name",
            {
                StoreName.RELATIONAL: lambda: self.primary.get_group_by_name(name),
                StoreName.DOCUMENT: lambda: self.secondary.get_group_by_name(name),
            },
            single=True,
        )

    async def list_groups(self) -> list[Group]:
        return await self._route(
            "list_groups",
            {
                StoreName.RELATIONAL: self.primary.list_groups,
                StoreName.DOCUMENT: self.secondary.list_groups,
            },
        )

    # Tasks

    async def get_task(self, task_id: Any) -> Task | None:
        numeric_id = await self.normalizer.normalize_one(task_id, EntityKind.TASK)
        return await self._route(
            "get_task",
            {
                StoreName.RELATIONAL: lambda: self.primary.get_task(numeric_id) if numeric_id is not None else _missing(),
                StoreName.DOCUMENT: lambda: self.secondary.get_task(task_id),
            },
            single=True,
        )

    async def build_visibility(self, actor: Actor) -> TaskVisibility:
        """
        Resolve an actor into a TaskVisibility predicate.

        The actor's own group list is widened with the groups it holds a
        membership in. A failed membership lookup only narrows visibility.

        Args:
            actor: Authenticated caller

        Returns:
            TaskVisibility: Predicate with every id normalized
        """
        if actor.is_admin:
            return TaskVisibility(is_admin=True)

        user_id = await self.normalizer.resolve_user_id(actor.user_id)
        group_ids = set(await self.normalizer.normalize_groups(actor.group_ids))
        raw_id = extract_hex_id(actor.user_id)

        if user_id is not None:
            try:
                groups = await self.list_user_groups(user_id)
            except StoreReadError as e:
                logger.warning(
                    "Membership lookup for visibility failed",
                    extra={"user_id": user_id, "error": str(e)},
                )
            else:
                group_ids.update(g.id.value for g in groups if g.id.is_numeric)

        return TaskVisibility(
            user_ids={user_id} if user_id is not None else set(),
            raw_user_ids={raw_id} if raw_id is not None else set(),
            group_ids=group_ids,
        )

    async def list_tasks(self, actor: Actor | None = None) -> list[Task]:
        """
        List tasks visible to an actor.

        Args:
            actor: Caller; None lists every task (internal use)

        Returns:
            list[Task]: Visible tasks from whichever store answered
        """
        visibility = await self.build_visibility(actor) if actor is not None else None
        tasks = await self._route(
            "list_tasks",
            {
                StoreName.RELATIONAL: lambda: self.primary.list_tasks(visibility),
                StoreName.DOCUMENT: lambda: self.secondary.list_tasks(visibility),
            },
        )
        if visibility is None:
            return tasks
        return [task for task in tasks if visibility.permits(task)]

    # Memberships

    async def list_group_members(self, group_id: Any) -> list[GroupMember]:
        numeric_id = await self.normalizer.normalize_one(group_id, EntityKind.GROUP)
        if numeric_id is None:
            return []
        return await self._route(
            "list_group_members",
            {
                StoreName.RELATIONAL: lambda: self.primary.list_group_members(numeric_id),
                StoreName.DOCUMENT: lambda: self.secondary.list_group_members(numeric_id),
            },
        )

    async def list_user_groups(self, user_id: Any) -> list[Group]:
        numeric_id = await self.normalizer.resolve_user_id(user_id)
        if numeric_id is None:
            return []
        return await self._route(
            "list_user_groups",
            {
                StoreName.RELATIONAL: lambda: self.primary.list_user_groups(numeric_id),
                StoreName.DOCUMENT: lambda: self.secondary.list_user_groups(numeric_id),
            },
        )
