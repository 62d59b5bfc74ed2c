"""
Dual-write coordinator.

Executes logical writes against the relational store, the document store, or
both, according to the configured write mode. Reference fields are normalized
once before fan-out; in dual mode both store calls run concurrently and are
joined with all-settle semantics, so one side failing never cancels the other.

Dependencies: taskstore.application.adapters, taskstore.application.services.id_normalizer
System role: Dual-Write Coordinator
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from taskstore.application.adapters.document_adapter import DocumentAdapter
from taskstore.application.adapters.relational_adapter import RelationalAdapter
from taskstore.application.services.id_normalizer import IdNormalizer
from taskstore.configs.reconciliation import WriteMode
from taskstore.core.exceptions import StoreWriteError
from taskstore.core.outcome import Outcome, StoreName, settle
from taskstore.models.group import GroupCreate, GroupUpdate
from taskstore.models.identifiers import EntityId, EntityKind, extract_hex_id
from taskstore.models.task import TaskCreate, TaskUpdate
from taskstore.models.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

StoreCall = Callable[[], Awaitable[Any]]


async def _unmatched() -> bool:
    """Stand-in for a store call whose target id does not exist in that store."""
    return False


class DualWriteCoordinator:
    """
    Coordinates create/update/delete across both stores.

    Results:
        - creates return the relational EntityId when the relational write
          succeeded, otherwise the document store's native EntityId
        - update/delete return True if any store matched the record
        - membership writes return the normalized ids they applied
    """

    def __init__(
        self,
        primary: RelationalAdapter,
        secondary: DocumentAdapter,
        normalizer: IdNormalizer,
        write_mode: WriteMode = WriteMode.PRIMARY_ONLY,
    ) -> None:
        """
        Initialize coordinator.

        Args:
            primary: Relational store adapter
            secondary: Document store adapter
            normalizer: Id normalizer shared with the read router
            write_mode: Which stores receive writes
        """
        self.primary = primary
        self.secondary = secondary
        self.normalizer = normalizer
        self.write_mode = write_mode

    # Fan-out

    async def _execute(
        self,
        operation: str,
        primary_call: StoreCall,
        secondary_call: StoreCall,
    ) -> dict[StoreName, Outcome]:
        """
        Run a write against the configured stores and settle every side.

        Args:
            operation: Operation name for logs and errors
            primary_call: Factory for the relational call
            secondary_call: Factory for the document call

        Returns:
            dict[StoreName, Outcome]: Settled outcome per store that ran

        Raises:
            StoreWriteError: If no store succeeded; chained to the primary's
                error, or the secondary's when the primary did not run
        """
        pending = []
        if self.write_mode in (WriteMode.PRIMARY_ONLY, WriteMode.DUAL):
            pending.append(settle(StoreName.RELATIONAL, primary_call()))
        if self.write_mode in (WriteMode.SECONDARY_ONLY, WriteMode.DUAL):
            pending.append(settle(StoreName.DOCUMENT, secondary_call()))

        outcomes: list[Outcome] = await asyncio.gather(*pending)

        if not any(outcome.ok for outcome in outcomes):
            logger.error(
                "Write failed on every configured store",
                extra={"operation": operation, "write_mode": self.write_mode.value},
            )
            raise StoreWriteError(operation) from outcomes[0].error

        for outcome in outcomes:
            if not outcome.ok:
                logger.warning(
                    "Partial write failure, continuing with the surviving store",
                    extra={
                        "operation": operation,
                        "failed_store": outcome.store.value,
                        "error": str(outcome.error),
                    },
                )
        return {outcome.store: outcome for outcome in outcomes}

    async def _create(self, kind: EntityKind, operation: str, primary_call: StoreCall, secondary_call: StoreCall) -> EntityId:
        results = await self._execute(operation, primary_call, secondary_call)
        relational = results.get(StoreName.RELATIONAL)
        document = results.get(StoreName.DOCUMENT)

        if relational is not None and relational.ok:
            if document is not None and document.ok:
                await self._mirror_sync(kind, document.value, relational.value)
            return relational.value
        return document.value

    async def _mirror_sync(self, kind: EntityKind, native_id: EntityId, numeric_id: EntityId) -> None:
        """Record the relational id inside the freshly created document."""
        try:
            matched = await self.secondary.set_mirror_id(kind, native_id.value, int(numeric_id.value))
        except Exception as e:
            logger.warning(
                "Mirror sync failed",
                extra={"kind": kind.value, "native_id": str(native_id), "numeric_id": str(numeric_id), "error": str(e)},
            )
            return
        if not matched:
            logger.warning(
                "Mirror sync matched no document",
                extra={"kind": kind.value, "native_id": str(native_id), "numeric_id": str(numeric_id)},
            )

    async def _modify(self, operation: str, primary_call: StoreCall, secondary_call: StoreCall) -> bool:
        results = await self._execute(operation, primary_call, secondary_call)
        return any(bool(outcome.value) for outcome in results.values() if outcome.ok)

    # Payload normalization

    async def _user_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        if "role" in fields and fields["role"] is not None:
            fields["role"] = getattr(fields["role"], "value", fields["role"])
        if "group_id" in fields:
            fields["group_id"] = await self.normalizer.normalize_one(fields["group_id"], EntityKind.GROUP)
        return fields

    async def _group_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        if "leaders" in fields:
            fields["leaders"] = await self.normalizer.normalize_users(fields["leaders"])
        return fields

    async def _task_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        if "belonging_users" in fields:
            fields["belonging_users"] = await self.normalizer.normalize_users(fields["belonging_users"])
        if "belonging_groups" in fields:
            fields["belonging_groups"] = await self.normalizer.normalize_groups(fields["belonging_groups"])
        if "administrator_id" in fields:
            fields["administrator_id"] = await self.normalizer.resolve_user_id(fields["administrator_id"])
        return fields

    # Users

    async def create_user(self, data: UserCreate) -> EntityId:
        """
        Create a user in the configured stores.

        Args:
            data: User input; group_id may be any accepted id token

        Returns:
            EntityId: Numeric id when the relational insert succeeded, native otherwise
        """
        fields = await self._user_fields(data.model_dump())
        return await self._create(
            EntityKind.USER,
            "create_user",
            lambda: self.primary.create_user(fields),
            lambda: self.secondary.create_user(fields),
        )

    async def update_user(self, user_id: Any, patch: UserUpdate) -> bool:
        fields = await self._user_fields(patch.model_dump(exclude_unset=True))
        numeric_id = await self.normalizer.resolve_user_id(user_id)
        return await self._modify(
            "update_user",
            lambda: self.primary.update_user(numeric_id, fields) if numeric_id is not None else _unmatched(),
            lambda: self.secondary.update_user(user_id, fields),
        )

    async def delete_user(self, user_id: Any) -> bool:
        numeric_id = await self.normalizer.resolve_user_id(user_id)
        return await self._modify(
            "delete_user",
            lambda: self.primary.delete_user(numeric_id) if numeric_id is not None else _unmatched(),
            lambda: self.secondary.delete_user(user_id),
        )

    # Groups

    async def create_group(self, data: GroupCreate) -> EntityId:
        fields = await self._group_fields(data.model_dump())
        return await self._create(
            EntityKind.GROUP,
            "create_group",
            lambda: self.primary.create_group(fields),
            lambda: self.secondary.create_group(fields),
        )

    async def update_group(self, group_id: Any, patch: GroupUpdate) -> bool:
        fields = await self._group_fields(patch.model_dump(exclude_unset=True))
        numeric_id = await self.normalizer.normalize_one(group_id, EntityKind.GROUP)
        return await self._modify(
            "update_group",
            lambda: self.primary.update_group(numeric_id, fields) if numeric_id is not None else _unmatched(),
            lambda: self.secondary.update_group(group_id, fields),
        )

    async def delete_group(self, group_id: Any) -> bool:
        """Delete a group; both stores detach its users and drop its memberships."""
        numeric_id = await self.normalizer.normalize_one(group_id, EntityKind.GROUP)
        return await self._modify(
            "delete_group",
            lambda: self.primary.delete_group(numeric_id) if numeric_id is not None else _unmatched(),
            lambda: self.secondary.delete_group(group_id),
        )

    # Tasks

    async def create_task(self, data: TaskCreate, creator_id: Any) -> EntityId:
        """
        Create a task owned by creator_id.

        Reference lists are normalized to numeric ids before either store
        sees them. A creator that only exists as an unmirrored document keeps
        its hex id on the document side and is left empty relationally.

        Args:
            data: Task input
            creator_id: Id token of the creating user

        Returns:
            EntityId: Numeric id when the relational insert succeeded, native otherwise
        """
        fields = await self._task_fields(data.model_dump())
        creator = await self.normalizer.resolve_user_id(creator_id)
        relational_fields = {**fields, "creator_id": creator}
        document_fields = {**fields, "creator_id": creator if creator is not None else extract_hex_id(creator_id)}
        return await self._create(
            EntityKind.TASK,
            "create_task",
            lambda: self.primary.create_task(relational_fields),
            lambda: self.secondary.create_task(document_fields),
        )

    async def update_task(self, task_id: Any, patch: TaskUpdate) -> bool:
        fields = await self._task_fields(patch.model_dump(exclude_unset=True))
        numeric_id = await self.normalizer.normalize_one(task_id, EntityKind.TASK)
        return await self._modify(
            "update_task",
            lambda: self.primary.update_task(numeric_id, fields) if numeric_id is not None else _unmatched(),
            lambda: self.secondary.update_task(task_id, fields),
        )

    async def delete_task(self, task_id: Any) -> bool:
        numeric_id = await self.normalizer.normalize_one(task_id, EntityKind.TASK)
        return await self._modify(
            "delete_task",
            lambda: self.primary.delete_task(numeric_id) if numeric_id is not None else _unmatched(),
            lambda: self.secondary.delete_task(task_id),
        )

    # Memberships

    async def _membership_pair(self, operation: str, user_id: Any, group_id: Any) -> tuple[int, int] | None:
        user = await self.normalizer.resolve_user_id(user_id)
        group = await self.normalizer.normalize_one(group_id, EntityKind.GROUP)
        if user is None or group is None:
            logger.warning(
                "Membership ids could not be resolved, skipping",
                extra={"operation": operation, "user_id": str(user_id), "group_id": str(group_id)},
            )
            return None
        return user, group

    async def add_membership(self, user_id: Any, group_id: Any) -> bool:
        """
        Add a user to a group in the configured stores.

        Returns:
            bool: False when either id could not be resolved, True otherwise
        """
        pair = await self._membership_pair("add_membership", user_id, group_id)
        if pair is None:
            return False
        return await self._modify(
            "add_membership",
            lambda: self.primary.add_membership(*pair),
            lambda: self.secondary.add_membership(*pair),
        )

    async def remove_membership(self, user_id: Any, group_id: Any) -> bool:
        pair = await self._membership_pair("remove_membership", user_id, group_id)
        if pair is None:
            return False
        return await self._modify(
            "remove_membership",
            lambda: self.primary.remove_membership(*pair),
            lambda: self.secondary.remove_membership(*pair),
        )

    async def replace_user_memberships(self, user_id: Any, group_ids: list[Any]) -> list[int]:
        """
        Replace every membership of a user.

        Args:
            user_id: User id token
            group_ids: Group id tokens; unresolvable ones are dropped

        Returns:
            list[int]: Group ids the user now belongs to (empty when the user
                could not be resolved)
        """
        user = await self.normalizer.resolve_user_id(user_id)
        if user is None:
            logger.warning(
                "Membership replacement skipped, user not resolvable",
                extra={"user_id": str(user_id)},
            )
            return []
        groups = await self.normalizer.normalize_groups(group_ids)
        await self._execute(
            "replace_user_memberships",
            lambda: self.primary.replace_user_memberships(user, groups),
            lambda: self.secondary.replace_user_memberships(user, groups),
        )
        logger.info(
            "User memberships replaced",
            extra={"user_id": user, "group_count": len(groups)},
        )
        return groups
