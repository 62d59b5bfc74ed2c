"""
Test suite for DualWriteCoordinator.

Uses mocked store adapters to verify write-mode routing, all-settle fan-out,
partial-failure tolerance, aggregate failure chaining and mirror-sync rules.

System role: Verification of the Dual-Write Coordinator
"""

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from taskstore.application.services.dual_write import DualWriteCoordinator
from taskstore.application.services.id_normalizer import IdNormalizer
from taskstore.configs.reconciliation import WriteMode
from taskstore.core.exceptions import StoreWriteError
from taskstore.models.group import GroupCreate, GroupUpdate
from taskstore.models.identifiers import EntityId, EntityKind
from taskstore.models.task import TaskCreate, TaskUpdate
from taskstore.models.user import UserCreate, UserUpdate

NATIVE_HEX = "65a1b2c3d4e5f60718293a4b"
HEX_USER = "507f191e810c19729de860ea"


def build_coordinator(
    relational: AsyncMock,
    documents: AsyncMock,
    mode: WriteMode = WriteMode.DUAL,
) -> DualWriteCoordinator:
    return DualWriteCoordinator(relational, documents, IdNormalizer(documents, relational), mode)


@pytest.fixture
def user_input() -> UserCreate:
    return UserCreate(username="alice", name="Alice", password="hash")


class TestCreateDual:
    """Test suite for creates in dual mode."""

    @pytest.mark.asyncio
    async def test_create_should_mirror_sync_after_both_succeed(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate
    ) -> None:
        # Arrange
        mock_relational.create_user.return_value = EntityId.numeric(5)
        mock_documents.create_user.return_value = EntityId.native(NATIVE_HEX)
        mock_documents.set_mirror_id.return_value = True
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        result = await coordinator.create_user(user_input)

        # Assert
        assert result == EntityId.numeric(5)
        mock_documents.set_mirror_id.assert_awaited_once_with(EntityKind.USER, NATIVE_HEX, 5)

    @pytest.mark.asyncio
    async def test_create_should_return_document_id_when_relational_fails(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate, caplog
    ) -> None:
        # Arrange
        mock_relational.create_user.side_effect = ConnectionError("relational down")
        mock_documents.create_user.return_value = EntityId.native(NATIVE_HEX)
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        with caplog.at_level(logging.WARNING):
            result = await coordinator.create_user(user_input)

        # Assert
        assert result == EntityId.native(NATIVE_HEX)
        mock_documents.set_mirror_id.assert_not_awaited()
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any(getattr(r, "failed_store", None) == "relational" for r in warnings)

    @pytest.mark.asyncio
    async def test_create_should_return_relational_id_when_document_fails(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate
    ) -> None:
        # Arrange
        mock_relational.create_user.return_value = EntityId.numeric(5)
        mock_documents.create_user.side_effect = TimeoutError("document timeout")
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        result = await coordinator.create_user(user_input)

        # Assert
        assert result == EntityId.numeric(5)
        mock_documents.set_mirror_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_should_raise_primary_error_when_both_fail(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate
    ) -> None:
        # Arrange
        primary_error = ConnectionError("relational down")
        mock_relational.create_user.side_effect = primary_error
        mock_documents.create_user.side_effect = TimeoutError("document timeout")
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        with pytest.raises(StoreWriteError) as exc_info:
            await coordinator.create_user(user_input)

        # Assert
        assert exc_info.value.__cause__ is primary_error
        assert exc_info.value.operation == "create_user"
        assert "relational" not in str(exc_info.value)
        assert "document" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_create_should_survive_mirror_sync_failure(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate, caplog
    ) -> None:
        # Arrange
        mock_relational.create_user.return_value = EntityId.numeric(5)
        mock_documents.create_user.return_value = EntityId.native(NATIVE_HEX)
        mock_documents.set_mirror_id.side_effect = RuntimeError("write refused")
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        with caplog.at_level(logging.WARNING):
            result = await coordinator.create_user(user_input)

        # Assert
        assert result == EntityId.numeric(5)
        assert any("Mirror sync failed" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_create_should_start_both_stores_before_either_finishes(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate
    ) -> None:
        # Arrange
        document_started = asyncio.Event()

        async def relational_create(fields):
            await asyncio.wait_for(document_started.wait(), timeout=1)
            return EntityId.numeric(5)

        async def document_create(fields):
            document_started.set()
            return EntityId.native(NATIVE_HEX)

        mock_relational.create_user.side_effect = relational_create
        mock_documents.create_user.side_effect = document_create
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        result = await coordinator.create_user(user_input)

        # Assert
        assert result == EntityId.numeric(5)

    @pytest.mark.asyncio
    async def test_create_should_wait_for_slow_side_after_other_fails(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate
    ) -> None:
        # Arrange
        finished = []

        async def document_create(fields):
            await asyncio.sleep(0.01)
            finished.append("document")
            return EntityId.native(NATIVE_HEX)

        mock_relational.create_user.side_effect = ConnectionError("relational down")
        mock_documents.create_user.side_effect = document_create
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        result = await coordinator.create_user(user_input)

        # Assert
        assert finished == ["document"]
        assert result.value == NATIVE_HEX


class TestWriteModes:
    """Test suite for single-store write modes."""

    @pytest.mark.asyncio
    async def test_primary_only_should_not_touch_document_store(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate
    ) -> None:
        # Arrange
        mock_relational.create_user.return_value = EntityId.numeric(1)
        coordinator = build_coordinator(mock_relational, mock_documents, WriteMode.PRIMARY_ONLY)

        # Act
        result = await coordinator.create_user(user_input)

        # Assert
        assert result == EntityId.numeric(1)
        mock_documents.create_user.assert_not_awaited()
        mock_documents.set_mirror_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_secondary_only_should_not_touch_relational_store(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate
    ) -> None:
        # Arrange
        mock_documents.create_user.return_value = EntityId.native(NATIVE_HEX)
        coordinator = build_coordinator(mock_relational, mock_documents, WriteMode.SECONDARY_ONLY)

        # Act
        result = await coordinator.create_user(user_input)

        # Assert
        assert result == EntityId.native(NATIVE_HEX)
        mock_relational.create_user.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_secondary_only_failure_should_chain_document_error(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock, user_input: UserCreate
    ) -> None:
        # Arrange
        error = TimeoutError("document timeout")
        mock_documents.create_user.side_effect = error
        coordinator = build_coordinator(mock_relational, mock_documents, WriteMode.SECONDARY_ONLY)

        # Act
        with pytest.raises(StoreWriteError) as exc_info:
            await coordinator.create_user(user_input)

        # Assert
        assert exc_info.value.__cause__ is error


class TestPayloadNormalization:
    """Test suite for reference normalization before fan-out."""

    @pytest.mark.asyncio
    async def test_create_task_should_send_numeric_references_to_both_stores(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_documents.find_mirror_ids.return_value = {HEX_USER: 42}
        mock_relational.create_task.return_value = EntityId.numeric(10)
        mock_documents.create_task.return_value = EntityId.native(NATIVE_HEX)
        coordinator = build_coordinator(mock_relational, mock_documents)
        data = TaskCreate(
            name="Ship release",
            priority=3,
            belonging_users=[HEX_USER, "42", 42],
            belonging_groups=["2", "bogus"],
        )

        # Act
        await coordinator.create_task(data, creator_id=1)

        # Assert
        relational_fields = mock_relational.create_task.await_args.args[0]
        document_fields = mock_documents.create_task.await_args.args[0]
        for fields in (relational_fields, document_fields):
            assert fields["belonging_users"] == [42]
            assert fields["belonging_groups"] == [2]
            assert fields["creator_id"] == 1
            assert fields["priority"] == 3

    @pytest.mark.asyncio
    async def test_create_task_should_keep_unmirrored_creator_on_document_side_only(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_relational.create_task.return_value = EntityId.numeric(10)
        mock_documents.create_task.return_value = EntityId.native(NATIVE_HEX)
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        await coordinator.create_task(TaskCreate(name="Draft"), creator_id=HEX_USER)

        # Assert
        assert mock_relational.create_task.await_args.args[0]["creator_id"] is None
        assert mock_documents.create_task.await_args.args[0]["creator_id"] == HEX_USER

    @pytest.mark.asyncio
    async def test_create_group_should_normalize_leaders(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_relational.create_group.return_value = EntityId.numeric(3)
        coordinator = build_coordinator(mock_relational, mock_documents, WriteMode.PRIMARY_ONLY)

        # Act
        await coordinator.create_group(GroupCreate(name="ops", leaders=["1", 1, "x", 2]))

        # Assert
        assert mock_relational.create_group.await_args.args[0]["leaders"] == [1, 2]

    @pytest.mark.asyncio
    async def test_update_user_should_write_only_provided_fields(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_relational.update_user.return_value = True
        mock_documents.update_user.return_value = True
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        result = await coordinator.update_user("4", UserUpdate(name="Renamed"))

        # Assert
        assert result is True
        mock_relational.update_user.assert_awaited_once_with(4, {"name": "Renamed"})
        mock_documents.update_user.assert_awaited_once_with("4", {"name": "Renamed"})

    @pytest.mark.asyncio
    async def test_update_task_should_send_empty_list_for_null_references(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_relational.update_task.return_value = True
        mock_documents.update_task.return_value = True
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        await coordinator.update_task(4, TaskUpdate(belonging_users=None, belonging_groups=None))

        # Assert
        expected = {"belonging_users": [], "belonging_groups": []}
        mock_relational.update_task.assert_awaited_once_with(4, expected)
        mock_documents.update_task.assert_awaited_once_with(4, expected)

    @pytest.mark.asyncio
    async def test_update_group_should_send_empty_list_for_null_leaders(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_relational.update_group.return_value = True
        mock_documents.update_group.return_value = True
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        await coordinator.update_group(3, GroupUpdate(leaders=None))

        # Assert
        mock_relational.update_group.assert_awaited_once_with(3, {"leaders": []})
        mock_documents.update_group.assert_awaited_once_with(3, {"leaders": []})


class TestUpdateDelete:
    """Test suite for update/delete id resolution."""

    @pytest.mark.asyncio
    async def test_update_should_skip_relational_for_unmirrored_document(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_documents.update_task.return_value = True
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        result = await coordinator.update_task(NATIVE_HEX, TaskUpdate(status=1))

        # Assert
        assert result is True
        mock_relational.update_task.assert_not_awaited()
        mock_documents.update_task.assert_awaited_once_with(NATIVE_HEX, {"status": 1})

    @pytest.mark.asyncio
    async def test_delete_should_report_false_when_nothing_matched(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_relational.delete_task.return_value = False
        mock_documents.delete_task.return_value = False
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act / Assert
        assert await coordinator.delete_task(99) is False

    @pytest.mark.asyncio
    async def test_delete_should_succeed_when_one_side_fails(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        mock_relational.delete_group.return_value = True
        mock_documents.delete_group.side_effect = ConnectionError("document down")
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act / Assert
        assert await coordinator.delete_group(3) is True


class TestMemberships:
    """Test suite for membership writes."""

    @pytest.mark.asyncio
    async def test_add_membership_should_skip_unresolvable_group(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        result = await coordinator.add_membership(7, "not-an-id")

        # Assert
        assert result is False
        mock_relational.add_membership.assert_not_awaited()
        mock_documents.add_membership.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replace_user_memberships_should_fan_out_normalized_groups(
        self, mock_relational: AsyncMock, mock_documents: AsyncMock
    ) -> None:
        # Arrange
        hex_group = "507f1f77bcf86cd799439011"
        mock_documents.find_mirror_ids.return_value = {hex_group: 9}
        mock_relational.replace_user_memberships.return_value = 2
        mock_documents.replace_user_memberships.return_value = 2
        coordinator = build_coordinator(mock_relational, mock_documents)

        # Act
        result = await coordinator.replace_user_memberships(7, [3, hex_group])

        # Assert
        assert result == [3, 9]
        mock_relational.replace_user_memberships.assert_awaited_once_with(7, [3, 9])
        mock_documents.replace_user_memberships.assert_awaited_once_with(7, [3, 9])
