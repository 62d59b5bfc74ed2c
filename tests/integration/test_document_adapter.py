"""
Test suite for DocumentAdapter against in-memory mongomock collections.

Tests mirror-first id resolution with native fallback, mirror lookups,
membership upserts, cascades and visibility pushdown.

System role: Verification of the document Store Adapter
"""

import pytest
from bson import ObjectId

from taskstore.application.adapters.document_adapter import DocumentAdapter, normalize_role
from taskstore.boundary.docstore.schema import MIRROR_FIELD
from taskstore.models.actor import TaskVisibility
from taskstore.models.identifiers import EntityId, EntityKind
from taskstore.models.membership import Membership
from taskstore.models.user import UserRole

HEX_USER = "507f191e810c19729de860ea"


def user_fields(username: str, **overrides) -> dict:
    return {"username": username, "name": username.title(), "password": "hash", "role": "user", **overrides}


class TestIdResolution:
    """Test suite for mirror-first lookups."""

    @pytest.mark.asyncio
    async def test_create_should_return_native_id_until_mirrored(self, document_adapter: DocumentAdapter) -> None:
        # Act
        native = await document_adapter.create_user(user_fields("alice"))

        # Assert
        assert not native.is_numeric
        user = await document_adapter.get_user(native.value)
        assert user.id == native

    @pytest.mark.asyncio
    async def test_set_mirror_id_should_expose_numeric_id(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        native = await document_adapter.create_user(user_fields("alice"))

        # Act
        matched = await document_adapter.set_mirror_id(EntityKind.USER, native.value, 12)

        # Assert
        assert matched is True
        by_mirror = await document_adapter.get_user(12)
        by_native = await document_adapter.get_user(native.value)
        assert by_mirror.id == EntityId.numeric(12)
        assert by_native.id == EntityId.numeric(12)

    @pytest.mark.asyncio
    async def test_update_should_fall_back_to_native_id(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        native = await document_adapter.create_group({"name": "ops"})

        # Act
        updated = await document_adapter.update_group(f'ObjectId("{native.value}")', {"description": "on call"})

        # Assert
        assert updated is True
        assert (await document_adapter.get_group(native.value)).description == "on call"

    @pytest.mark.asyncio
    async def test_update_should_report_no_match(self, document_adapter: DocumentAdapter) -> None:
        assert await document_adapter.update_task(77, {"status": 1}) is False
        assert await document_adapter.update_task("garbage", {"status": 1}) is False

    @pytest.mark.asyncio
    async def test_find_mirror_ids_should_skip_documents_without_mirror(
        self, document_adapter: DocumentAdapter, document_db
    ) -> None:
        # Arrange
        mirrored = ObjectId(HEX_USER)
        await document_db["users"].insert_one({"_id": mirrored, "username": "alice", MIRROR_FIELD: 42})
        unmirrored = await document_adapter.create_user(user_fields("bob"))

        # Act
        mirrors = await document_adapter.find_mirror_ids(EntityKind.USER, [HEX_USER, unmirrored.value])

        # Assert
        assert mirrors == {HEX_USER: 42}


class TestUsersAndGroups:
    """Test suite for user and group documents."""

    @pytest.mark.asyncio
    async def test_get_user_should_normalize_legacy_role(self, document_adapter: DocumentAdapter, document_db) -> None:
        # Arrange
        await document_db["users"].insert_one({"username": "root", "password": "x", "role": "1", MIRROR_FIELD: 1})

        # Act
        user = await document_adapter.get_user_by_username("root")

        # Assert
        assert user.role is UserRole.ADMIN
        assert user.name == "root"

    @pytest.mark.asyncio
    async def test_list_users_should_put_numeric_ids_first(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        native = await document_adapter.create_user(user_fields("zed"))
        mirrored = await document_adapter.create_user(user_fields("amy"))
        await document_adapter.set_mirror_id(EntityKind.USER, mirrored.value, 3)

        # Act
        users = await document_adapter.list_users()

        # Assert
        assert [u.username for u in users] == ["amy", "zed"]
        assert users[1].id == native

    @pytest.mark.asyncio
    async def test_delete_group_should_cascade(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        group = await document_adapter.create_group({"name": "ops"})
        await document_adapter.set_mirror_id(EntityKind.GROUP, group.value, 5)
        user = await document_adapter.create_user(user_fields("alice", group_id=5))
        await document_adapter.set_mirror_id(EntityKind.USER, user.value, 7)
        await document_adapter.add_membership(7, 5)

        # Act
        deleted = await document_adapter.delete_group(5)

        # Assert
        assert deleted is True
        assert await document_adapter.get_group(5) is None
        assert (await document_adapter.get_user(7)).group_id is None
        assert await document_adapter.list_user_groups(7) == []

    @pytest.mark.asyncio
    async def test_delete_user_should_remove_memberships(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        user = await document_adapter.create_user(user_fields("alice"))
        await document_adapter.set_mirror_id(EntityKind.USER, user.value, 7)
        await document_adapter.add_membership(7, 5)

        # Act
        deleted = await document_adapter.delete_user(7)

        # Assert
        assert deleted is True
        assert await document_adapter.memberships.count_documents({"user_id": 7}) == 0


class TestMemberships:
    """Test suite for membership documents."""

    @pytest.mark.asyncio
    async def test_add_membership_should_upsert_on_pair(self, document_adapter: DocumentAdapter) -> None:
        # Act
        await document_adapter.add_membership(7, 3)
        await document_adapter.add_membership(7, 3)

        # Assert
        assert await document_adapter.memberships.count_documents({"user_id": 7, "group_id": 3}) == 1

    @pytest.mark.asyncio
    async def test_replace_user_memberships_should_leave_exact_set(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        await document_adapter.add_membership(7, 1)
        await document_adapter.add_membership(7, 2)
        await document_adapter.add_membership(8, 1)

        # Act
        await document_adapter.replace_user_memberships(7, [2, 3])

        # Assert
        docs = await document_adapter.memberships.find({"user_id": 7}).to_list(length=None)
        assert {d["group_id"] for d in docs} == {2, 3}
        assert await document_adapter.memberships.count_documents({"user_id": 8}) == 1

    @pytest.mark.asyncio
    async def test_list_group_members_should_join_mirrored_users(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        user = await document_adapter.create_user(user_fields("alice", role="admin"))
        await document_adapter.set_mirror_id(EntityKind.USER, user.value, 7)
        await document_adapter.add_membership(7, 3)

        # Act
        members = await document_adapter.list_group_members(3)

        # Assert
        assert [(m.id, m.username, m.role) for m in members] == [(7, "alice", UserRole.ADMIN)]

    @pytest.mark.asyncio
    async def test_seed_membership_should_report_insert_once(self, document_adapter: DocumentAdapter) -> None:
        membership = Membership(user_id=1, group_id=2)

        assert await document_adapter.seed_membership(membership) is True
        assert await document_adapter.seed_membership(membership) is False


class TestTasks:
    """Test suite for task documents."""

    @pytest.mark.asyncio
    async def test_list_tasks_should_push_down_visibility(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        await document_adapter.create_task({"name": "mine", "creator_id": 7})
        await document_adapter.create_task({"name": "shared", "creator_id": 1, "belonging_users": [7]})
        await document_adapter.create_task({"name": "team", "creator_id": 1, "belonging_groups": [4]})
        await document_adapter.create_task({"name": "hidden", "creator_id": 1, "belonging_users": [2]})
        visibility = TaskVisibility(user_ids={7}, group_ids={4})

        # Act
        tasks = await document_adapter.list_tasks(visibility)

        # Assert
        assert sorted(t.name for t in tasks) == ["mine", "shared", "team"]

    @pytest.mark.asyncio
    async def test_update_task_should_refresh_updated_at(self, document_adapter: DocumentAdapter) -> None:
        # Arrange
        task = await document_adapter.create_task({"name": "t"})
        before = (await document_adapter.get_task(task.value)).updated_at

        # Act
        await document_adapter.update_task(task.value, {"status": 2})

        # Assert
        after = await document_adapter.get_task(task.value)
        assert after.status == 2
        assert after.updated_at >= before


class TestNormalizeRole:
    """Test suite for normalize_role()."""

    @pytest.mark.parametrize("value", ["admin", "ADMIN", " Admin ", "1", 1, "true", True])
    def test_should_map_admin_flags(self, value) -> None:
        assert normalize_role(value) is UserRole.ADMIN

    @pytest.mark.parametrize("value", ["user", None, "0", 0, "false", "root"])
    def test_should_default_to_user(self, value) -> None:
        assert normalize_role(value) is UserRole.USER
