"""
Document store adapter.

Exposes the store-scoped CRUD primitives over pymongo async collections and
maps documents into canonical records. Documents are addressed by their
numeric mirror first and by their native object id as a fallback, so
records seeded before a mirror existed stay reachable.

Dependencies: pymongo (bson), taskstore.boundary.docstore, taskstore.models
System role: Secondary (document) Store Adapter
"""

import logging
from typing import Any, Iterable

from bson import ObjectId

from taskstore.boundary.db.base import utcnow
from taskstore.boundary.docstore.schema import GROUPS, MEMBERSHIPS, MIRROR_FIELD, TASKS, USERS
from taskstore.core.outcome import StoreName
from taskstore.models.actor import TaskVisibility
from taskstore.models.group import Group
from taskstore.models.identifiers import EntityId, EntityKind, coerce_numeric, extract_hex_id
from taskstore.models.membership import GroupMember, Membership
from taskstore.models.task import PLANNED_STATUS, Task
from taskstore.models.user import User, UserRole

logger = logging.getLogger(__name__)

COLLECTIONS = {
    EntityKind.USER: USERS,
    EntityKind.GROUP: GROUPS,
    EntityKind.TASK: TASKS,
}


def _numeric_list(values: Any) -> list[int]:
    if not isinstance(values, (list, tuple)):
        return []
    ids = (coerce_numeric(v) for v in values)
    return list(dict.fromkeys(i for i in ids if i is not None))


def _reference(value: Any) -> int | str | None:
    """Numeric reference when possible, the raw string for legacy documents."""
    if value is None:
        return None
    numeric = coerce_numeric(value)
    return numeric if numeric is not None else str(value)


def normalize_role(value: Any) -> UserRole:
    """Map stored role values (including legacy 1/true flags) to a UserRole."""
    text = str(value).strip().lower() if value is not None else ""
    if text in {"admin", "1", "true"}:
        return UserRole.ADMIN
    return UserRole.USER


def user_from_document(doc: dict[str, Any]) -> User:
    return User(
        id=EntityId.prefer(doc.get(MIRROR_FIELD), doc["_id"]),
        username=doc["username"],
        name=doc.get("name") or doc["username"],
        password=doc.get("password", ""),
        role=normalize_role(doc.get("role")),
        group_id=coerce_numeric(doc.get("group_id")),
        created_at=doc.get("created_at"),
    )


def group_from_document(doc: dict[str, Any]) -> Group:
    return Group(
        id=EntityId.prefer(doc.get(MIRROR_FIELD), doc["_id"]),
        name=doc["name"],
        description=doc.get("description"),
        leaders=_numeric_list(doc.get("leaders")),
        created_at=doc.get("created_at"),
    )


def task_from_document(doc: dict[str, Any]) -> Task:
    return Task(
        id=EntityId.prefer(doc.get(MIRROR_FIELD), doc["_id"]),
        name=doc["name"],
        description=doc.get("description"),
        deadline=doc.get("deadline"),
        priority=coerce_numeric(doc.get("priority")) or 0,
        status=int(doc.get("status", PLANNED_STATUS)),
        creator_id=_reference(doc.get("creator_id")),
        administrator_id=_reference(doc.get("administrator_id")),
        belonging_users=_numeric_list(doc.get("belonging_users")),
        belonging_groups=_numeric_list(doc.get("belonging_groups")),
        completion_time=doc.get("completion_time"),
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
    )


def id_filters(token: Any) -> list[dict[str, Any]]:
    """
    Candidate filters for a record id, in resolution order.

    Numeric tokens match the mirror field first; hex-like tokens then match
    the native _id. A 24-digit string is both and yields both filters.

    Args:
        token: Numeric id, digit string, 24-hex string or ObjectId envelope

    Returns:
        list[dict]: Filters to try in order (empty when the token is unusable)
    """
    filters: list[dict[str, Any]] = []
    numeric = coerce_numeric(token)
    if numeric is not None:
        filters.append({MIRROR_FIELD: numeric})
    hex_id = extract_hex_id(token)
    if hex_id is not None:
        filters.append({"_id": ObjectId(hex_id)})
    return filters


class DocumentAdapter:
    """
    Store Adapter for the document store.

    Reference fields (group_id, leaders, belonging_*, membership pairs) are
    always stored as numeric ids.
    """

    store = StoreName.DOCUMENT

    def __init__(self, database: Any) -> None:
        """
        Initialize adapter.

        Args:
            database: Async database handle (pymongo AsyncDatabase or compatible)
        """
        self.database = database

    def collection(self, kind: EntityKind) -> Any:
        return self.database[COLLECTIONS[kind]]

    @property
    def memberships(self) -> Any:
        return self.database[MEMBERSHIPS]

    # Id resolution

    async def _find_document(self, kind: EntityKind, token: Any) -> dict[str, Any] | None:
        collection = self.collection(kind)
        for flt in id_filters(token):
            doc = await collection.find_one(flt)
            if doc is not None:
                return doc
        return None

    async def _update_document(self, kind: EntityKind, token: Any, fields: dict[str, Any]) -> bool:
        if not fields:
            return await self._find_document(kind, token) is not None
        collection = self.collection(kind)
        for flt in id_filters(token):
            result = await collection.update_one(flt, {"$set": fields})
            if result.matched_count > 0:
                return True
        return False

    async def _delete_document(self, kind: EntityKind, token: Any) -> bool:
        collection = self.collection(kind)
        for flt in id_filters(token):
            result = await collection.delete_one(flt)
            if result.deleted_count > 0:
                return True
        return False

    async def _insert(self, kind: EntityKind, fields: dict[str, Any]) -> EntityId:
        document = {k: v for k, v in fields.items() if v is not None}
        document.setdefault("created_at", utcnow())
        result = await self.collection(kind).insert_one(document)
        return EntityId.native(result.inserted_id)

    async def set_mirror_id(self, kind: EntityKind, native_id: Any, numeric_id: int) -> bool:
        """
        Record the relational id inside a document (mirror-sync).

        Args:
            kind: Entity kind
            native_id: Document object id (hex string or ObjectId)
            numeric_id: Relational id to mirror

        Returns:
            bool: True if the document was found
        """
        hex_id = extract_hex_id(native_id)
        if hex_id is None:
            return False
        result = await self.collection(kind).update_one(
            {"_id": ObjectId(hex_id)},
            {"$set": {MIRROR_FIELD: int(numeric_id)}},
        )
        return result.matched_count > 0

    async def find_mirror_ids(self, kind: EntityKind, hex_ids: Iterable[str]) -> dict[str, int]:
        """
        Look up the numeric mirrors of documents by native id.

        Args:
            kind: Entity kind
            hex_ids: 24-hex document ids

        Returns:
            dict[str, int]: Lower-case hex id to mirror id, for documents that have one
        """
        object_ids = [ObjectId(h) for h in dict.fromkeys(hex_ids)]
        if not object_ids:
            return {}
        cursor = self.collection(kind).find({"_id": {"$in": object_ids}}, {MIRROR_FIELD: 1})
        mirrors: dict[str, int] = {}
        for doc in await cursor.to_list(length=None):
            mirror = coerce_numeric(doc.get(MIRROR_FIELD))
            if mirror is not None:
                mirrors[str(doc["_id"]).lower()] = mirror
        return mirrors

    # Users

    async def create_user(self, data: dict[str, Any]) -> EntityId:
        return await self._insert(EntityKind.USER, data)

    async def get_user(self, user_id: Any) -> User | None:
        doc = await self._find_document(EntityKind.USER, user_id)
        return user_from_document(doc) if doc else None

    async def get_user_by_username(self, username: str) -> User | None:
        doc = await self.collection(EntityKind.USER).find_one({"username": username})
        return user_from_document(doc) if doc else None

    async def list_users(self) -> list[User]:
        docs = await self.collection(EntityKind.USER).find({}).to_list(length=None)
        return sorted((user_from_document(d) for d in docs), key=_sort_key)

    async def update_user(self, user_id: Any, patch: dict[str, Any]) -> bool:
        return await self._update_document(EntityKind.USER, user_id, patch)

    async def delete_user(self, user_id: Any) -> bool:
        """Delete a user document and, when it has a mirror, its memberships."""
        doc = await self._find_document(EntityKind.USER, user_id)
        if doc is None:
            return False
        await self.collection(EntityKind.USER).delete_one({"_id": doc["_id"]})
        mirror = coerce_numeric(doc.get(MIRROR_FIELD))
        if mirror is not None:
            await self.memberships.delete_many({"user_id": mirror})
        return True

    # Groups

    async def create_group(self, data: dict[str, Any]) -> EntityId:
        return await self._insert(EntityKind.GROUP, data)

    async def get_group(self, group_id: Any) -> Group | None:
        doc = await self._find_document(EntityKind.GROUP, group_id)
        return group_from_document(doc) if doc else None

    async def get_group_by_name(self, name: str) -> Group | None:
        doc = await self.collection(EntityKind.GROUP).find_one({"name": name})
        return group_from_document(doc) if doc else None

    async def list_groups(self) -> list[Group]:
        docs = await self.collection(EntityKind.GROUP).find({}).to_list(length=None)
        return sorted((group_from_document(d) for d in docs), key=_sort_key)

    async def update_group(self, group_id: Any, patch: dict[str, Any]) -> bool:
        return await self._update_document(EntityKind.GROUP, group_id, patch)

    async def delete_group(self, group_id: Any) -> bool:
        """Delete a group document, detaching its users and memberships."""
        doc = await self._find_document(EntityKind.GROUP, group_id)
        if doc is None:
            return False
        await self.collection(EntityKind.GROUP).delete_one({"_id": doc["_id"]})
        mirror = coerce_numeric(doc.get(MIRROR_FIELD))
        if mirror is not None:
            detached = await self.collection(EntityKind.USER).update_many(
                {"group_id": mirror}, {"$set": {"group_id": None}}
            )
            removed = await self.memberships.delete_many({"group_id": mirror})
            logger.info(
                "Group cascade applied",
                extra={
                    "group_id": mirror,
                    "users_detached": detached.modified_count,
                    "memberships_removed": removed.deleted_count,
                },
            )
        return True

    # Tasks

    async def create_task(self, data: dict[str, Any]) -> EntityId:
        fields = dict(data)
        fields.setdefault("updated_at", utcnow())
        return await self._insert(EntityKind.TASK, fields)

    async def get_task(self, task_id: Any) -> Task | None:
        doc = await self._find_document(EntityKind.TASK, task_id)
        return task_from_document(doc) if doc else None

    async def list_tasks(self, visibility: TaskVisibility | None = None) -> list[Task]:
        """
        List tasks, pushing the visibility predicate down as a query.

        Args:
            visibility: Resolved access predicate (None or admin lists everything)

        Returns:
            list[Task]: Matching tasks ordered by id
        """
        query: dict[str, Any] = {}
        if visibility is not None and not visibility.is_admin:
            owners = [*visibility.user_ids, *visibility.raw_user_ids]
            query = {
                "$or": [
                    {"creator_id": {"$in": owners}},
                    {"administrator_id": {"$in": owners}},
                    {"belonging_users": {"$in": sorted(visibility.user_ids)}},
                    {"belonging_groups": {"$in": sorted(visibility.group_ids)}},
                ]
            }
        docs = await self.collection(EntityKind.TASK).find(query).to_list(length=None)
        return sorted((task_from_document(d) for d in docs), key=_sort_key)

    async def update_task(self, task_id: Any, patch: dict[str, Any]) -> bool:
        fields = dict(patch)
        if fields:
            fields["updated_at"] = utcnow()
        return await self._update_document(EntityKind.TASK, task_id, fields)

    async def delete_task(self, task_id: Any) -> bool:
        return await self._delete_document(EntityKind.TASK, task_id)

    # Memberships

    async def add_membership(self, user_id: int, group_id: int) -> bool:
        """Upsert on the (user_id, group_id) pair to emulate the unique constraint."""
        await self.memberships.update_one(
            {"user_id": int(user_id), "group_id": int(group_id)},
            {"$setOnInsert": {"joined_at": utcnow()}},
            upsert=True,
        )
        return True

    async def remove_membership(self, user_id: int, group_id: int) -> bool:
        result = await self.memberships.delete_one(
            {"user_id": int(user_id), "group_id": int(group_id)}
        )
        return result.deleted_count > 0

    async def list_group_members(self, group_id: int) -> list[GroupMember]:
        memberships = await self.memberships.find({"group_id": int(group_id)}).to_list(length=None)
        joined = {m["user_id"]: m.get("joined_at") for m in memberships}
        if not joined:
            return []
        users = await self.collection(EntityKind.USER).find(
            {MIRROR_FIELD: {"$in": list(joined)}}
        ).to_list(length=None)
        members = [
            GroupMember(
                id=int(doc[MIRROR_FIELD]),
                username=doc["username"],
                name=doc.get("name") or doc["username"],
                role=normalize_role(doc.get("role")),
                joined_at=joined.get(doc[MIRROR_FIELD]),
            )
            for doc in users
        ]
        members.sort(key=lambda m: m.id)
        # most recent first, matching the relational ordering
        members.sort(key=lambda m: m.joined_at.timestamp() if m.joined_at else 0.0, reverse=True)
        return members

    async def list_user_groups(self, user_id: int) -> list[Group]:
        memberships = await self.memberships.find({"user_id": int(user_id)}).to_list(length=None)
        group_ids = [m["group_id"] for m in memberships]
        if not group_ids:
            return []
        docs = await self.collection(EntityKind.GROUP).find(
            {MIRROR_FIELD: {"$in": group_ids}}
        ).to_list(length=None)
        return sorted((group_from_document(d) for d in docs), key=_sort_key)

    async def replace_user_memberships(self, user_id: int, group_ids: list[int]) -> int:
        """
        Replace a user's memberships. Not atomic: the delete and the upserts
        are separate operations.
        """
        await self.memberships.delete_many({"user_id": int(user_id)})
        for group_id in group_ids:
            await self.add_membership(user_id, group_id)
        return len(group_ids)

    # Backfill

    async def seed(self, kind: EntityKind, mirror_id: int, fields: dict[str, Any]) -> bool:
        """
        Upsert a document keyed by its mirror id.

        Returns:
            bool: True if a new document was inserted
        """
        result = await self.collection(kind).update_one(
            {MIRROR_FIELD: int(mirror_id)},
            {"$set": fields},
            upsert=True,
        )
        return result.upserted_id is not None

    async def seed_membership(self, membership: Membership) -> bool:
        result = await self.memberships.update_one(
            {"user_id": membership.user_id, "group_id": membership.group_id},
            {"$setOnInsert": {"joined_at": membership.joined_at or utcnow()}},
            upsert=True,
        )
        return result.upserted_id is not None


def _sort_key(record: Any) -> tuple[int, int | str]:
    """Numeric ids first in numeric order, then native ids."""
    return (0, record.id.value) if record.id.is_numeric else (1, record.id.value)
