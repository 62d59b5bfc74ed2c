"""
Document store collection layout and index bootstrap.

Collections mirror the relational tables. Every entity document may carry a
numeric mirror_id once it has been dual-written or backfilled.

Dependencies: pymongo
System role: Document store schema definition
"""

import logging
from typing import Any

from pymongo import ASCENDING

logger = logging.getLogger(__name__)

USERS = "users"
GROUPS = "groups"
MEMBERSHIPS = "user_group_memberships"
TASKS = "tasks"

MIRROR_FIELD = "mirror_id"

INDEXES: dict[str, list[tuple[list[tuple[str, int]], dict[str, Any]]]] = {
    USERS: [
        ([("username", ASCENDING)], {"unique": True}),
        ([(MIRROR_FIELD, ASCENDING)], {"unique": True, "sparse": True}),
        ([("group_id", ASCENDING)], {}),
    ],
    GROUPS: [
        ([("name", ASCENDING)], {"unique": True}),
        ([(MIRROR_FIELD, ASCENDING)], {"unique": True, "sparse": True}),
    ],
    MEMBERSHIPS: [
        ([("user_id", ASCENDING), ("group_id", ASCENDING)], {"unique": True}),
        ([("group_id", ASCENDING)], {}),
    ],
    TASKS: [
        ([(MIRROR_FIELD, ASCENDING)], {"unique": True, "sparse": True}),
        ([("creator_id", ASCENDING)], {}),
        ([("belonging_users", ASCENDING)], {}),
        ([("belonging_groups", ASCENDING)], {}),
    ],
}


async def ensure_indexes(database: Any) -> int:
    """
    Create every index in INDEXES. Existing identical indexes are no-ops.

    Args:
        database: Async database handle

    Returns:
        int: Number of index specifications applied
    """
    applied = 0
    for collection_name, specs in INDEXES.items():
        collection = database[collection_name]
        for keys, options in specs:
            await collection.create_index(keys, **options)
            applied += 1
    logger.info("Document store indexes ensured", extra={"index_count": applied})
    return applied
