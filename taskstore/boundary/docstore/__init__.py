"""
Document store boundary layer: client factory, collection names and indexes.

Dependencies: pymongo, taskstore.configs
System role: Document store adapter foundation
"""

from taskstore.boundary.docstore.schema import (
    GROUPS,
    MEMBERSHIPS,
    MIRROR_FIELD,
    TASKS,
    USERS,
    ensure_indexes,
)
from taskstore.boundary.docstore.connection import get_document_client, get_document_database

__all__ = [
    "USERS",
    "GROUPS",
    "MEMBERSHIPS",
    "TASKS",
    "MIRROR_FIELD",
    "ensure_indexes",
    "get_document_client",
    "get_document_database",
]
