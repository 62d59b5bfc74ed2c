"""
Relational to document store backfill.

Seeds the document store from the relational store ahead of a dual-write
window. Every document carries its relational id as mirror and is upserted
by that mirror, so the backfill can be re-run at any time.

Dependencies: sqlalchemy, taskstore.boundary.db.CRUD, taskstore.application.adapters
System role: Document store seeding (migration path)
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taskstore.application.adapters.document_adapter import DocumentAdapter, normalize_role
from taskstore.boundary.db.CRUD.base_crud import BaseCRUD
from taskstore.boundary.db.CRUD.group_crud import group_crud
from taskstore.boundary.db.CRUD.membership_crud import membership_crud
from taskstore.boundary.db.CRUD.task_crud import task_crud
from taskstore.boundary.db.CRUD.user_crud import user_crud
from taskstore.boundary.db.models import GroupModel, MembershipModel, TaskModel, UserModel
from taskstore.boundary.docstore.schema import GROUPS, MEMBERSHIPS, TASKS, USERS
from taskstore.models.identifiers import EntityKind, coerce_numeric
from taskstore.models.membership import Membership

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000


@dataclass
class EntityCounts:
    """Per-entity backfill tally."""

    scanned: int = 0
    inserted: int = 0
    updated: int = 0
    failed: int = 0


def _numeric_ids(values: Any) -> list[int]:
    ids = (coerce_numeric(v) for v in values or [])
    return list(dict.fromkeys(i for i in ids if i is not None))


def group_document(row: GroupModel) -> dict[str, Any]:
    return {
        "name": row.name,
        "description": row.description,
        "leaders": _numeric_ids(row.leaders),
        "created_at": row.created_at,
    }


def user_document(row: UserModel) -> dict[str, Any]:
    return {
        "username": row.username,
        "name": row.name or row.username,
        "password": row.password,
        "role": normalize_role(row.role).value,
        "group_id": row.group_id,
        "created_at": row.created_at,
    }


def task_document(row: TaskModel) -> dict[str, Any]:
    return {
        "name": row.name,
        "description": row.description,
        "deadline": row.deadline,
        "priority": row.priority,
        "status": row.status,
        "creator_id": row.creator_id,
        "administrator_id": row.administrator_id,
        "belonging_users": _numeric_ids(row.belonging_users),
        "belonging_groups": _numeric_ids(row.belonging_groups),
        "completion_time": row.completion_time,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


class DocumentBackfill:
    """
    Copies groups, users, memberships and tasks into the document store.

    Entities are copied in dependency order and paged by id.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        documents: DocumentAdapter,
    ) -> None:
        """
        Initialize backfill.

        Args:
            session_factory: Relational session factory (source)
            documents: Document adapter (target)
        """
        self.session_factory = session_factory
        self.documents = documents

    async def _copy(
        self,
        label: str,
        crud: BaseCRUD,
        batch_size: int,
        dry_run: bool,
        write: Callable[[Any], Awaitable[bool]],
    ) -> EntityCounts:
        counts = EntityCounts()
        offset = 0
        while True:
            async with self.session_factory() as session:
                rows = await crud.get_all(session, limit=batch_size, offset=offset)
            if not rows:
                break
            offset += len(rows)
            counts.scanned += len(rows)
            if dry_run:
                continue
            for row in rows:
                try:
                    inserted = await write(row)
                except Exception as e:
                    counts.failed += 1
                    logger.warning(
                        "Backfill record failed",
                        extra={"entity": label, "row_id": row.id, "error": str(e)},
                    )
                    continue
                if inserted:
                    counts.inserted += 1
                else:
                    counts.updated += 1
            logger.info(
                "Backfill batch copied",
                extra={"entity": label, "batch": len(rows), "scanned": counts.scanned},
            )
        return counts

    async def run(self, batch_size: int = DEFAULT_BATCH_SIZE, dry_run: bool = False) -> dict[str, EntityCounts]:
        """
        Copy every relational record into the document store.

        Args:
            batch_size: Rows read per relational page
            dry_run: Scan and count only, write nothing

        Returns:
            dict[str, EntityCounts]: Tally per collection name
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        logger.info("Document backfill started", extra={"batch_size": batch_size, "dry_run": dry_run})
        report = {
            GROUPS: await self._copy(
                GROUPS, group_crud, batch_size, dry_run,
                lambda row: self.documents.seed(EntityKind.GROUP, row.id, group_document(row)),
            ),
            USERS: await self._copy(
                USERS, user_crud, batch_size, dry_run,
                lambda row: self.documents.seed(EntityKind.USER, row.id, user_document(row)),
            ),
            MEMBERSHIPS: await self._copy(
                MEMBERSHIPS, membership_crud, batch_size, dry_run,
                lambda row: self.documents.seed_membership(
                    Membership(user_id=row.user_id, group_id=row.group_id, joined_at=row.joined_at)
                ),
            ),
            TASKS: await self._copy(
                TASKS, task_crud, batch_size, dry_run,
                lambda row: self.documents.seed(EntityKind.TASK, row.id, task_document(row)),
            ),
        }
        logger.info(
            "Document backfill finished",
            extra={name: vars(counts) for name, counts in report.items()},
        )
        return report

    async def verify(self) -> dict[str, tuple[int, int]]:
        """
        Compare record counts between the stores.

        Returns:
            dict[str, tuple[int, int]]: (relational, document) count per collection
        """
        models = {GROUPS: GroupModel, USERS: UserModel, MEMBERSHIPS: MembershipModel, TASKS: TaskModel}
        counts: dict[str, tuple[int, int]] = {}
        async with self.session_factory() as session:
            for name, model in models.items():
                relational = (await session.execute(select(func.count()).select_from(model))).scalar_one()
                document = await self.documents.database[name].count_documents({})
                counts[name] = (relational, document)
        mismatched = [name for name, (a, b) in counts.items() if a != b]
        if mismatched:
            logger.warning("Backfill verification found count mismatches", extra={"collections": mismatched})
        else:
            logger.info("Backfill verification passed")
        return counts
