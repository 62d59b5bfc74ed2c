"""
Store context.

Builds every store handle once at startup and wires them into the adapters,
normalizer, coordinator, router and repositories. The context is passed
explicitly to whoever needs it; there are no module-level connection
singletons.

Dependencies: taskstore.configs, taskstore.boundary, taskstore.application
System role: Composition root
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from taskstore.application.adapters import DocumentAdapter, RelationalAdapter
from taskstore.application.services import (
    DocumentBackfill,
    DualWriteCoordinator,
    GroupRepository,
    IdNormalizer,
    MembershipRepository,
    MigrationRunner,
    ReadRouter,
    TaskRepository,
    UserRepository,
)
from taskstore.boundary.db.connection import check_connection, get_async_engine, get_async_session_factory
from taskstore.boundary.docstore.connection import get_document_client, get_document_database, ping_document_store
from taskstore.boundary.docstore.schema import ensure_indexes
from taskstore.configs import ReadSource, Settings, WriteMode, get_settings

logger = logging.getLogger(__name__)


@dataclass
class StoreContext:
    """
    Every store handle and service, constructed once.

    Attributes:
        settings: Settings the context was built from
        engine: Relational engine
        session_factory: Relational session factory
        document_client: Document store client (closed by close())
        document_database: Document store database handle
        relational: Relational adapter
        documents: Document adapter
        normalizer: Shared id normalizer
        writer: Dual-write coordinator
        reader: Read router
    """

    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    document_client: Any
    document_database: Any
    relational: RelationalAdapter
    documents: DocumentAdapter
    normalizer: IdNormalizer
    writer: DualWriteCoordinator
    reader: ReadRouter
    users: UserRepository = field(init=False)
    groups: GroupRepository = field(init=False)
    tasks: TaskRepository = field(init=False)
    memberships: MembershipRepository = field(init=False)

    def __post_init__(self) -> None:
        self.users = UserRepository(self.writer, self.reader)
        self.groups = GroupRepository(self.writer, self.reader)
        self.tasks = TaskRepository(self.writer, self.reader)
        self.memberships = MembershipRepository(self.writer, self.reader)

    @property
    def uses_document_store(self) -> bool:
        """Whether reads or writes can reach the document store."""
        reconciliation = self.settings.reconciliation
        return (
            reconciliation.write_mode is not WriteMode.PRIMARY_ONLY
            or reconciliation.read_source is not ReadSource.PRIMARY
        )

    def migration_runner(self) -> MigrationRunner:
        reconciliation = self.settings.reconciliation
        return MigrationRunner(
            self.engine,
            lock_name=reconciliation.migration_lock_name,
            lock_timeout=reconciliation.migration_lock_timeout,
            poll_interval=reconciliation.migration_lock_poll_interval,
        )

    def backfill(self) -> DocumentBackfill:
        return DocumentBackfill(self.session_factory, self.documents)

    async def startup(self) -> list[int]:
        """
        Check connectivity, run migrations and, when the document store is in
        use, ensure its indexes.

        The relational store must be reachable within its retry budget. An
        unreachable document store only skips index bootstrap; its writes and
        reads then degrade through the coordinator and router.

        Returns:
            list[int]: Migration versions applied during this startup

        Raises:
            DBAPIError | OSError: The relational store stayed unreachable
            MigrationLockContentionError: Another instance holds the migration lock
            MigrationFailedError: A migration body failed
        """
        database = self.settings.database
        await check_connection(self.engine, database.connect_retries, database.connect_retry_delay)
        applied = await self.migration_runner().run()
        if self.uses_document_store:
            document_store = self.settings.document_store
            try:
                await ping_document_store(
                    self.document_database, document_store.connect_retries, document_store.connect_retry_delay
                )
                await ensure_indexes(self.document_database)
            except Exception as e:
                logger.warning("Document store index bootstrap failed", extra={"error": str(e)})
        logger.info(
            "Store context started",
            extra={
                "read_source": self.settings.reconciliation.read_source.value,
                "write_mode": self.settings.reconciliation.write_mode.value,
                "migrations_applied": applied,
            },
        )
        return applied

    async def close(self) -> None:
        """Dispose the engine and close the document client."""
        await self.engine.dispose()
        if self.document_client is not None:
            await self.document_client.close()


def build_store_context(
    settings: Settings,
    engine: AsyncEngine,
    document_database: Any,
    document_client: Any = None,
) -> StoreContext:
    """
    Wire a StoreContext around existing store handles.

    Args:
        settings: Application settings
        engine: Relational engine
        document_database: Document store database handle
        document_client: Owning client, closed by StoreContext.close()

    Returns:
        StoreContext: Fully wired context
    """
    session_factory = get_async_session_factory(engine)
    relational = RelationalAdapter(session_factory)
    documents = DocumentAdapter(document_database)
    normalizer = IdNormalizer(documents, relational)
    reconciliation = settings.reconciliation
    return StoreContext(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        document_client=document_client,
        document_database=document_database,
        relational=relational,
        documents=documents,
        normalizer=normalizer,
        writer=DualWriteCoordinator(relational, documents, normalizer, reconciliation.write_mode),
        reader=ReadRouter(relational, documents, normalizer, reconciliation.read_source),
    )


def create_store_context(settings: Settings | None = None) -> StoreContext:
    """
    Build the store context from settings.

    Args:
        settings: Settings to use (defaults to get_settings())

    Returns:
        StoreContext: Context ready for startup()
    """
    settings = settings or get_settings()
    engine = get_async_engine(settings.database)
    client = get_document_client(settings.document_store)
    database = get_document_database(client, settings.document_store)
    return build_store_context(settings, engine, database, client)
