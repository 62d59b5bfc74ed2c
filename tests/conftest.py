"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite engine and session factory, in-memory document
database, both store adapters, a wired normalizer, and mocked adapters.
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite, mongomock-motor
System role: Test infrastructure and fixture management
"""

from unittest.mock import AsyncMock

import pytest
from mongomock_motor import AsyncMongoMockClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from taskstore.application.adapters import DocumentAdapter, RelationalAdapter
from taskstore.application.services import IdNormalizer
from taskstore.boundary.db.base import Base


@pytest.fixture
async def sqlite_engine():
    """
    Create in-memory SQLite async engine with every table created.

    Yields:
        AsyncEngine: Engine sharing one connection (StaticPool)
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return async_sessionmaker(sqlite_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def document_db():
    """Fresh in-memory document database per test."""
    return AsyncMongoMockClient()["taskstore_test"]


@pytest.fixture
def relational_adapter(session_factory) -> RelationalAdapter:
    return RelationalAdapter(session_factory)


@pytest.fixture
def document_adapter(document_db) -> DocumentAdapter:
    return DocumentAdapter(document_db)


@pytest.fixture
def normalizer(document_adapter, relational_adapter) -> IdNormalizer:
    return IdNormalizer(document_adapter, relational_adapter)


@pytest.fixture
def mock_relational() -> AsyncMock:
    """
    Create mock RelationalAdapter.

    Returns:
        AsyncMock: Spec'd against RelationalAdapter, every method async
    """
    return AsyncMock(spec=RelationalAdapter)


@pytest.fixture
def mock_documents() -> AsyncMock:
    """
    Create mock DocumentAdapter with an empty mirror lookup.

    Returns:
        AsyncMock: Spec'd against DocumentAdapter
    """
    documents = AsyncMock(spec=DocumentAdapter)
    documents.find_mirror_ids.return_value = {}
    documents.get_user.return_value = None
    return documents
