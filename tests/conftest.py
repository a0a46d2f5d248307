"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory async database, project id
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid

import pytest


@pytest.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    from ragdesk.boundary.db.create_tables import create_all_tables, drop_all_tables

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    await create_all_tables(engine)

    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    await drop_all_tables(engine)

    await engine.dispose()


@pytest.fixture
def project_id() -> uuid.UUID:
    return uuid.uuid4()
