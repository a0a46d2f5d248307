"""
Database connection management.

Provides the async SQLAlchemy engine, session factory, and FastAPI
dependency for database session injection.

Dependencies: sqlalchemy, ragdesk.configs
System role: Database connection lifecycle management
"""

from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from ragdesk.configs import get_settings


@lru_cache
def get_async_engine() -> AsyncEngine:
    """
    Create the async SQLAlchemy engine, once per process.

    PostgreSQL gets a sized pool with pre-ping; SQLite URLs (local runs)
    use the dialect's default pool.

    Returns:
        AsyncEngine: Configured async SQLAlchemy engine

    Usage:
        engine = get_async_engine()
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
    """
    db_config = get_settings().database

    if db_config.is_sqlite:
        return create_async_engine(db_config.async_database_url, echo=db_config.echo_sql)

    return create_async_engine(
        db_config.async_database_url,
        echo=db_config.echo_sql,
        pool_size=db_config.pool_size,
        max_overflow=db_config.max_overflow,
        pool_timeout=db_config.pool_timeout,
        pool_pre_ping=True,
    )


def get_async_session_factory() -> async_sessionmaker:
    """
    Create async session factory for database operations.

    autoflush=False and expire_on_commit=False keep transaction control
    explicit and loaded rows usable after commit.

    Usage:
        SessionFactory = get_async_session_factory()
        async with SessionFactory() as session:
            session.add(obj)
            await session.commit()
    """
    return async_sessionmaker(
        bind=get_async_engine(),
        autoflush=False,
        expire_on_commit=False,
    )


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database session injection.

    The session is closed after the route completes, even on exceptions.
    Services commit explicitly.

    Yields:
        AsyncSession: Async SQLAlchemy session scoped to the request

    Usage:
        @router.get("/projects/{project_id}/documents")
        async def list_documents(project_id: UUID, db: AsyncSession = Depends(get_async_db)):
            return await document_crud.list_by_project(db, project_id)
    """
    SessionFactory = get_async_session_factory()
    async with SessionFactory() as session:
        yield session
