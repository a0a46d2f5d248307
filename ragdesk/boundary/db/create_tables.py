"""
Database table creation script.

Creates all tables defined in ORM models using SQLAlchemy metadata.

Dependencies: sqlalchemy, ragdesk.configs
System role: Database schema initialization

Usage:
    python -m ragdesk.boundary.db.create_tables
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from ragdesk.boundary.db.base import Base
from ragdesk.boundary.db.connection import get_async_engine

# Import all models to register them with Base.metadata
from ragdesk.boundary.db.models import ChunkModel, DocumentModel, ProjectSettingsModel  # noqa: F401

logger = logging.getLogger(__name__)


async def create_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Create all database tables from registered ORM models.

    Idempotent: existing tables remain unchanged.

    Raises:
        SQLAlchemyError: If the connection or table creation fails
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("All tables created", extra={"tables": sorted(Base.metadata.tables)})


async def drop_all_tables(engine: AsyncEngine | None = None) -> None:
    """
    Drop all database tables and their data.

    WARNING: Irreversible data loss. Only use in development environments.
    """
    engine = engine or get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("All tables dropped")


if __name__ == "__main__":
    from ragdesk.configs import get_settings
    from ragdesk.observability import configure_logging

    configure_logging(get_settings().effective_log_level)
    asyncio.run(create_all_tables())
