"""
Document CRUD operations.

Extends BaseCRUD with project-scoped lookups, the storage-key lookup used
by upload confirmation and the row lock that serializes stage events.

Dependencies: sqlalchemy, ragdesk.boundary.db.models.document_model
System role: Document persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.boundary.db.CRUD.base_crud import BaseCRUD
from ragdesk.boundary.db.models.document_model import DocumentModel


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """CRUD operations for DocumentModel."""

    def __init__(self) -> None:
        super().__init__(DocumentModel)

    async def get_in_project(
        self,
        session: AsyncSession,
        project_id: UUID,
        id: UUID,
    ) -> DocumentModel | None:
        """Retrieve a document only if it belongs to the project."""
        stmt = select(DocumentModel).where(
            DocumentModel.id == id,
            DocumentModel.project_id == project_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_for_update(
        self,
        session: AsyncSession,
        project_id: UUID,
        id: UUID,
    ) -> DocumentModel | None:
        """
        Retrieve a document and lock its row until the transaction ends.

        Concurrent stage events for one document are applied one at a time.
        SQLite ignores the lock.
        """
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.id == id, DocumentModel.project_id == project_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_storage_key(
        self,
        session: AsyncSession,
        project_id: UUID,
        storage_key: str,
    ) -> DocumentModel | None:
        stmt = select(DocumentModel).where(
            DocumentModel.project_id == project_id,
            DocumentModel.storage_key == storage_key,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_project(
        self,
        session: AsyncSession,
        project_id: UUID,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[DocumentModel]:
        """
        Retrieve a project's documents, newest first.

        Args:
            session: Async database session
            project_id: Project UUID
            limit: Maximum number of documents to return
            offset: Number of documents to skip
        """
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.project_id == project_id)
            .order_by(DocumentModel.created_at.desc())
            .offset(offset)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_project(self, session: AsyncSession, project_id: UUID) -> int:
        stmt = select(func.count(DocumentModel.id)).where(DocumentModel.project_id == project_id)
        result = await session.execute(stmt)
        return result.scalar_one()


document_crud = DocumentCRUD()
