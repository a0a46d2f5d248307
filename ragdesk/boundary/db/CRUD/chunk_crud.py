"""
Chunk CRUD operations.

Dependencies: sqlalchemy, ragdesk.boundary.db.models.chunk_model
System role: Chunk persistence operations
"""

import hashlib
from typing import Iterable, Sequence
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.boundary.db.CRUD.base_crud import BaseCRUD
from ragdesk.boundary.db.models.chunk_model import ChunkModel
from ragdesk.models.chunk import ChunkCreate


def chunk_id_for(document_id: UUID, index: int) -> str:
    """Deterministic chunk id: sha256 of document id and ordinal, 32 hex chars."""
    return hashlib.sha256(f"{document_id}:{index}".encode()).hexdigest()[:32]


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD operations for ChunkModel."""

    def __init__(self) -> None:
        super().__init__(ChunkModel)

    async def create_many(
        self,
        session: AsyncSession,
        document_id: UUID,
        chunks: Iterable[ChunkCreate],
    ) -> list[ChunkModel]:
        """
        Insert a batch of chunks for one document.

        Raises:
            IntegrityError: A chunk with the same ordinal already exists
        """
        instances = [
            ChunkModel(
                id=chunk_id_for(document_id, chunk.index),
                document_id=document_id,
                type=chunk.type,
                content=chunk.content,
                page=chunk.page,
                index=chunk.index,
                char_length=chunk.char_length,
            )
            for chunk in chunks
        ]
        session.add_all(instances)
        await session.flush()
        return instances

    async def list_by_document(self, session: AsyncSession, document_id: UUID) -> Sequence[ChunkModel]:
        """All chunks of a document ordered by ordinal."""
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .order_by(ChunkModel.index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_document(self, session: AsyncSession, document_id: UUID) -> int:
        stmt = select(func.count(ChunkModel.id)).where(ChunkModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.scalar_one()

    async def delete_by_document(self, session: AsyncSession, document_id: UUID) -> int:
        """
        Delete every chunk of a document.

        Returns:
            Number of rows deleted
        """
        stmt = delete(ChunkModel).where(ChunkModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.rowcount


chunk_crud = ChunkCRUD()
