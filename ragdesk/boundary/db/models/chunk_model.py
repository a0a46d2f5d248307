"""
Chunk ORM model.

Stores the typed content units produced by the processing worker for one
document. Rows are written during the chunk-producing stages and removed
only together with their document.

Dependencies: sqlalchemy, ragdesk.boundary.db.base
System role: Chunk persistence
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ragdesk.boundary.db.base import Base, utcnow
from ragdesk.models.chunk import ChunkType


class ChunkModel(Base):
    """
    Chunk ORM model.

    The primary key is a deterministic hash of document id and ordinal,
    so resubmitting a chunk batch is detected as a conflict.
    """

    __tablename__ = "chunks"
    __table_args__ = (UniqueConstraint("document_id", "chunk_index", name="uq_chunks_document_index"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type: Mapped[ChunkType] = mapped_column(
        Enum(ChunkType, native_enum=False, length=16),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    page: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    index: Mapped[int] = mapped_column("chunk_index", Integer, nullable=False)

    char_length: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
