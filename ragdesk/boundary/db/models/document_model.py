"""
Document ORM model.

Represents uploaded documents with processing status and metadata.
Tracks the ingestion lifecycle from upload slot to a completed index,
including the per-stage pipeline snapshot.

Dependencies: sqlalchemy, ragdesk.boundary.db.base
System role: Document persistence for ingestion tracking
"""

import uuid

from sqlalchemy import JSON, BigInteger, Enum, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ragdesk.boundary.db.base import Base, TimestampMixin, UUIDMixin
from ragdesk.core.pipeline import ProcessingStatus


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model tracking ingestion pipeline state.

    Lifecycle: upload slot issued (UPLOADING) -> upload confirmed (QUEUED)
    -> worker stages -> COMPLETED or FAILED.

    Attributes:
        id: UUID primary key (auto-generated)
        project_id: Owning project
        owner_id: Principal that requested the upload
        original_filename: Filename as uploaded (255 char limit)
        file_size: Declared size in bytes
        file_type: MIME type
        storage_key: Object key in the documents bucket
        processing_status: Current pipeline status
        progress_percentage: Document-level progress 0-100
        error_message: Failure reason when FAILED (2048 char limit)
        pipeline: JSON snapshot of the pipeline run
    """

    __tablename__ = "documents"

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Principal id of the uploader",
    )

    original_filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Original filename",
    )

    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)

    file_type: Mapped[str] = mapped_column(String(255), nullable=False)

    storage_key: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        default="",
        index=True,
        doc="Object key in the documents bucket",
    )

    processing_status: Mapped[ProcessingStatus] = mapped_column(
        Enum(ProcessingStatus, native_enum=False, length=32),
        nullable=False,
        default=ProcessingStatus.UPLOADING,
    )

    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    error_message: Mapped[str | None] = mapped_column(
        String(2048),
        nullable=True,
        doc="Error details if processing failed",
    )

    pipeline: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Pipeline run snapshot (stage records, current index, outcome)",
    )
