"""
Pipeline service.

Applies stage events reported by the processing worker to a document's
pipeline run and stores the chunks the worker produces. The document row
is locked for the duration of each call so events for one document are
applied in arrival order.

Event semantics:
    stage == failed       current stage fails with error_message
    stage == completed    last stage finishes, document completed
    stage == current      progress update within the stage
    stage == next         previous stage finished, this one started

Dependencies: ragdesk.boundary.db, ragdesk.core.pipeline
System role: Server-side stage tracking
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import FlushError

from ragdesk.application.services.document_views import to_detail
from ragdesk.boundary.db.CRUD.chunk_crud import chunk_crud
from ragdesk.boundary.db.CRUD.document_crud import document_crud
from ragdesk.boundary.db.models.document_model import DocumentModel
from ragdesk.core.exceptions import DocumentNotFoundError, DocumentStateError
from ragdesk.core.pipeline import CHUNK_PRODUCING_STAGES, PipelineRun, ProcessingStatus
from ragdesk.models.chunk import ChunkBatch
from ragdesk.models.document import DocumentDetail
from ragdesk.models.pipeline import StageEvent

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Processing failed"


def apply_stage_event(run: PipelineRun, event: StageEvent) -> None:
    """
    Apply one worker event to a run.

    Raises:
        StageOrderViolation: Event skips, revisits or follows a terminal state
    """
    if event.stage is ProcessingStatus.FAILED:
        run.fail(event.error_message or DEFAULT_FAILURE_MESSAGE)
    elif event.stage is ProcessingStatus.COMPLETED:
        run.complete()
    elif not run.is_terminal and event.stage is run.current_stage:
        run.report_progress(event.stage, event.progress)
    else:
        run.advance_to(event.stage)
        if event.progress:
            run.report_progress(event.stage, event.progress)


class PipelineService:
    """Records worker progress for documents."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def record_stage_event(
        self,
        project_id: UUID,
        document_id: UUID,
        event: StageEvent,
    ) -> DocumentDetail:
        """
        Apply a stage event and persist the run.

        Raises:
            DocumentNotFoundError: Unknown document
            DocumentStateError: Upload not confirmed yet
            StageOrderViolation: Event breaks stage order (nothing persisted)
        """
        document = await self._lock(project_id, document_id)
        if document.processing_status is ProcessingStatus.UPLOADING:
            raise DocumentStateError(
                "Upload has not been confirmed",
                document_id=str(document_id),
                status=document.processing_status.value,
            )

        run = PipelineRun.from_snapshot(document.pipeline)
        previous = run.status
        apply_stage_event(run, event)

        await document_crud.update(
            self.db,
            document,
            processing_status=run.status,
            progress_percentage=run.progress_percentage,
            error_message=run.error_message,
            pipeline=run.to_snapshot(),
        )
        await self.db.commit()

        if run.status is not previous:
            logger.info(
                "Document stage changed",
                extra={
                    "document_id": str(document_id),
                    "from_status": previous.value,
                    "to_status": run.status.value,
                    "progress": run.progress_percentage,
                },
            )
        return to_detail(document)

    async def store_chunks(self, project_id: UUID, document_id: UUID, batch: ChunkBatch) -> int:
        """
        Store chunks produced for a document.

        Returns:
            int: Number of chunks stored

        Raises:
            DocumentNotFoundError: Unknown document
            DocumentStateError: Document not in a chunk-producing stage, or
                a chunk ordinal was already stored
        """
        document = await self._lock(project_id, document_id)
        status = document.processing_status
        if status not in CHUNK_PRODUCING_STAGES:
            raise DocumentStateError(
                f"Chunks cannot be written while document is '{status.value}'",
                document_id=str(document_id),
                status=status.value,
            )

        try:
            created = await chunk_crud.create_many(self.db, document_id, batch.chunks)
        except (IntegrityError, FlushError) as e:
            await self.db.rollback()
            raise DocumentStateError(
                "Chunk ordinal already stored",
                document_id=str(document_id),
                status=status.value,
            ) from e
        await self.db.commit()

        logger.info(
            "Chunks stored",
            extra={"document_id": str(document_id), "chunk_count": len(created)},
        )
        return len(created)

    async def _lock(self, project_id: UUID, document_id: UUID) -> DocumentModel:
        document = await document_crud.get_for_update(self.db, project_id, document_id)
        if document is None:
            raise DocumentNotFoundError(str(document_id), {"project_id": str(project_id)})
        return document
