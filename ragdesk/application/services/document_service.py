"""
Document service orchestrator.

Coordinates the server half of the upload flow and document lifecycle:

1. Upload slot: validate file, generate storage key, presign PUT, create
   the document in 'uploading' with a fresh pipeline run
2. Confirmation: verify the object exists, advance the run to 'queued',
   enqueue the processing job
3. Reads: document detail with stage records, project listing, chunks
   of completed documents
4. Deletion: chunks, stored object (best-effort), record

Dependencies: ragdesk.boundary.db, ragdesk.boundary.aws, ragdesk.core
System role: Document management orchestration
"""

import logging
from uuid import UUID

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.application.services.document_views import to_detail, to_document
from ragdesk.application.storage_keys import generate_storage_key, validate_filename
from ragdesk.boundary.aws.pipeline_dispatcher import PipelineDispatcher, PipelineJobMessage
from ragdesk.boundary.aws.s3_client import S3DocumentClient
from ragdesk.boundary.db.CRUD.chunk_crud import chunk_crud
from ragdesk.boundary.db.CRUD.document_crud import document_crud
from ragdesk.boundary.db.CRUD.settings_crud import project_settings_crud
from ragdesk.boundary.db.models.document_model import DocumentModel
from ragdesk.core.exceptions import (
    DispatchError,
    DocumentNotFoundError,
    DocumentStateError,
    NotReady,
    StorageError,
    ValidationError,
)
from ragdesk.core.pipeline import PipelineRun, ProcessingStatus
from ragdesk.core.upload_policy import UploadPolicy
from ragdesk.models.chunk import Chunk, ChunkListResponse
from ragdesk.models.document import (
    DocumentDetail,
    DocumentListResponse,
    ProjectDocument,
    UploadSlot,
    UploadSlotRequest,
)

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Document service orchestrator.

    Object storage and the processing queue are injected; the queue is
    optional (no dispatcher means the worker discovers jobs another way).
    """

    def __init__(
        self,
        db: AsyncSession,
        s3_client: S3DocumentClient,
        dispatcher: PipelineDispatcher | None = None,
        policy: UploadPolicy | None = None,
        presigned_url_expiry: int = 3600,
    ) -> None:
        """
        Initialize document service.

        Args:
            db: AsyncSession for document metadata
            s3_client: Document bucket client
            dispatcher: Processing job dispatcher (None disables dispatch)
            policy: File acceptance rules
            presigned_url_expiry: Upload URL lifetime in seconds
        """
        self.db = db
        self.s3_client = s3_client
        self.dispatcher = dispatcher
        self.policy = policy or UploadPolicy()
        self.presigned_url_expiry = presigned_url_expiry

    async def request_upload_slot(
        self,
        project_id: UUID,
        owner_id: str,
        request: UploadSlotRequest,
    ) -> UploadSlot:
        """
        Create a document in 'uploading' and a presigned PUT URL for its bytes.

        Raises:
            ValidationError: Invalid filename
            UploadRejected: File type or size outside the policy
            StorageError: Presigned URL could not be generated
        """
        validate_filename(request.filename)
        self.policy.validate(request.filename, request.file_size, request.content_type)

        storage_key = generate_storage_key(str(project_id), request.filename)
        try:
            upload_url, expires_at = self.s3_client.generate_presigned_url(
                storage_key=storage_key,
                content_type=request.content_type,
                expires_in=self.presigned_url_expiry,
            )
        except (ClientError, BotoCoreError) as e:
            logger.exception(
                "Failed to generate presigned URL",
                extra={"project_id": str(project_id), "storage_key": storage_key, "error": str(e)},
            )
            raise StorageError(f"Failed to generate upload URL: {e}", operation="presign") from e

        run = PipelineRun()
        document = await document_crud.create(
            self.db,
            project_id=project_id,
            owner_id=owner_id,
            original_filename=request.filename,
            file_size=request.file_size,
            file_type=request.content_type,
            storage_key=storage_key,
            processing_status=run.status,
            progress_percentage=run.progress_percentage,
            pipeline=run.to_snapshot(),
        )
        await self.db.commit()

        logger.info(
            "Upload slot issued",
            extra={"project_id": str(project_id), "document_id": str(document.id), "storage_key": storage_key},
        )
        return UploadSlot(
            upload_url=upload_url,
            storage_key=storage_key,
            expires_at=expires_at.isoformat(),
            document=to_document(document),
        )

    async def confirm_upload(self, project_id: UUID, storage_key: str) -> ProjectDocument:
        """
        Confirm the transfer finished and hand the document to processing.

        Raises:
            DocumentNotFoundError: No document with this storage key
            DocumentStateError: Document is not in 'uploading'
            ValidationError: Object missing from storage
            StorageError: Existence check failed
            DispatchError: Processing job could not be enqueued (document failed)
        """
        document = await document_crud.get_by_storage_key(self.db, project_id, storage_key)
        if document is None:
            raise DocumentNotFoundError(storage_key, {"storage_key": storage_key})
        if document.processing_status is not ProcessingStatus.UPLOADING:
            raise DocumentStateError(
                "Upload already confirmed",
                document_id=str(document.id),
                status=document.processing_status.value,
            )

        try:
            exists = self.s3_client.file_exists(storage_key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to check uploaded object: {e}", operation="head") from e
        if not exists:
            raise ValidationError(
                "Uploaded object not found in storage",
                field="storage_key",
                details={"storage_key": storage_key},
            )

        run = PipelineRun.from_snapshot(document.pipeline)
        run.advance_to(ProcessingStatus.QUEUED)
        await self._save_run(document, run)

        if self.dispatcher is not None:
            try:
                await self._dispatch(document)
            except DispatchError as e:
                run.fail(e.message)
                await self._save_run(document, run)
                await self.db.commit()
                raise

        await self.db.commit()
        logger.info(
            "Upload confirmed",
            extra={"project_id": str(project_id), "document_id": str(document.id)},
        )
        return to_document(document)

    async def get_document(self, project_id: UUID, document_id: UUID) -> DocumentDetail:
        document = await self._get_or_raise(project_id, document_id)
        return to_detail(document)

    async def list_documents(self, project_id: UUID) -> DocumentListResponse:
        documents = await document_crud.list_by_project(self.db, project_id)
        return DocumentListResponse(
            documents=[to_document(document) for document in documents],
            total=len(documents),
        )

    async def list_chunks(self, project_id: UUID, document_id: UUID) -> ChunkListResponse:
        """
        Chunks of a completed document.

        Raises:
            DocumentNotFoundError: Unknown document
            NotReady: Document run has not completed
        """
        document = await self._get_or_raise(project_id, document_id)
        if document.processing_status is not ProcessingStatus.COMPLETED:
            raise NotReady(str(document_id), document.processing_status.value)

        chunks = await chunk_crud.list_by_document(self.db, document_id)
        return ChunkListResponse(
            document_id=document_id,
            chunks=[Chunk.model_validate(chunk) for chunk in chunks],
            total=len(chunks),
        )

    async def delete_document(self, project_id: UUID, document_id: UUID) -> None:
        """
        Delete a document, its chunks and its stored object.

        Object deletion is best-effort; a storage failure is logged and the
        record is still removed.

        Raises:
            DocumentNotFoundError: Unknown document
        """
        document = await self._get_or_raise(project_id, document_id)

        removed_chunks = await chunk_crud.delete_by_document(self.db, document_id)

        if document.storage_key:
            try:
                self.s3_client.delete_object(document.storage_key)
            except (ClientError, BotoCoreError) as e:
                logger.warning(
                    "Failed to delete stored object",
                    extra={"document_id": str(document_id), "storage_key": document.storage_key, "error": str(e)},
                )

        await document_crud.delete_by_id(self.db, document_id)
        await self.db.commit()
        logger.info(
            "Document deleted",
            extra={"project_id": str(project_id), "document_id": str(document_id), "chunk_count": removed_chunks},
        )

    async def _get_or_raise(self, project_id: UUID, document_id: UUID) -> DocumentModel:
        document = await document_crud.get_in_project(self.db, project_id, document_id)
        if document is None:
            raise DocumentNotFoundError(str(document_id), {"project_id": str(project_id)})
        return document

    async def _save_run(self, document: DocumentModel, run: PipelineRun) -> None:
        await document_crud.update(
            self.db,
            document,
            processing_status=run.status,
            progress_percentage=run.progress_percentage,
            error_message=run.error_message,
            pipeline=run.to_snapshot(),
        )

    async def _dispatch(self, document: DocumentModel) -> None:
        settings = await project_settings_crud.get_or_create(self.db, document.project_id)
        message = PipelineJobMessage(
            document_id=document.id,
            project_id=document.project_id,
            storage_key=document.storage_key,
            filename=document.original_filename,
            file_size_bytes=document.file_size,
            embedding_model=settings.embedding_model.value,
        )
        self.dispatcher.dispatch(message)
