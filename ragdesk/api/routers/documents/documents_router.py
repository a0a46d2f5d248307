"""
Document API endpoints.

Routes:
- POST /projects/{id}/documents/upload-url - Create document and presigned PUT URL
- POST /projects/{id}/documents/confirm - Confirm upload, queue processing
- GET /projects/{id}/documents - List project documents
- GET /projects/{id}/documents/{doc_id} - Document with stage records
- DELETE /projects/{id}/documents/{doc_id} - Delete document
- GET /projects/{id}/documents/{doc_id}/chunks - Chunks of a completed document

Dependencies: ragdesk.application.services, ragdesk.models
System role: Document HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ragdesk.api.deps import get_document_service, get_principal_id
from ragdesk.api.routers.error_handling import handle_document_errors
from ragdesk.application.services.document_service import DocumentService
from ragdesk.models.chunk import ChunkListResponse
from ragdesk.models.document import (
    DocumentDetail,
    DocumentListResponse,
    ProjectDocument,
    UploadConfirmation,
    UploadSlot,
    UploadSlotRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["documents"])


@router.post("/{project_id}/documents/upload-url", response_model=UploadSlot)
@handle_document_errors
async def create_upload_slot(
    project_id: UUID,
    request: UploadSlotRequest,
    principal_id: str = Depends(get_principal_id),
    document_service: DocumentService = Depends(get_document_service),
) -> UploadSlot:
    """
    Create a document in 'uploading' and a presigned URL for its bytes.

    The client PUTs the file to upload_url, then calls /documents/confirm
    with the storage_key.

    Raises:
        HTTPException(400): Invalid filename, unsupported type or size
        HTTPException(502): Presigned URL generation failed
    """
    logger.info(
        "Upload slot requested",
        extra={"project_id": str(project_id), "doc_filename": request.filename, "size": request.file_size},
    )
    return await document_service.request_upload_slot(project_id, principal_id, request)


@router.post("/{project_id}/documents/confirm", response_model=ProjectDocument)
@handle_document_errors
async def confirm_upload(
    project_id: UUID,
    confirmation: UploadConfirmation,
    document_service: DocumentService = Depends(get_document_service),
) -> ProjectDocument:
    """
    Confirm that the bytes are stored and queue the document for processing.

    Raises:
        HTTPException(404): Unknown storage key
        HTTPException(409): Document is not in 'uploading'
        HTTPException(400): Object missing from storage
        HTTPException(502): Storage check or job dispatch failed
    """
    return await document_service.confirm_upload(project_id, confirmation.storage_key)


@router.get("/{project_id}/documents", response_model=DocumentListResponse)
@handle_document_errors
async def list_documents(
    project_id: UUID,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentListResponse:
    """List a project's documents, newest first."""
    return await document_service.list_documents(project_id)


@router.get("/{project_id}/documents/{document_id}", response_model=DocumentDetail)
@handle_document_errors
async def get_document(
    project_id: UUID,
    document_id: UUID,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentDetail:
    """Document status, progress and per-stage records."""
    return await document_service.get_document(project_id, document_id)


@router.delete("/{project_id}/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_document_errors
async def delete_document(
    project_id: UUID,
    document_id: UUID,
    document_service: DocumentService = Depends(get_document_service),
) -> None:
    """
    Delete a document with its chunks and stored object.

    Raises:
        HTTPException(404): Document not found in project
    """
    await document_service.delete_document(project_id, document_id)


@router.get("/{project_id}/documents/{document_id}/chunks", response_model=ChunkListResponse)
@handle_document_errors
async def list_chunks(
    project_id: UUID,
    document_id: UUID,
    document_service: DocumentService = Depends(get_document_service),
) -> ChunkListResponse:
    """
    Chunks of a completed document.

    Raises:
        HTTPException(409): Document has not completed processing
    """
    return await document_service.list_chunks(project_id, document_id)
