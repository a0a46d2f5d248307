"""
Pipeline worker API endpoints.

Routes:
- POST /projects/{id}/documents/{doc_id}/stages - Report a stage event
- POST /projects/{id}/documents/{doc_id}/chunks - Store produced chunks

Dependencies: ragdesk.application.services.pipeline_service
System role: Processing worker callback HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ragdesk.api.deps import get_pipeline_service
from ragdesk.api.routers.error_handling import handle_document_errors
from ragdesk.application.services.pipeline_service import PipelineService
from ragdesk.models.chunk import ChunkBatch
from ragdesk.models.document import DocumentDetail
from ragdesk.models.pipeline import StageEvent


class ChunksStoredResponse(BaseModel):
    document_id: UUID
    stored: int


router = APIRouter(prefix="/projects", tags=["pipeline"])


@router.post("/{project_id}/documents/{document_id}/stages", response_model=DocumentDetail)
@handle_document_errors
async def record_stage_event(
    project_id: UUID,
    document_id: UUID,
    event: StageEvent,
    pipeline_service: PipelineService = Depends(get_pipeline_service),
) -> DocumentDetail:
    """
    Apply a stage event reported by the processing worker.

    Raises:
        HTTPException(404): Document not found
        HTTPException(409): Event skips or revisits a stage, or upload unconfirmed
    """
    return await pipeline_service.record_stage_event(project_id, document_id, event)


@router.post(
    "/{project_id}/documents/{document_id}/chunks",
    response_model=ChunksStoredResponse,
    status_code=status.HTTP_201_CREATED,
)
@handle_document_errors
async def store_chunks(
    project_id: UUID,
    document_id: UUID,
    batch: ChunkBatch,
    pipeline_service: PipelineService = Depends(get_pipeline_service),
) -> ChunksStoredResponse:
    """
    Store chunks produced for a document.

    Raises:
        HTTPException(409): Document is outside the chunk-producing stages
    """
    stored = await pipeline_service.store_chunks(project_id, document_id, batch)
    return ChunksStoredResponse(document_id=document_id, stored=stored)
