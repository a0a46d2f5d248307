"""
Retrieval settings API endpoints.

Routes:
- GET /projects/{id}/settings - Current settings (defaults on first read)
- PUT /projects/{id}/settings - Partial update
- POST /projects/{id}/settings/estimate - Estimate for an unsaved configuration

Dependencies: ragdesk.application.services.settings_service
System role: Retrieval configuration HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends

from ragdesk.api.deps import get_settings_service
from ragdesk.api.routers.error_handling import handle_document_errors
from ragdesk.application.services.settings_service import SettingsService
from ragdesk.models.settings import (
    PerformanceEstimate,
    ProjectSettingsResponse,
    RetrievalSettings,
    RetrievalSettingsUpdate,
)

router = APIRouter(prefix="/projects", tags=["settings"])


@router.get("/{project_id}/settings", response_model=ProjectSettingsResponse)
@handle_document_errors
async def get_settings(
    project_id: UUID,
    settings_service: SettingsService = Depends(get_settings_service),
) -> ProjectSettingsResponse:
    return await settings_service.get_settings(project_id)


@router.put("/{project_id}/settings", response_model=ProjectSettingsResponse)
@handle_document_errors
async def update_settings(
    project_id: UUID,
    update: RetrievalSettingsUpdate,
    settings_service: SettingsService = Depends(get_settings_service),
) -> ProjectSettingsResponse:
    """
    Apply a partial settings update.

    Raises:
        HTTPException(409): Embedding model change after documents exist
    """
    return await settings_service.update_settings(project_id, update)


@router.post("/{project_id}/settings/estimate", response_model=PerformanceEstimate)
async def estimate_settings(project_id: UUID, settings: RetrievalSettings) -> PerformanceEstimate:
    """Estimate retrieval volume and latency without saving anything."""
    return SettingsService.estimate(settings)
