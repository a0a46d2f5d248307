"""
Settings service.

Per-project retrieval settings: created with defaults on first read,
changed through partial updates. The embedding model is locked once the
project holds any document.

Dependencies: ragdesk.boundary.db, ragdesk.core.retrieval
System role: Retrieval configuration management
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.boundary.db.CRUD.document_crud import document_crud
from ragdesk.boundary.db.CRUD.settings_crud import project_settings_crud
from ragdesk.boundary.db.models.settings_model import ProjectSettingsModel
from ragdesk.core.exceptions import EmbeddingModelLocked
from ragdesk.core.retrieval import estimate_performance
from ragdesk.models.settings import (
    PerformanceEstimate,
    ProjectSettingsResponse,
    RetrievalSettings,
    RetrievalSettingsUpdate,
)

logger = logging.getLogger(__name__)


class SettingsService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_settings(self, project_id: UUID) -> ProjectSettingsResponse:
        row = await project_settings_crud.get_or_create(self.db, project_id)
        await self.db.commit()
        return await self._response(project_id, row)

    async def update_settings(
        self,
        project_id: UUID,
        update: RetrievalSettingsUpdate,
    ) -> ProjectSettingsResponse:
        """
        Apply a partial update.

        Raises:
            EmbeddingModelLocked: Embedding model change in a project with documents
        """
        row = await project_settings_crud.get_or_create(self.db, project_id)
        current = RetrievalSettings.model_validate(row)
        updated = current.apply(update)

        if updated.embedding_model is not current.embedding_model:
            if await document_crud.count_by_project(self.db, project_id) > 0:
                raise EmbeddingModelLocked(
                    str(project_id),
                    current=current.embedding_model.value,
                    requested=updated.embedding_model.value,
                )

        row = await project_settings_crud.update(
            self.db,
            row,
            **updated.model_dump(exclude={"keyword_weight"}),
        )
        await self.db.commit()

        logger.info(
            "Retrieval settings updated",
            extra={
                "project_id": str(project_id),
                "fields": sorted(update.model_dump(exclude_unset=True)),
            },
        )
        return await self._response(project_id, row)

    @staticmethod
    def estimate(settings: RetrievalSettings) -> PerformanceEstimate:
        return estimate_performance(settings)

    async def _response(self, project_id: UUID, row: ProjectSettingsModel) -> ProjectSettingsResponse:
        locked = await document_crud.count_by_project(self.db, project_id) > 0
        return ProjectSettingsResponse.build(
            project_id,
            RetrievalSettings.model_validate(row),
            embedding_model_locked=locked,
            updated_at=row.updated_at,
        )
