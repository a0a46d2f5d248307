"""
Project settings CRUD operations.

Dependencies: sqlalchemy, ragdesk.boundary.db.models.settings_model
System role: Retrieval settings persistence operations
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.boundary.db.CRUD.base_crud import BaseCRUD
from ragdesk.boundary.db.models.settings_model import ProjectSettingsModel
from ragdesk.models.settings import RetrievalSettings


class ProjectSettingsCRUD(BaseCRUD[ProjectSettingsModel]):
    """CRUD operations for ProjectSettingsModel."""

    def __init__(self) -> None:
        super().__init__(ProjectSettingsModel)

    async def get_by_project(self, session: AsyncSession, project_id: UUID) -> ProjectSettingsModel | None:
        stmt = select(ProjectSettingsModel).where(ProjectSettingsModel.project_id == project_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, session: AsyncSession, project_id: UUID) -> ProjectSettingsModel:
        """Load a project's settings row, inserting defaults on first read."""
        existing = await self.get_by_project(session, project_id)
        if existing is not None:
            return existing
        defaults = RetrievalSettings().model_dump(exclude={"keyword_weight"})
        return await self.create(session, project_id=project_id, **defaults)


project_settings_crud = ProjectSettingsCRUD()
