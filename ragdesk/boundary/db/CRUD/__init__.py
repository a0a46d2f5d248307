"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from ragdesk.boundary.db.CRUD import document_crud, chunk_crud

    document = await document_crud.get_in_project(db, project_id, document_id)
"""

from ragdesk.boundary.db.CRUD.base_crud import BaseCRUD
from ragdesk.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud, chunk_id_for
from ragdesk.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from ragdesk.boundary.db.CRUD.settings_crud import ProjectSettingsCRUD, project_settings_crud

__all__ = [
    "BaseCRUD",
    "ChunkCRUD",
    "chunk_crud",
    "chunk_id_for",
    "DocumentCRUD",
    "document_crud",
    "ProjectSettingsCRUD",
    "project_settings_crud",
]
