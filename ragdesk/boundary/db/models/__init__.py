"""
Database models package.

Exports:
  - DocumentModel: Document row with persisted pipeline snapshot
  - ChunkModel: Chunk produced by the processing worker
  - ProjectSettingsModel: Per-project retrieval settings

Dependencies: sqlalchemy, ragdesk.boundary.db.base
System role: Database model definitions for domain entities
"""

from ragdesk.boundary.db.models.chunk_model import ChunkModel
from ragdesk.boundary.db.models.document_model import DocumentModel
from ragdesk.boundary.db.models.settings_model import ProjectSettingsModel

__all__ = ["ChunkModel", "DocumentModel", "ProjectSettingsModel"]
