"""
Application services.

Exports:
  - DocumentService: Upload slots, confirmation, listing, deletion, chunk reads
  - PipelineService: Stage events and chunk writes from the processing worker
  - SettingsService: Per-project retrieval settings and estimates
"""

from ragdesk.application.services.document_service import DocumentService
from ragdesk.application.services.pipeline_service import PipelineService
from ragdesk.application.services.settings_service import SettingsService

__all__ = ["DocumentService", "PipelineService", "SettingsService"]
