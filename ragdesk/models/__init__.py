"""Pydantic schemas shared by the API, services and HTTP client."""

from ragdesk.models.chunk import (
    Chunk,
    ChunkBatch,
    ChunkCreate,
    ChunkListResponse,
    ChunkType,
    ChunkTypeFilter,
)
from ragdesk.models.document import (
    DocumentDetail,
    DocumentListResponse,
    ProjectDocument,
    UploadConfirmation,
    UploadFile,
    UploadSlot,
    UploadSlotRequest,
    format_file_size,
)
from ragdesk.models.pipeline import StageEvent, StageRecordSchema
from ragdesk.models.settings import (
    EmbeddingModel,
    PerformanceEstimate,
    ProjectSettingsResponse,
    RagStrategy,
    RerankingModel,
    RetrievalSettings,
    RetrievalSettingsUpdate,
    StrategyTier,
)

__all__ = [
    "Chunk",
    "ChunkBatch",
    "ChunkCreate",
    "ChunkListResponse",
    "ChunkType",
    "ChunkTypeFilter",
    "DocumentDetail",
    "DocumentListResponse",
    "EmbeddingModel",
    "PerformanceEstimate",
    "ProjectDocument",
    "ProjectSettingsResponse",
    "RagStrategy",
    "RerankingModel",
    "RetrievalSettings",
    "RetrievalSettingsUpdate",
    "StageEvent",
    "StageRecordSchema",
    "StrategyTier",
    "UploadConfirmation",
    "UploadFile",
    "UploadSlot",
    "UploadSlotRequest",
    "format_file_size",
]
