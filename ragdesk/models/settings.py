"""
Retrieval configuration models.

Per-project retrieval settings, their partial update schema and the
performance estimate returned by the preview endpoint.

Dependencies: pydantic
System role: Retrieval configuration API contracts
"""

import enum
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

DEFAULT_NUMBER_OF_QUERIES = 5


class RagStrategy(str, enum.Enum):
    """Retrieval strategy for a project."""

    BASIC = "basic"
    HYBRID = "hybrid"
    MULTI_QUERY_VECTOR = "multi-query-vector"
    MULTI_QUERY_HYBRID = "multi-query-hybrid"

    @property
    def is_multi_query(self) -> bool:
        return self in (RagStrategy.MULTI_QUERY_VECTOR, RagStrategy.MULTI_QUERY_HYBRID)


class EmbeddingModel(str, enum.Enum):
    TEXT_EMBEDDING_3_LARGE = "text-embedding-3-large"
    TEXT_EMBEDDING_3_SMALL = "text-embedding-3-small"
    TEXT_EMBEDDING_ADA_002 = "text-embedding-ada-002"


class RerankingModel(str, enum.Enum):
    MS_MARCO_MINILM_L12_V2 = "ms-marco-MiniLM-L-12-v2"
    BGE_RERANKER_BASE = "bge-reranker-base"
    BGE_RERANKER_LARGE = "bge-reranker-large"


class StrategyTier(str, enum.Enum):
    BASIC = "Basic"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    EXPERT = "Expert"


class RetrievalSettings(BaseModel):
    """
    Retrieval configuration of one project.

    keyword_weight is derived from vector_weight and never set directly, so
    the two always sum to 1.0. Assignments are validated.
    """

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    embedding_model: EmbeddingModel = EmbeddingModel.TEXT_EMBEDDING_3_LARGE
    rag_strategy: RagStrategy = RagStrategy.BASIC
    chunks_per_search: int = Field(default=20, ge=5, le=50)
    final_context_size: int = Field(default=5, ge=3, le=15)
    similarity_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    number_of_queries: int = Field(default=DEFAULT_NUMBER_OF_QUERIES, ge=3, le=7)
    reranking_enabled: bool = False
    reranking_model: RerankingModel = RerankingModel.MS_MARCO_MINILM_L12_V2
    vector_weight: float = Field(default=0.7, ge=0.0, le=1.0)

    @field_validator("number_of_queries", mode="before")
    @classmethod
    def _default_queries(cls, value):
        # Serialized as null while the strategy is single-query
        return DEFAULT_NUMBER_OF_QUERIES if value is None else value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def keyword_weight(self) -> float:
        return 1.0 - self.vector_weight

    def with_vector_weight(self, weight: float) -> "RetrievalSettings":
        """Return a copy with the given vector weight (keyword weight follows)."""
        updated = self.model_copy()
        updated.vector_weight = weight
        return updated

    def apply(self, update: "RetrievalSettingsUpdate") -> "RetrievalSettings":
        """
        Merge a partial update into a new validated settings object.

        Raises:
            pydantic.ValidationError: Merged values out of range
        """
        data = self.model_dump(exclude={"keyword_weight"})
        data.update(update.model_dump(exclude_unset=True, exclude_none=True))
        return RetrievalSettings.model_validate(data)


class RetrievalSettingsUpdate(BaseModel):
    """Partial update; keyword_weight is rejected since it is derived."""

    model_config = ConfigDict(extra="forbid")

    embedding_model: EmbeddingModel | None = None
    rag_strategy: RagStrategy | None = None
    chunks_per_search: int | None = Field(default=None, ge=5, le=50)
    final_context_size: int | None = Field(default=None, ge=3, le=15)
    similarity_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    number_of_queries: int | None = Field(default=None, ge=3, le=7)
    reranking_enabled: bool | None = None
    reranking_model: RerankingModel | None = None
    vector_weight: float | None = Field(default=None, ge=0.0, le=1.0)


class ProjectSettingsResponse(BaseModel):
    """Settings as returned by the API."""

    project_id: uuid.UUID
    embedding_model: EmbeddingModel
    rag_strategy: RagStrategy
    chunks_per_search: int
    final_context_size: int
    similarity_threshold: float
    number_of_queries: int | None
    reranking_enabled: bool
    reranking_model: RerankingModel
    vector_weight: float
    keyword_weight: float
    embedding_model_locked: bool = False
    updated_at: datetime | None = None

    @classmethod
    def build(
        cls,
        project_id: uuid.UUID,
        settings: RetrievalSettings,
        embedding_model_locked: bool = False,
        updated_at: datetime | None = None,
    ) -> "ProjectSettingsResponse":
        data = settings.model_dump()
        if not settings.rag_strategy.is_multi_query:
            data["number_of_queries"] = None
        return cls(
            project_id=project_id,
            embedding_model_locked=embedding_model_locked,
            updated_at=updated_at,
            **data,
        )

    def to_settings(self) -> RetrievalSettings:
        return RetrievalSettings.model_validate(
            self.model_dump(exclude={"project_id", "keyword_weight", "embedding_model_locked", "updated_at"})
        )


class PerformanceEstimate(BaseModel):
    """Preview of retrieval cost for a configuration."""

    model_config = ConfigDict(frozen=True)

    total_chunks: int = Field(description="Chunks retrieved before deduplication")
    after_dedupe: int = Field(description="Chunks left after deduplication")
    estimated_latency_ms: int
    strategy_tier: StrategyTier
