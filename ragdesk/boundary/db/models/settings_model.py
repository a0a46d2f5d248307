"""
Project settings ORM model.

One row of retrieval settings per project, created with defaults on first
read. keyword_weight is derived from vector_weight and not stored.

Dependencies: sqlalchemy, ragdesk.boundary.db.base
System role: Retrieval settings persistence
"""

import uuid

from sqlalchemy import Boolean, Enum, Float, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ragdesk.boundary.db.base import Base, TimestampMixin, UUIDMixin
from ragdesk.models.settings import EmbeddingModel, RagStrategy, RerankingModel


class ProjectSettingsModel(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "project_settings"

    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        unique=True,
    )

    embedding_model: Mapped[EmbeddingModel] = mapped_column(
        Enum(EmbeddingModel, native_enum=False, values_callable=lambda e: [m.value for m in e], length=64),
        nullable=False,
        default=EmbeddingModel.TEXT_EMBEDDING_3_LARGE,
    )
    rag_strategy: Mapped[RagStrategy] = mapped_column(
        Enum(RagStrategy, native_enum=False, values_callable=lambda e: [m.value for m in e], length=32),
        nullable=False,
        default=RagStrategy.BASIC,
    )
    chunks_per_search: Mapped[int] = mapped_column(Integer, nullable=False, default=20)
    final_context_size: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    similarity_threshold: Mapped[float] = mapped_column(Float, nullable=False, default=0.8)
    number_of_queries: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    reranking_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reranking_model: Mapped[RerankingModel] = mapped_column(
        Enum(RerankingModel, native_enum=False, values_callable=lambda e: [m.value for m in e], length=64),
        nullable=False,
        default=RerankingModel.MS_MARCO_MINILM_L12_V2,
    )
    vector_weight: Mapped[float] = mapped_column(Float, nullable=False, default=0.7)
