"""
Tests for per-project retrieval settings.
"""

import pytest

from ragdesk.application.services.settings_service import SettingsService
from ragdesk.core.exceptions import EmbeddingModelLocked
from ragdesk.models import (
    EmbeddingModel,
    RagStrategy,
    RetrievalSettings,
    RetrievalSettingsUpdate,
    StrategyTier,
)


class TestSettingsService:
    @pytest.mark.asyncio
    async def test_defaults_created_on_first_read(self, settings_service, project_id):
        response = await settings_service.get_settings(project_id)

        assert response.project_id == project_id
        assert response.rag_strategy is RagStrategy.BASIC
        assert response.number_of_queries is None
        assert response.keyword_weight == pytest.approx(0.3)
        assert response.embedding_model_locked is False

    @pytest.mark.asyncio
    async def test_partial_update(self, settings_service, project_id):
        response = await settings_service.update_settings(
            project_id,
            RetrievalSettingsUpdate(rag_strategy=RagStrategy.MULTI_QUERY_HYBRID, number_of_queries=4, vector_weight=0.4),
        )

        assert response.rag_strategy is RagStrategy.MULTI_QUERY_HYBRID
        assert response.number_of_queries == 4
        assert response.keyword_weight == pytest.approx(0.6)
        assert response.chunks_per_search == 20

        reread = await settings_service.get_settings(project_id)
        assert reread.number_of_queries == 4

    @pytest.mark.asyncio
    async def test_embedding_model_free_without_documents(self, settings_service, project_id):
        response = await settings_service.update_settings(
            project_id, RetrievalSettingsUpdate(embedding_model=EmbeddingModel.TEXT_EMBEDDING_3_SMALL)
        )

        assert response.embedding_model is EmbeddingModel.TEXT_EMBEDDING_3_SMALL

    @pytest.mark.asyncio
    async def test_embedding_model_locked_with_documents(self, settings_service, project_id, queued_document):
        response = await settings_service.get_settings(project_id)
        assert response.embedding_model_locked is True

        with pytest.raises(EmbeddingModelLocked):
            await settings_service.update_settings(
                project_id, RetrievalSettingsUpdate(embedding_model=EmbeddingModel.TEXT_EMBEDDING_ADA_002)
            )

    @pytest.mark.asyncio
    async def test_same_embedding_model_allowed_when_locked(self, settings_service, project_id, queued_document):
        response = await settings_service.update_settings(
            project_id,
            RetrievalSettingsUpdate(embedding_model=EmbeddingModel.TEXT_EMBEDDING_3_LARGE, chunks_per_search=30),
        )

        assert response.chunks_per_search == 30

    def test_estimate(self):
        settings = RetrievalSettings(
            rag_strategy=RagStrategy.MULTI_QUERY_VECTOR, chunks_per_search=20, number_of_queries=5
        )

        estimate = SettingsService.estimate(settings)

        assert estimate.total_chunks == 100
        assert estimate.after_dedupe == 70
        assert estimate.estimated_latency_ms == 1800
        assert estimate.strategy_tier is StrategyTier.ADVANCED
