"""Tests for the retrieval cost estimator."""

import pytest

from ragdesk.core.retrieval import estimate_performance
from ragdesk.models.settings import RagStrategy, RetrievalSettings, StrategyTier


class TestEstimatePerformance:
    def test_basic_defaults(self):
        """Scenario: basic strategy, 20 chunks, no reranking."""
        estimate = estimate_performance(RetrievalSettings())

        assert estimate.total_chunks == 20
        assert estimate.after_dedupe == 20
        assert estimate.estimated_latency_ms == 400
        assert estimate.strategy_tier is StrategyTier.BASIC

    def test_multi_query_hybrid_with_reranking(self):
        """Scenario: 20 chunks x 5 queries, reranking on."""
        settings = RetrievalSettings(
            rag_strategy=RagStrategy.MULTI_QUERY_HYBRID,
            chunks_per_search=20,
            number_of_queries=5,
            reranking_enabled=True,
        )

        estimate = estimate_performance(settings)

        assert estimate.total_chunks == 100
        assert estimate.after_dedupe == 70
        assert estimate.estimated_latency_ms == 2700
        assert estimate.strategy_tier is StrategyTier.EXPERT

    def test_hybrid(self):
        estimate = estimate_performance(RetrievalSettings(rag_strategy=RagStrategy.HYBRID, chunks_per_search=30))

        assert estimate.total_chunks == 30
        assert estimate.after_dedupe == 30
        assert estimate.estimated_latency_ms == 600
        assert estimate.strategy_tier is StrategyTier.INTERMEDIATE

    def test_multi_query_vector(self):
        settings = RetrievalSettings(
            rag_strategy=RagStrategy.MULTI_QUERY_VECTOR,
            chunks_per_search=10,
            number_of_queries=3,
        )

        estimate = estimate_performance(settings)

        assert estimate.total_chunks == 30
        assert estimate.after_dedupe == 21
        assert estimate.estimated_latency_ms == 1400
        assert estimate.strategy_tier is StrategyTier.ADVANCED

    def test_reranking_adds_fixed_latency(self):
        plain = estimate_performance(RetrievalSettings(rag_strategy=RagStrategy.HYBRID))
        reranked = estimate_performance(RetrievalSettings(rag_strategy=RagStrategy.HYBRID, reranking_enabled=True))
        assert reranked.estimated_latency_ms - plain.estimated_latency_ms == 200

    def test_single_query_strategies_ignore_number_of_queries(self):
        few = estimate_performance(RetrievalSettings(number_of_queries=3))
        many = estimate_performance(RetrievalSettings(number_of_queries=7))
        assert few == many

    @pytest.mark.parametrize("strategy", list(RagStrategy))
    def test_deterministic(self, strategy):
        settings = RetrievalSettings(rag_strategy=strategy, chunks_per_search=35, number_of_queries=6)
        assert estimate_performance(settings) == estimate_performance(settings.model_copy())
