"""
Retrieval cost estimator.

Pure preview of how many chunks a configuration retrieves and how long a
query is expected to take. No I/O; total over every valid configuration.
"""

import math

from ragdesk.models.settings import (
    PerformanceEstimate,
    RagStrategy,
    RetrievalSettings,
    StrategyTier,
)

BASE_LATENCY_MS = 400
HYBRID_LATENCY_MS = 600
MULTI_QUERY_VECTOR_LATENCY_MS = 800
MULTI_QUERY_VECTOR_PER_QUERY_MS = 200
MULTI_QUERY_HYBRID_LATENCY_MS = 1000
MULTI_QUERY_HYBRID_PER_QUERY_MS = 300
RERANKING_LATENCY_MS = 200

# Share of multi-query results that survive deduplication
DEDUPE_RETENTION = 0.7


def estimate_performance(settings: RetrievalSettings) -> PerformanceEstimate:
    """
    Estimate retrieval volume and latency for a configuration.

    Args:
        settings: Retrieval configuration (saved or not)

    Returns:
        PerformanceEstimate: Chunk totals, latency in ms and strategy tier
    """
    chunks = settings.chunks_per_search
    queries = settings.number_of_queries
    total = after_dedupe = chunks
    latency = BASE_LATENCY_MS
    tier = StrategyTier.BASIC

    strategy = settings.rag_strategy
    if strategy is RagStrategy.HYBRID:
        latency = HYBRID_LATENCY_MS
        tier = StrategyTier.INTERMEDIATE
    elif strategy is RagStrategy.MULTI_QUERY_VECTOR:
        total = chunks * queries
        after_dedupe = math.floor(total * DEDUPE_RETENTION)
        latency = MULTI_QUERY_VECTOR_LATENCY_MS + queries * MULTI_QUERY_VECTOR_PER_QUERY_MS
        tier = StrategyTier.ADVANCED
    elif strategy is RagStrategy.MULTI_QUERY_HYBRID:
        total = chunks * queries
        after_dedupe = math.floor(total * DEDUPE_RETENTION)
        latency = MULTI_QUERY_HYBRID_LATENCY_MS + queries * MULTI_QUERY_HYBRID_PER_QUERY_MS
        tier = StrategyTier.EXPERT

    if settings.reranking_enabled:
        latency += RERANKING_LATENCY_MS

    return PerformanceEstimate(
        total_chunks=total,
        after_dedupe=after_dedupe,
        estimated_latency_ms=latency,
        strategy_tier=tier,
    )
