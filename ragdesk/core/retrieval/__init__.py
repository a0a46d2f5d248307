"""Retrieval configuration helpers."""

from ragdesk.core.retrieval.estimator import estimate_performance

__all__ = ["estimate_performance"]
