"""
Observability module.

Provides logging configuration, correlation ID tracking and request middleware.
"""

from ragdesk.observability.correlation import get_correlation_id, set_correlation_id
from ragdesk.observability.logger import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "get_correlation_id",
    "set_correlation_id",
]
