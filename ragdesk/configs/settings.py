"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from ragdesk.configs.base import BaseSettings
from ragdesk.configs.database import DatabaseSettings
from ragdesk.configs.ingestion import IngestionSettings
from ragdesk.configs.pipeline_queue import PipelineQueueSettings
from ragdesk.configs.s3_documents import S3DocumentsSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    s3_documents: S3DocumentsSettings = Field(default_factory=S3DocumentsSettings)
    pipeline_queue: PipelineQueueSettings = Field(default_factory=PipelineQueueSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from ragdesk.configs import get_settings
        settings = get_settings()
    """
    return Settings()
