"""
Pipeline queue configuration.

Settings for the SQS queue that hands confirmed uploads to the processing worker.

Dependencies: pydantic_settings
System role: Processing dispatch configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineQueueSettings(BaseSettings):
    """Settings for pipeline job dispatch."""

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_QUEUE_",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Send a processing job on upload confirmation",
    )
    queue_url: str = Field(
        default="",
        description="SQS queue URL consumed by the ingestion worker",
    )
    region: str = Field(
        default="us-east-1",
        description="AWS region for the queue",
    )
