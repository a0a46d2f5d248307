"""
Client-side ingestion settings.

Where the ingestion core finds the REST service and how it polls it.

Dependencies: pydantic_settings
System role: Upload coordinator / status poller configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ragdesk.core.upload_policy import MAX_UPLOAD_BYTES


class IngestionSettings(BaseSettings):
    """Settings for the client-side ingestion core."""

    model_config = SettingsConfigDict(
        env_prefix="INGESTION_",
        case_sensitive=False,
        extra="ignore",
    )

    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the ragdesk REST service",
    )
    principal_id: str = Field(
        default="local-user",
        description="Principal id sent as X-Principal-ID",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Delay between document status polls",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for REST calls",
    )
    transfer_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Timeout for the binary PUT to storage",
    )
    max_upload_bytes: int = Field(
        default=MAX_UPLOAD_BYTES,
        description="Largest file accepted before any network call",
    )
