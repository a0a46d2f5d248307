"""
Base configuration settings.

Shared model config and the runtime switches every entry point reads:
deployment environment, debug mode and log level.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict
from pydantic import Field


class BaseSettings(PydanticBaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment environment; API docs are hidden in production",
    )
    debug: bool = Field(
        default=False,
        description="Verbose logging and FastAPI debug tracebacks",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level when debug is off (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "production"

    @property
    def effective_log_level(self) -> str:
        """DEBUG while debug is on, otherwise the configured level."""
        if self.debug:
            return "DEBUG"
        return self.log_level.upper()
