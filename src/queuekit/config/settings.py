"""
Module: settings.py
Description: Client configuration using pydantic-settings.

Loads queue client settings from environment variables with
validation and defaults. Supports .env files for local development
against an emulator endpoint.
"""

import re
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Service-imposed ceilings
MAX_BATCH_ENTRIES = 10
MAX_WAIT_TIME_SECONDS = 20


class QueueSettings(BaseSettings):
    """Queue client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")

    # AWS settings
    aws_region: str = Field(default="us-east-1", description="AWS region")
    aws_profile: Optional[str] = Field(
        default=None,
        description="Profile name used by the shared credentials file provider"
    )

    # SQS settings
    sqs_endpoint_url: Optional[str] = Field(
        default=None,
        description="Override endpoint URL (local emulators)"
    )
    sqs_max_batch_size: int = Field(
        default=MAX_BATCH_ENTRIES,
        ge=1,
        le=MAX_BATCH_ENTRIES,
        description="Entries per batch call"
    )
    sqs_max_concurrent_batches: int = Field(
        default=4,
        ge=1,
        description="Batch chunks dispatched concurrently"
    )
    sqs_read_timeout: int = Field(
        default=70,
        gt=MAX_WAIT_TIME_SECONDS,
        description="HTTP read timeout in seconds, must exceed the long-poll ceiling"
    )
    sqs_connect_timeout: int = Field(
        default=3,
        ge=1,
        le=60,
        description="HTTP connect timeout in seconds"
    )

    @field_validator('sqs_endpoint_url')
    @classmethod
    def validate_endpoint_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate endpoint override is an HTTP(S) URL."""
        if v is None:
            return v
        if not re.match(r'^https?://', v):
            raise ValueError("sqs_endpoint_url must be a valid HTTP/HTTPS URL")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()


# Global settings instance
settings = QueueSettings()
