"""Library configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from s3_classes.core.enums import AddressingStyle, RetryMode


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # S3 connection settings
    s3_endpoint_url: str | None = Field(
        default=None,
        description="Custom S3 endpoint URL (MinIO, R2, ...). None means AWS.",
    )
    s3_region: str | None = Field(default=None, description="S3 region name")
    s3_access_key_id: str | None = Field(
        default=None,
        description="Access key ID. None falls back to the default credential chain.",
    )
    s3_secret_access_key: str | None = Field(
        default=None,
        description="Secret access key",
    )
    s3_addressing_style: AddressingStyle = Field(
        default=AddressingStyle.AUTO,
        description="Bucket addressing style",
    )
    s3_use_ssl: bool = Field(default=True, description="Use TLS for S3 connections")

    # Transport behaviour (owned by the SDK, not by this library)
    s3_connect_timeout: int = Field(default=10, ge=1, description="Connect timeout in seconds")
    s3_read_timeout: int = Field(default=60, ge=1, description="Read timeout in seconds")
    s3_max_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Total attempts per request, handled by botocore",
    )
    s3_retry_mode: RetryMode = Field(
        default=RetryMode.STANDARD,
        description="botocore retry mode",
    )

    # Batch and streaming defaults
    default_concurrency: int = Field(
        default=1,
        ge=1,
        description="Default number of in-flight requests for batch gets",
    )
    stream_chunk_size: int = Field(
        default=64 * 1024,
        ge=1,
        description="Chunk size in bytes when streaming objects to local files",
    )

    @computed_field
    @property
    def s3_configured(self) -> bool:
        """Check if explicit credentials were supplied."""
        return bool(self.s3_access_key_id and self.s3_secret_access_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    get_settings.cache_clear()
