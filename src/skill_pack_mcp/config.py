"""Configuration management for Skill Pack MCP Server."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if exists and not in test mode
# This ensures environment variables are available before Config is instantiated
if not os.getenv("TESTING") and Path(".env").exists():
    load_dotenv(".env")


class Config(BaseSettings):
    """Application configuration loaded from environment variables.

    Note: This class reads from environment variables only.
    The .env file is loaded once at import time unless TESTING is set.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # Skill pack configuration
    skill_pack_version: str = Field(
        default="1.0.0",
        description="Version string written into SKILL.md and assets/schema.json",
    )
    compression_level: int = Field(
        default=9,
        description="Deflate level for the in-process archive writer",
        ge=0,
        le=9,
    )

    # Native compressor (accelerated path for large payloads)
    native_compressor_command: str | None = Field(
        default="zip_from_stdin",
        description="Native compressor executable (whitespace-separated args allowed). Empty disables it",
    )
    native_compressor_threshold_bytes: int = Field(
        default=512 * 1024,
        description="Total entry size at or above which the native compressor is tried first",
        ge=0,
    )
    native_compressor_timeout: float | None = Field(
        default=None,
        description="Optional timeout in seconds for one native compressor run",
        gt=0,
    )

    # Object storage configuration
    storage_backend: str = Field(
        default="local",
        description="Archive storage backend (local, s3, none)",
    )
    storage_directory: Path = Field(
        default=Path("./skill-packs"),
        description="Directory used by the local storage backend",
    )
    r2_endpoint: str | None = Field(
        default=None,
        description="S3-compatible endpoint URL (e.g., https://<account>.r2.cloudflarestorage.com)",
    )
    r2_access_key_id: str | None = Field(
        default=None,
        description="Access key ID for the S3-compatible bucket",
    )
    r2_secret_access_key: str | None = Field(
        default=None,
        description="Secret access key for the S3-compatible bucket",
    )
    r2_bucket: str | None = Field(
        default=None,
        description="Bucket name for skill archives",
    )
    r2_region: str = Field(
        default="auto",
        description="Region name passed to the S3 client",
    )
    download_url_expiry_seconds: int = Field(
        default=24 * 60 * 60,
        description="Lifetime of presigned download URLs",
        ge=1,
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    def get_native_compressor_args(self) -> list[str]:
        """Split the native compressor command into an argument list.

        Returns:
            Argument list. Empty if the native compressor is disabled.
        """
        if not self.native_compressor_command:
            return []
        return self.native_compressor_command.split()

    def is_s3_configured(self) -> bool:
        """Check whether all S3 settings required for uploads are present."""
        return bool(
            self.r2_endpoint
            and self.r2_access_key_id
            and self.r2_secret_access_key
            and self.r2_bucket
        )

    def validate_storage_config(self) -> None:
        """Validate the storage backend selection.

        Raises:
            ValueError: If the backend name is unknown.
        """
        valid_backends = ["local", "s3", "none"]
        if self.storage_backend.lower() not in valid_backends:
            raise ValueError(
                f"Invalid STORAGE_BACKEND '{self.storage_backend}'. "
                f"Must be one of: {', '.join(valid_backends)}."
            )


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance (singleton pattern)."""
    global _config
    if _config is None:
        _config = Config()
    return _config
