"""
Configuration management for cargo-feature-aspect.

This module provides centralized configuration using Pydantic settings
with support for environment variables and .env files. Command line options
always take precedence over these settings.
"""

import shutil
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ValidationResult(BaseModel):
    valid: bool = True
    errors: list[str] = []
    warnings: list[str] = []


class FeatureAspectSettings(BaseSettings):
    """cargo-feature-aspect configuration settings."""

    debug: bool = Field(default=False)

    # Cargo settings
    cargo_path: str = Field(default="cargo", description="Cargo executable used to read workspace metadata")
    metadata_timeout_seconds: int = Field(default=120, description="Timeout for a single `cargo metadata` run")

    # Feature settings
    sort_params: bool = Field(default=True, description="Sort feature params lexicographically unless --no-sort is passed")

    # Logging settings
    log_level: str = Field(default="WARNING", description="Logging level")
    log_structured: bool = Field(default=False, description="Emit JSON log records")
    log_file: str = Field(default="", description="Optional log file path")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="FEATURE_ASPECT_",
        extra="ignore",
    )

    def get_log_file_path(self) -> Path | None:
        """Get log file path as Path object, or None when file logging is off."""
        if not self.log_file:
            return None
        return Path(self.log_file).expanduser().resolve()

    def validate_settings(self) -> ValidationResult:
        """Validate settings and return status information."""
        status = ValidationResult()

        if self.log_level.upper() not in LOG_LEVELS:
            status.errors.append(f"Invalid log level: {self.log_level} (expected one of {', '.join(LOG_LEVELS)})")
            status.valid = False

        if self.metadata_timeout_seconds < 1:
            status.errors.append("Metadata timeout must be at least 1 second")
            status.valid = False

        if shutil.which(self.cargo_path) is None:
            status.warnings.append(f"Cargo executable not found on PATH: {self.cargo_path}")

        return status


# Global settings instance
settings = FeatureAspectSettings()


def get_settings() -> FeatureAspectSettings:
    """Get the global settings instance."""
    return settings
