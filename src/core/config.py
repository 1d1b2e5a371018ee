"""Centralized configuration management with environment-aware defaults.

This module implements the configuration system using Pydantic Settings,
providing type-safe configuration with validation and environment variable
support.

Features:
- **Type safety**: All configuration values are validated and typed
- **Environment variables**: Supports .env files and environment overrides
- **Nested configuration**: Uses __ delimiter (e.g. DTO_CONFIG__SCHEMA_DIRECTORY)
- **Caching**: Configuration is cached for performance

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in project root
3. Default values in model definitions
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogConfig(BaseModel):
    """Simplified logging configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "api_key",
            "authorization",
        ],
        description="Field names to redact",
    )


class DtoConfig(BaseModel):
    """Settings for schema discovery and DTO population."""

    schema_directory: Path = Field(
        default=Path("schemas"),
        description="Directory holding one schema definition file per DTO",
    )
    schema_file_suffix: str = Field(
        default="Dto.yaml",
        min_length=1,
        description="Suffix appended to a DTO name to build its file name",
    )
    strip_whitespace: bool = Field(
        default=True,
        description="Strip surrounding whitespace from string input",
    )
    strict_population: bool = Field(
        default=False,
        description="Reject input fields the schema does not declare",
    )
    date_format: str = Field(
        default="%Y-%m-%d",
        min_length=1,
        description="strptime format for date properties without their own format",
    )

    @field_validator("schema_file_suffix", mode="after")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        """Reject suffixes that would escape the schema directory."""
        if "/" in v or "\\" in v:
            msg = "schema_file_suffix must not contain path separators"
            raise ValueError(msg)
        return v


class Settings(BaseSettings):
    """Main settings class for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
    )

    # Application settings
    app_name: str = Field(default="Dtokit", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(default=True, description="Debug mode flag")

    # Logging configuration
    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )

    # DTO engine configuration
    dto_config: DtoConfig = Field(
        default_factory=DtoConfig, description="DTO engine configuration"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Managed runtimes ingest structured output
        if os.getenv("K_SERVICE") or os.getenv("AWS_EXECUTION_ENV"):
            return "json"

        if self.environment == "development":
            return "console"
        return "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
