"""Standardized error response schema for API error handling.

Every error leaving the API uses ``ErrorResponse``. DTO validation failures
carry their field-level messages under ``details.validation_errors`` in schema
declaration order, which is what a form renderer needs to place messages next
to inputs.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ServiceInfo(BaseModel):
    """Service information for error context."""

    name: str = Field(
        ...,
        description="Name of the service",
        examples=["Dtokit"],
    )

    version: str = Field(
        ...,
        description="Version of the service",
        examples=["0.1.0"],
    )

    environment: str = Field(
        ...,
        description="Environment where the service is running",
        examples=["development", "staging", "production"],
    )


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    error_code: str = Field(
        ...,
        description="Unique error code identifying the error type",
        examples=["VALIDATION_ERROR", "UNKNOWN_DTO", "INTERNAL_ERROR"],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["title: is required, slug: must match the pattern ^[a-z0-9-]+$"],
    )

    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details (e.g., field-specific validation errors)",
        examples=[{"validation_errors": {"title": ["is required"]}}],
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the error occurred (with timezone)",
        examples=["2024-06-14T12:00:00+00:00"],
    )

    severity: str | None = Field(
        default=None,
        description="Error severity level (LOW, MEDIUM, HIGH, CRITICAL)",
        examples=["LOW", "HIGH"],
    )

    service_info: ServiceInfo | None = Field(
        default=None,
        description="Information about the service that generated the error",
    )

    debug_info: dict[str, Any] | None = Field(
        default=None,
        description="Debug information (only populated in development environments)",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error_code": "VALIDATION_ERROR",
                    "message": "title: is required, slug: must match the pattern "
                    "^[a-z0-9-]+$",
                    "details": {
                        "dto": "CreatePost",
                        "validation_errors": {
                            "title": ["is required"],
                            "slug": ["must match the pattern ^[a-z0-9-]+$"],
                        },
                    },
                    "timestamp": "2024-06-14T12:00:00+00:00",
                    "severity": "LOW",
                    "service_info": {
                        "name": "Dtokit",
                        "version": "0.1.0",
                        "environment": "production",
                    },
                },
            ]
        }
    }
