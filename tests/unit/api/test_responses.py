"""Unit tests for ORJSONResponse and the error response schema."""

from datetime import UTC, date, datetime

import orjson
import pytest
from fastapi.responses import JSONResponse

from src.api.schemas.errors import ErrorResponse, ServiceInfo
from src.api.utils.responses import ORJSONResponse


@pytest.mark.unit
class TestORJSONResponse:
    """Test suite for ORJSONResponse class."""

    def test_initialization(self) -> None:
        """Test ORJSONResponse initializes correctly with proper media type."""
        response = ORJSONResponse(content={"test": "data"})

        assert response.media_type == "application/json"
        assert isinstance(response, JSONResponse)

    def test_keeps_insertion_order(self) -> None:
        """Field errors keep declaration order instead of being sorted."""
        response = ORJSONResponse(content={"slug": ["x"], "body": ["y"]})

        assert response.body == b'{"slug":["x"],"body":["y"]}'

    def test_serializes_dates(self) -> None:
        """Date property values serialize natively."""
        response = ORJSONResponse(content={"published_on": date(2024, 6, 14)})

        assert orjson.loads(response.body) == {"published_on": "2024-06-14"}

    def test_renders_pydantic_models(self) -> None:
        """Models are dumped before serialization."""
        info = ServiceInfo(name="Dtokit", version="0.1.0", environment="production")

        response = ORJSONResponse(content=info)

        assert orjson.loads(response.body) == {
            "name": "Dtokit",
            "version": "0.1.0",
            "environment": "production",
        }


@pytest.mark.unit
class TestErrorResponse:
    """Tests for the ErrorResponse model."""

    def test_minimal_response(self) -> None:
        """Only code and message are required; the timestamp is timezone-aware."""
        response = ErrorResponse(error_code="VALIDATION_ERROR", message="Invalid")

        assert response.details is None
        assert response.severity is None
        assert response.timestamp.tzinfo is not None
        assert response.timestamp <= datetime.now(UTC)

    def test_json_dump(self) -> None:
        """Validation details survive a JSON dump unchanged."""
        response = ErrorResponse(
            error_code="VALIDATION_ERROR",
            message="title: is required",
            details={"validation_errors": {"title": ["is required"]}},
            severity="LOW",
        )

        dumped = response.model_dump(mode="json")

        assert dumped["details"] == {"validation_errors": {"title": ["is required"]}}
        assert isinstance(dumped["timestamp"], str)
