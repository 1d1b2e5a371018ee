"""Unit tests for the application factory."""

from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pytest_mock import MockerFixture

from src.api.main import create_app
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings
from src.core.exceptions import DtokitError
from src.dto.factory import get_dto_factory


@pytest.fixture(autouse=True)
def no_logging_setup(mocker: MockerFixture) -> None:
    """Keep the global Loguru configuration untouched."""
    mocker.patch("src.api.main.setup_logging")


@pytest.mark.unit
class TestCreateApp:
    """Tests for create_app."""

    def test_configures_application(self) -> None:
        """Title, version and response class come from settings."""
        app = create_app(Settings(app_name="Forms", app_version="2.0.0"))

        assert isinstance(app, FastAPI)
        assert app.title == "Forms"
        assert app.version == "2.0.0"
        assert DtokitError in app.exception_handlers
        assert app.router.default_response_class is ORJSONResponse

    def test_info_endpoint(self) -> None:
        """/info reports application metadata."""
        client = TestClient(create_app())

        response = client.get("/info")

        assert response.status_code == 200
        assert response.json() == {
            "app_name": "Dtokit",
            "version": "0.1.0",
            "environment": "development",
            "debug": True,
        }

    def test_health_reports_cached_schemas(
        self, monkeypatch: pytest.MonkeyPatch, schema_dir: Path
    ) -> None:
        """/health lists the schema directory and cached names."""
        monkeypatch.setenv("DTO_CONFIG__SCHEMA_DIRECTORY", str(schema_dir))
        client = TestClient(create_app())
        get_dto_factory().create("CreatePost")

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "schema_directory": str(schema_dir),
            "cached_schemas": ["CreatePost"],
        }

    def test_health_degraded_without_schema_directory(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """A missing schema directory degrades the health status."""
        monkeypatch.setenv("DTO_CONFIG__SCHEMA_DIRECTORY", str(tmp_path / "missing"))
        client = TestClient(create_app())

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
