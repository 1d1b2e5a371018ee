"""Root conftest.py for the Dtokit test suite.

This file contains project-wide fixtures and pytest configuration.
"""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from src.core.config import get_settings
from src.core.error_context import _get_sensitive_fields
from src.dto.factory import DtoFactory, get_dto_factory


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Clear cached settings, factory and sensitive fields around each test."""
    get_settings.cache_clear()
    get_dto_factory.cache_clear()
    _get_sensitive_fields.cache_clear()
    yield
    get_settings.cache_clear()
    get_dto_factory.cache_clear()
    _get_sensitive_fields.cache_clear()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove app-specific environment variables that would leak into Settings.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        pytest.MonkeyPatch: The monkeypatch instance for env manipulation.
    """
    env_prefixes = [
        "APP_",
        "ENVIRONMENT",
        "DEBUG",
        "LOG_CONFIG__",
        "DTO_CONFIG__",
    ]

    for key in list(os.environ):
        if any(key.upper().startswith(prefix) for prefix in env_prefixes):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch


CREATE_POST_SCHEMA = """\
name: CreatePost
properties:
  title:
    type: string
    required: true
    length: {min: 1, max: 255}
  slug:
    type: string
    required: true
    pattern: "^[a-z0-9-]+$"
  body:
    type: string
    required: true
    min_length: 10
  status:
    type: enum
    values: [draft, published]
    default: draft
  view_count:
    type: integer
    min: 0
  published_on:
    type: date
  featured:
    type: boolean
"""


@pytest.fixture
def schema_dir(tmp_path: Path) -> Path:
    """Provide a schema directory holding CreatePostDto.yaml.

    Returns:
        Path: The directory path.
    """
    directory = tmp_path / "schemas"
    directory.mkdir()
    (directory / "CreatePostDto.yaml").write_text(CREATE_POST_SCHEMA)
    return directory


@pytest.fixture
def write_schema(schema_dir: Path) -> Callable[[str, str], Path]:
    """Provide a helper writing ``<Name>Dto.yaml`` into the schema directory.

    Returns:
        Callable[[str, str], Path]: Takes the DTO name and YAML text.
    """

    def _write(name: str, text: str) -> Path:
        path = schema_dir / f"{name}Dto.yaml"
        path.write_text(text)
        return path

    return _write


@pytest.fixture
def factory(schema_dir: Path) -> DtoFactory:
    """Provide a factory reading from the temporary schema directory."""
    return DtoFactory(schema_dir)
