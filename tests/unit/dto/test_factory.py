"""Unit tests for DtoFactory caching, isolation and concurrency."""

import threading
from collections.abc import Callable
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from src.core.config import Settings
from src.core.exceptions import SchemaParseError, UnknownDtoError
from src.dto.dto import DtoState
from src.dto.factory import DtoFactory, get_dto_factory
from src.dto.loader import SchemaLoader


@pytest.mark.unit
class TestSchemaResolution:
    """Tests for mapping DTO names to schema files."""

    def test_schema_path_convention(
        self, factory: DtoFactory, schema_dir: Path
    ) -> None:
        """Names map to <directory>/<Name>Dto.yaml."""
        assert factory.schema_path("CreatePost") == schema_dir / "CreatePostDto.yaml"
        assert factory.schema_directory == schema_dir

    def test_custom_suffix(self, schema_dir: Path) -> None:
        """The suffix is configurable."""
        factory = DtoFactory(schema_dir, suffix=".schema.yml")

        assert factory.schema_path("Login") == schema_dir / "Login.schema.yml"

    def test_defaults_come_from_settings(
        self, monkeypatch: pytest.MonkeyPatch, schema_dir: Path
    ) -> None:
        """Directory and suffix default to dto_config."""
        monkeypatch.setenv("DTO_CONFIG__SCHEMA_DIRECTORY", str(schema_dir))
        monkeypatch.setenv("DTO_CONFIG__SCHEMA_FILE_SUFFIX", "Form.yaml")

        factory = DtoFactory(settings=Settings())

        assert factory.schema_path("Login") == schema_dir / "LoginForm.yaml"

    @pytest.mark.parametrize(
        "name", ["", "../etc/passwd", "Create Post", "1Post", "posts/Create"]
    )
    def test_rejects_non_identifier_names(self, factory: DtoFactory, name: str) -> None:
        """Names that are not plain identifiers never touch the filesystem."""
        with pytest.raises(UnknownDtoError) as exc_info:
            factory.create(name)

        assert exc_info.value.name == name
        assert "expected_path" not in exc_info.value.context

    def test_unknown_dto(self, factory: DtoFactory, schema_dir: Path) -> None:
        """A name without a file is a fatal schema error."""
        with pytest.raises(UnknownDtoError, match="Unknown DTO 'DoesNotExist'") as e:
            factory.create("DoesNotExist")

        assert e.value.context["expected_path"] == str(
            schema_dir / "DoesNotExistDto.yaml"
        )
        assert factory.cached_names() == []

    def test_unknown_names_leave_no_lock_behind(self, factory: DtoFactory) -> None:
        """Failed lookups of missing names do not grow the lock map."""
        for index in range(20):
            with pytest.raises(UnknownDtoError):
                factory.create(f"Missing{index}")

        assert factory._name_locks == {}

    def test_malformed_schema_is_not_cached(
        self, factory: DtoFactory, write_schema: Callable[[str, str], Path]
    ) -> None:
        """Parse failures propagate and leave nothing in the cache."""
        write_schema("Broken", "properties:\n  a: {type: money}\n")

        with pytest.raises(SchemaParseError, match="property 'a'"):
            factory.create("Broken")

        assert "Broken" not in factory.cached_names()


@pytest.mark.unit
class TestCaching:
    """Tests for the schema cache and DTO isolation."""

    def test_schema_is_parsed_once(
        self, schema_dir: Path, mocker: MockerFixture
    ) -> None:
        """Repeated creates reuse the cached schema."""
        loader = SchemaLoader()
        load_spy = mocker.spy(loader, "load")
        factory = DtoFactory(schema_dir, loader=loader)

        first = factory.create("CreatePost")
        second = factory.create("CreatePost")

        assert load_spy.call_count == 1
        assert first.schema is second.schema
        assert factory.cached_names() == ["CreatePost"]

    def test_each_create_returns_a_fresh_dto(self, factory: DtoFactory) -> None:
        """Values set on one DTO never appear on the next."""
        first = factory.create("CreatePost")
        first.set("title", "Leaked?")
        first.set("slug", "Bad Slug")

        second = factory.create("CreatePost")

        assert second is not first
        assert second.values == {}
        assert second.errors == []
        assert second.state is DtoState.EMPTY

    def test_clear_cache_forces_reload(
        self, factory: DtoFactory, write_schema: Callable[[str, str], Path]
    ) -> None:
        """After clear_cache() edited files are picked up."""
        write_schema("Tag", "properties:\n  name: {type: string}\n")
        assert factory.create("Tag").schema.property_names == ("name",)

        write_schema("Tag", "properties:\n  label: {type: string}\n")
        assert factory.create("Tag").schema.property_names == ("name",)

        factory.clear_cache()

        assert factory.cached_names() == []
        assert factory.create("Tag").schema.property_names == ("label",)

    def test_clear_cache_keeps_name_locks(self, factory: DtoFactory) -> None:
        """A reload after clear_cache() is serialized by the same lock."""
        factory.create("CreatePost")
        lock = factory._name_locks["CreatePost"]

        factory.clear_cache()
        factory.create("CreatePost")

        assert factory._name_locks["CreatePost"] is lock

    def test_get_dto_factory_is_cached(
        self, monkeypatch: pytest.MonkeyPatch, schema_dir: Path
    ) -> None:
        """The module accessor returns one settings-configured instance."""
        monkeypatch.setenv("DTO_CONFIG__SCHEMA_DIRECTORY", str(schema_dir))

        factory = get_dto_factory()

        assert factory is get_dto_factory()
        assert factory.schema_directory == schema_dir


@pytest.mark.unit
class TestConcurrency:
    """Tests for concurrent first use of a name."""

    def test_concurrent_first_use_parses_once(
        self, schema_dir: Path, mocker: MockerFixture
    ) -> None:
        """Racing threads share one parse and one schema object."""
        loader = SchemaLoader()
        original_load = loader.load
        started = threading.Event()
        release = threading.Event()

        def slow_load(path: Path, name: str | None = None) -> object:
            started.set()
            release.wait(timeout=5)
            return original_load(path, name=name)

        load_mock = mocker.patch.object(loader, "load", side_effect=slow_load)
        factory = DtoFactory(schema_dir, loader=loader)
        schemas: list[object] = []
        errors: list[BaseException] = []

        def worker() -> None:
            try:
                schemas.append(factory.create("CreatePost").schema)
            except BaseException as e:  # noqa: BLE001 - surfaced by the assertion
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        assert started.wait(timeout=5)
        release.set()
        for thread in threads:
            thread.join(timeout=5)

        assert errors == []
        assert load_mock.call_count == 1
        assert len(schemas) == 8
        assert all(schema is schemas[0] for schema in schemas)

    def test_distinct_names_do_not_block_each_other(
        self, factory: DtoFactory, write_schema: Callable[[str, str], Path]
    ) -> None:
        """Each name gets its own schema."""
        write_schema("Tag", "properties:\n  name: {type: string}\n")

        post = factory.create("CreatePost")
        tag = factory.create("Tag")

        assert post.schema is not tag.schema
        assert factory.cached_names() == ["CreatePost", "Tag"]
