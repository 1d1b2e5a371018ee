"""DTO factory with a process-wide schema cache.

The factory resolves a DTO name to ``<schema_directory>/<Name><suffix>``
(``CreatePost`` -> ``schemas/CreatePostDto.yaml`` with the default settings),
parses it once and caches the resulting ``Schema``. The cache holds schemas
only. Every ``create()`` call returns a fresh ``Dto`` that references the
cached schema and owns its own values and errors, so concurrent requests never
observe each other's in-flight state.

Concurrency: the first lookup of a name is serialized per name. A
factory-wide lock guards the map of per-name locks and writes to the cache;
the parse runs under the name's lock and re-checks the cache first, so at most
one parse happens per name and only fully built schemas are ever visible.
Lookups of cached names take no lock.
"""

import re
import threading
from functools import lru_cache
from pathlib import Path
from typing import Final

from loguru import logger

from src.core.config import Settings, get_settings
from src.core.constants import DTO_NAME_PATTERN
from src.core.exceptions import UnknownDtoError
from src.dto.dto import Dto
from src.dto.loader import SchemaLoader
from src.dto.rules import Schema

_NAME_RE: Final[re.Pattern[str]] = re.compile(DTO_NAME_PATTERN)


class DtoFactory:
    """Creates isolated DTO instances from cached schemas.

    Args:
        schema_directory: Directory holding schema files. Defaults to
            ``settings.dto_config.schema_directory``.
        suffix: File name suffix appended to DTO names. Defaults to
            ``settings.dto_config.schema_file_suffix``.
        loader: Schema loader to use. Defaults to one configured from settings.
        settings: Settings to read defaults from. Defaults to ``get_settings()``.
    """

    def __init__(
        self,
        schema_directory: str | Path | None = None,
        *,
        suffix: str | None = None,
        loader: SchemaLoader | None = None,
        settings: Settings | None = None,
    ) -> None:
        config = (settings or get_settings()).dto_config
        if schema_directory is None:
            schema_directory = config.schema_directory
        self._directory = Path(schema_directory)
        self._suffix = suffix or config.schema_file_suffix
        self._loader = loader or SchemaLoader(
            strip_whitespace=config.strip_whitespace,
            date_format=config.date_format,
        )
        self._cache: dict[str, Schema] = {}
        self._lock = threading.Lock()
        self._name_locks: dict[str, threading.Lock] = {}

    @property
    def schema_directory(self) -> Path:
        """Directory schema files are resolved against."""
        return self._directory

    def schema_path(self, name: str) -> Path:
        """Map a DTO name to its schema file path by convention.

        Raises:
            UnknownDtoError: If the name is not a plain identifier.
        """
        if not isinstance(name, str) or not _NAME_RE.match(name):
            raise UnknownDtoError(str(name))
        return self._directory / f"{name}{self._suffix}"

    def get_schema(self, name: str) -> Schema:
        """Return the cached schema for ``name``, loading it on first use.

        Raises:
            UnknownDtoError: If no schema file exists for the name.
            SchemaNotFoundError: If the file disappears while being read.
            SchemaParseError: If the schema file is malformed.
        """
        schema = self._cache.get(name)
        if schema is not None:
            return schema

        path = self.schema_path(name)
        with self._lock:
            name_lock = self._name_locks.setdefault(name, threading.Lock())

        with name_lock:
            schema = self._cache.get(name)
            if schema is not None:
                return schema

            if not path.is_file():
                logger.warning(
                    "No schema definition for {dto}", dto=name, path=str(path)
                )
                # Unknown names must not accumulate locks
                with self._lock:
                    if self._name_locks.get(name) is name_lock:
                        del self._name_locks[name]
                raise UnknownDtoError(name, path)

            schema = self._loader.load(path, name=name)
            with self._lock:
                self._cache[name] = schema

        logger.info(
            "Cached schema {dto} ({count} properties)",
            dto=name,
            count=len(schema),
            path=str(path),
        )
        return schema

    def create(self, name: str) -> Dto:
        """Return a new, empty DTO bound to the schema for ``name``.

        Raises:
            UnknownDtoError: If the name cannot be mapped to a schema file.
            SchemaParseError: If the schema file is malformed.
        """
        return Dto(self.get_schema(name))

    def cached_names(self) -> list[str]:
        """Names whose schemas are currently cached, sorted."""
        with self._lock:
            return sorted(self._cache)

    def clear_cache(self) -> None:
        """Drop every cached schema. Intended for tests and reloads.

        Per-name locks are kept so a parse in flight stays serialized with
        lookups that start after the clear.
        """
        with self._lock:
            self._cache.clear()
        logger.debug("Schema cache cleared")


@lru_cache
def get_dto_factory() -> DtoFactory:
    """Get the cached, settings-configured factory instance."""
    return DtoFactory()
