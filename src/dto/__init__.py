"""Schema-driven data-transfer objects.

This package implements the DTO engine:

- **loader**: YAML schema definitions parsed into immutable ``Schema`` objects
- **rules**: property rules, constraint checks and the ``Schema`` type
- **coercion**: conversion of raw input into declared property types
- **validators**: registry of named custom predicates
- **dto**: the schema-bound value bag and its validation result
- **factory**: name to schema resolution, caching and DTO creation
- **populator**: allowlisted population from key/value input

Typical use::

    dto = get_dto_factory().create("CreatePost")
    RequestPopulator().populate(dto, form_data)
    result = dto.validate()
    if result.is_valid:
        repository.save(dto.to_dict())
"""

from src.dto.coercion import PropertyType
from src.dto.dto import Dto, DtoState, FieldError, ValidationResult
from src.dto.factory import DtoFactory, get_dto_factory
from src.dto.loader import SchemaLoader
from src.dto.populator import (
    RequestPopulator,
    create_dto_from_input,
    validate_dto,
    validate_dto_or_fail,
)
from src.dto.rules import UNSET, PropertyRule, Schema
from src.dto.validators import register_validator

__all__ = [
    "UNSET",
    "Dto",
    "DtoFactory",
    "DtoState",
    "FieldError",
    "PropertyRule",
    "PropertyType",
    "RequestPopulator",
    "Schema",
    "SchemaLoader",
    "ValidationResult",
    "create_dto_from_input",
    "get_dto_factory",
    "register_validator",
    "validate_dto",
    "validate_dto_or_fail",
]
