"""Parsing of YAML schema definition files into immutable schemas.

One file declares one DTO::

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
      status:
        type: enum
        values: [draft, published]
        default: draft

The shape of every declaration is checked with pydantic models; the
constraint chain is then built in the order the constraint keys appear in the
file. Any problem aborts the load with ``SchemaParseError`` naming the file
and, where the problem is local to one property, that property. A partially
built schema is never returned.
"""

import re
from collections.abc import Callable, Hashable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any, Final, Self, TypeAlias

import yaml
from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    NonNegativeInt,
    StrictBool,
    StrictInt,
    StrictStr,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError
from yaml.constructor import ConstructorError
from yaml.nodes import MappingNode

from src.core.exceptions import SchemaNotFoundError, SchemaParseError
from src.dto.coercion import PropertyType
from src.dto.rules import (
    Constraint,
    EnumConstraint,
    LengthConstraint,
    PatternConstraint,
    PredicateConstraint,
    PropertyRule,
    RangeConstraint,
    Schema,
    is_blank,
)
from src.dto.validators import get_validator

TYPE_NAMES: Final[frozenset[str]] = frozenset(t.value for t in PropertyType)
MERGE_TAG: Final[str] = "tag:yaml.org,2002:merge"

_Fail: TypeAlias = Callable[[str], SchemaParseError]

# Constraint keys, and the property types each one applies to
CONSTRAINT_TYPES: Final[dict[str, frozenset[PropertyType]]] = {
    "length": frozenset({PropertyType.STRING}),
    "min_length": frozenset({PropertyType.STRING}),
    "max_length": frozenset({PropertyType.STRING}),
    "pattern": frozenset({PropertyType.STRING}),
    "range": frozenset({PropertyType.INTEGER}),
    "min": frozenset({PropertyType.INTEGER}),
    "max": frozenset({PropertyType.INTEGER}),
    "values": frozenset(
        {PropertyType.STRING, PropertyType.INTEGER, PropertyType.ENUM}
    ),
    "validator": frozenset(PropertyType),
}

# Member type required by `values` on non-enum properties
MEMBER_TYPES: Final[dict[PropertyType, type]] = {
    PropertyType.STRING: str,
    PropertyType.INTEGER: int,
}


class _DuplicateKeyError(ConstructorError):
    """A YAML mapping declares the same key twice."""

    def __init__(
        self, key: Hashable, node: MappingNode, key_node: yaml.Node
    ) -> None:
        self.key = key
        super().__init__(
            "while constructing a mapping",
            node.start_mark,
            f"found duplicate key {key!r}",
            key_node.start_mark,
        )


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicate mapping keys."""

    def construct_mapping(
        self,
        node: MappingNode,
        deep: bool = False,  # noqa: FBT001, FBT002 - PyYAML signature
    ) -> dict[Any, Any]:
        seen: set[Hashable] = set()
        for key_node, _ in node.value:
            # Merged keys may be overridden; flatten_mapping resolves them
            if key_node.tag == MERGE_TAG:
                continue
            key = self.construct_object(key_node, deep=deep)
            if isinstance(key, Hashable):
                if key in seen:
                    raise _DuplicateKeyError(key, node, key_node)
                seen.add(key)
        return super().construct_mapping(node, deep=deep)


class _Bounds(BaseModel):
    """``{min: .., max: ..}`` pair shared by length and range declarations."""

    model_config = ConfigDict(extra="forbid")

    min: StrictInt | None = None
    max: StrictInt | None = None

    @model_validator(mode="after")
    def check_order(self) -> Self:
        """Require at least one bound and min <= max."""
        if self.min is None and self.max is None:
            msg = "at least one of min or max is required"
            raise ValueError(msg)
        if self.min is not None and self.max is not None and self.min > self.max:
            msg = f"min ({self.min}) is greater than max ({self.max})"
            raise ValueError(msg)
        return self


class LengthDeclaration(_Bounds):
    """Length bounds; both must be non-negative."""

    min: NonNegativeInt | None = None
    max: NonNegativeInt | None = None


class PropertyDeclaration(BaseModel):
    """Raw shape of one property entry."""

    model_config = ConfigDict(extra="forbid")

    type: PropertyType
    required: StrictBool = False
    default: Any = None
    description: StrictStr | None = None
    format: StrictStr | None = None
    length: LengthDeclaration | None = None
    min_length: NonNegativeInt | None = None
    max_length: NonNegativeInt | None = None
    pattern: StrictStr | None = None
    range: _Bounds | None = None
    min: StrictInt | None = None
    max: StrictInt | None = None
    values: list[StrictStr | StrictInt] | None = None
    validator: StrictStr | None = None


class SchemaDeclaration(BaseModel):
    """Raw shape of a schema file's top level."""

    model_config = ConfigDict(extra="forbid")

    name: StrictStr | None = None
    description: StrictStr | None = None
    properties: dict[str, Any]


def _describe_pydantic_error(error: PydanticValidationError) -> str:
    parts = []
    for detail in error.errors():
        location = ".".join(str(loc) for loc in detail["loc"])
        parts.append(f"{location}: {detail['msg']}" if location else detail["msg"])
    return "; ".join(parts)


class SchemaLoader:
    """Builds ``Schema`` objects from YAML definitions.

    Args:
        strip_whitespace: Bake whitespace stripping into string properties.
        date_format: strptime format for date properties without ``format``.
    """

    def __init__(
        self, *, strip_whitespace: bool = True, date_format: str = "%Y-%m-%d"
    ) -> None:
        self.strip_whitespace = strip_whitespace
        self.date_format = date_format

    def load(self, path: str | Path, name: str | None = None) -> Schema:
        """Read and parse the schema file at ``path``.

        Args:
            path: Location of the YAML definition.
            name: DTO name the caller resolved the path from. Defaults to the
                file's declared ``name``, then to the file stem.

        Returns:
            Schema: The fully parsed, immutable schema.

        Raises:
            SchemaNotFoundError: If no file exists at ``path``.
            SchemaParseError: If the file is unreadable or malformed.
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise SchemaNotFoundError(path, cause=e) from e
        except (OSError, UnicodeDecodeError) as e:
            raise SchemaParseError(path, f"cannot read file: {e}", cause=e) from e

        try:
            document = yaml.load(text, Loader=_UniqueKeyLoader)  # noqa: S506
        except yaml.YAMLError as e:
            raise SchemaParseError(path, f"invalid YAML: {e}", cause=e) from e

        schema = self.parse(document, source=path, name=name)
        logger.debug(
            "Loaded schema {dto} from {path}",
            dto=schema.name,
            path=str(path),
            properties=len(schema),
        )
        return schema

    def parse(
        self,
        document: object,
        source: str | Path = "<memory>",
        name: str | None = None,
    ) -> Schema:
        """Build a schema from an already decoded YAML document.

        Raises:
            SchemaParseError: If the document is malformed.
        """
        if not isinstance(document, Mapping):
            raise SchemaParseError(source, "top level must be a mapping")

        try:
            declaration = SchemaDeclaration.model_validate(document)
        except PydanticValidationError as e:
            raise SchemaParseError(source, _describe_pydantic_error(e), cause=e) from e

        schema_name = self._resolve_name(declaration, source, name)
        if not declaration.properties:
            raise SchemaParseError(source, "no properties declared")

        rules = tuple(
            self._parse_property(prop_name, raw, source)
            for prop_name, raw in declaration.properties.items()
        )
        return Schema(
            name=schema_name,
            properties=rules,
            source=str(source),
            description=declaration.description,
        )

    @staticmethod
    def _resolve_name(
        declaration: SchemaDeclaration, source: str | Path, name: str | None
    ) -> str:
        declared = declaration.name
        if name is not None and declared is not None and declared != name:
            raise SchemaParseError(
                source, f"declares name '{declared}' but was requested as '{name}'"
            )
        return name or declared or Path(source).stem

    def _parse_property(
        self, prop_name: object, raw: object, source: str | Path
    ) -> PropertyRule:
        if not isinstance(prop_name, str) or not prop_name.strip():
            raise SchemaParseError(source, f"invalid property name {prop_name!r}")
        if not isinstance(raw, Mapping):
            raise SchemaParseError(
                source, "declaration must be a mapping", property_name=prop_name
            )

        declared_type = raw.get("type")
        if declared_type is None:
            raise SchemaParseError(source, "missing type", property_name=prop_name)
        if not isinstance(declared_type, str) or declared_type not in TYPE_NAMES:
            raise SchemaParseError(
                source, f"unknown type {declared_type!r}", property_name=prop_name
            )

        try:
            decl = PropertyDeclaration.model_validate(raw)
        except PydanticValidationError as e:
            raise SchemaParseError(
                source, _describe_pydantic_error(e), property_name=prop_name, cause=e
            ) from e

        def fail(reason: str) -> SchemaParseError:
            return SchemaParseError(source, reason, property_name=prop_name)

        if decl.type is PropertyType.ENUM and not decl.values:
            raise fail("enum properties must declare at least one value")
        if decl.format is not None and decl.type is not PropertyType.DATE:
            raise fail("format only applies to date properties")
        if decl.values and decl.type in MEMBER_TYPES:
            member_type = MEMBER_TYPES[decl.type]
            mismatched = [m for m in decl.values if not isinstance(m, member_type)]
            if mismatched:
                raise fail(
                    f"values for {decl.type} properties must all be "
                    f"{decl.type}s, got {mismatched!r}"
                )

        constraints: list[Constraint] = []
        for key in raw:
            if key not in CONSTRAINT_TYPES:
                continue
            if decl.type not in CONSTRAINT_TYPES[key]:
                raise fail(
                    f"constraint '{key}' does not apply to {decl.type} properties"
                )
            constraints.append(_build_constraint(key, getattr(decl, key), fail))

        rule = PropertyRule(
            name=prop_name,
            type=decl.type,
            required=decl.required,
            constraints=tuple(constraints),
            members=tuple(decl.values or ()),
            date_format=decl.format or self.date_format,
            strip_whitespace=self.strip_whitespace,
            description=decl.description,
        )
        return _with_default(rule, decl, fail)


def _build_constraint(key: str, value: Any, fail: _Fail) -> Constraint:
    """Turn one validated constraint declaration into a check."""
    if value is None:
        raise fail(f"constraint '{key}' has no value")

    match key:
        case "length":
            return LengthConstraint(value.min, value.max)
        case "min_length":
            return LengthConstraint(min=value)
        case "max_length":
            return LengthConstraint(max=value)
        case "pattern":
            try:
                return PatternConstraint(re.compile(value))
            except re.error as e:
                raise fail(f"invalid pattern {value!r}: {e}") from e
        case "range":
            return RangeConstraint(value.min, value.max)
        case "min":
            return RangeConstraint(min=value)
        case "max":
            return RangeConstraint(max=value)
        case "values":
            if not value:
                raise fail("values must not be empty")
            return EnumConstraint(tuple(value))
        case _:
            try:
                return PredicateConstraint(get_validator(value))
            except KeyError as e:
                raise fail(f"unknown validator '{value}'") from e


def _with_default(
    rule: PropertyRule, decl: PropertyDeclaration, fail: _Fail
) -> PropertyRule:
    """Attach the declared default after checking it against the rule."""
    if "default" not in decl.model_fields_set or is_blank(decl.default):
        return rule
    if rule.required:
        raise fail("required properties cannot declare a default")

    value, message = rule.check(decl.default)
    if message is not None:
        raise fail(f"default {decl.default!r} is invalid: {message}")
    return replace(rule, default=value)
