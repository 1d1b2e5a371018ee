"""Property rules, constraints and the immutable Schema.

A ``Schema`` is an ordered tuple of ``PropertyRule`` objects. Everything in
this module is frozen: a parsed schema is shared by reference between every
DTO created from it, so nothing reachable from it may change after parsing.

Checking a value runs in two steps, both local to one property:

1. coercion into the declared type
2. the constraint chain, in declaration order, stopping at the first failure
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final, Protocol

from loguru import logger

from src.dto.coercion import (
    PropertyType,
    coerce_boolean,
    coerce_date,
    coerce_enum,
    coerce_integer,
    coerce_string,
)
from src.dto.validators import NamedValidator


class _Unset:
    """Marker for a property that holds no value."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final[Any] = _Unset()

REQUIRED_MESSAGE: Final[str] = "is required"


class Constraint(Protocol):
    """A single check in a property's constraint chain."""

    def check(self, value: Any) -> str | None:
        """Return a failure message, or None when the value passes."""
        ...


@dataclass(frozen=True)
class LengthConstraint:
    """String length bounds, inclusive."""

    min: int | None = None
    max: int | None = None

    def check(self, value: Any) -> str | None:
        length = len(value)
        if self.min is not None and self.max is not None:
            if not self.min <= length <= self.max:
                return f"must be between {self.min} and {self.max} characters long"
        elif self.min is not None and length < self.min:
            return f"must be at least {self.min} characters long"
        elif self.max is not None and length > self.max:
            return f"must be at most {self.max} characters long"
        return None


@dataclass(frozen=True)
class PatternConstraint:
    """Regular expression the string must match.

    The pattern is searched, so anchor it to require a full match. A trailing
    ``$`` anchors at the very end of the value: unlike plain ``re`` semantics
    it does not also match before a final newline.
    """

    pattern: re.Pattern[str]
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", _anchor_end(self.pattern))

    def check(self, value: Any) -> str | None:
        if self._compiled.search(value) is None:
            return f"must match the pattern {self.pattern.pattern}"
        return None


def _anchor_end(pattern: re.Pattern[str]) -> re.Pattern[str]:
    """Swap an unescaped trailing ``$`` for ``\\Z``."""
    source = pattern.pattern
    if pattern.flags & re.MULTILINE or not source.endswith("$"):
        return pattern
    backslashes = len(source[:-1]) - len(source[:-1].rstrip("\\"))
    if backslashes % 2:
        return pattern
    return re.compile(source[:-1] + r"\Z", pattern.flags)


@dataclass(frozen=True)
class RangeConstraint:
    """Numeric bounds, inclusive."""

    min: int | None = None
    max: int | None = None

    def check(self, value: Any) -> str | None:
        if self.min is not None and self.max is not None:
            if not self.min <= value <= self.max:
                return f"must be between {self.min} and {self.max}"
        elif self.min is not None and value < self.min:
            return f"must be at least {self.min}"
        elif self.max is not None and value > self.max:
            return f"must be at most {self.max}"
        return None


@dataclass(frozen=True)
class EnumConstraint:
    """Membership in a fixed set of values."""

    members: tuple[str | int, ...]

    def check(self, value: Any) -> str | None:
        if value not in self.members:
            return "must be one of: " + ", ".join(str(m) for m in self.members)
        return None


@dataclass(frozen=True)
class PredicateConstraint:
    """A named custom predicate from the validator registry."""

    validator: NamedValidator

    def check(self, value: Any) -> str | None:
        try:
            accepted = self.validator.predicate(value)
        except Exception as e:  # noqa: BLE001 - predicates are caller code
            logger.debug(
                "Validator {validator} raised {exception_type}, value rejected",
                validator=self.validator.name,
                exception_type=type(e).__name__,
            )
            return self.validator.message
        if not accepted:
            return self.validator.message
        return None


@dataclass(frozen=True)
class PropertyRule:
    """Declarative description of one DTO property."""

    name: str
    type: PropertyType
    required: bool = False
    constraints: tuple[Constraint, ...] = ()
    default: Any = UNSET
    members: tuple[str | int, ...] = ()
    date_format: str = "%Y-%m-%d"
    strip_whitespace: bool = True
    description: str | None = None

    @property
    def has_default(self) -> bool:
        """Whether the property falls back to a default when absent."""
        return self.default is not UNSET

    def coerce(self, raw: Any) -> Any:
        """Convert raw input into this property's type.

        Raises:
            ValueError: With a human-readable message when conversion fails.
        """
        match self.type:
            case PropertyType.STRING:
                return coerce_string(raw, strip=self.strip_whitespace)
            case PropertyType.INTEGER:
                return coerce_integer(raw)
            case PropertyType.BOOLEAN:
                return coerce_boolean(raw)
            case PropertyType.ENUM:
                return coerce_enum(raw, self.members)
            case PropertyType.DATE:
                return coerce_date(raw, self.date_format)

    def check(self, raw: Any) -> tuple[Any, str | None]:
        """Coerce ``raw`` and run the constraint chain.

        Returns:
            tuple[Any, str | None]: The coerced value (UNSET if coercion
                failed) and the first failure message, or None when valid.
        """
        try:
            value = self.coerce(raw)
        except ValueError as e:
            return UNSET, str(e)

        for constraint in self.constraints:
            message = constraint.check(value)
            if message is not None:
                return value, message
        return value, None


def is_blank(value: Any) -> bool:
    """None and whitespace-only strings count as no input."""
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class Schema:
    """Immutable, ordered set of property rules for one DTO name."""

    name: str
    properties: tuple[PropertyRule, ...]
    source: str | None = None
    description: str | None = None
    _index: Mapping[str, PropertyRule] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[str, PropertyRule] = {}
        for rule in self.properties:
            if rule.name in index:
                msg = f"Duplicate property '{rule.name}' in schema '{self.name}'"
                raise ValueError(msg)
            index[rule.name] = rule
        object.__setattr__(self, "_index", MappingProxyType(index))

    @property
    def property_names(self) -> tuple[str, ...]:
        """Declared property names in declaration order."""
        return tuple(rule.name for rule in self.properties)

    def rule_for(self, name: object) -> PropertyRule | None:
        """Return the rule declared for ``name``, or None."""
        if not isinstance(name, str):
            return None
        return self._index.get(name)

    def __contains__(self, name: object) -> bool:
        return self.rule_for(name) is not None

    def __iter__(self) -> Iterator[PropertyRule]:
        return iter(self.properties)

    def __len__(self) -> int:
        return len(self.properties)
