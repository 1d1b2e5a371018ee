"""Schema-bound value bag with per-property validation state.

A ``Dto`` owns its values and errors and holds a shared, read-only reference
to its ``Schema``. Property access is an explicit lookup against the schema:
``set()`` on an undeclared name does nothing, so external input can never add
fields the schema does not declare.

Validation never raises for bad data. ``set()`` checks the one property it
touches and records a failure on the DTO; ``validate()`` recomputes every
property from scratch, in declaration order, and returns a
``ValidationResult``. Raising is left to the caller, through
``ValidationResult.raise_if_invalid()``.

Lifecycle::

    EMPTY --set()--> POPULATED --validate()--> VALIDATED
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger

from src.core.error_context import sanitize_value
from src.core.exceptions import ValidationFailed
from src.core.types import FieldErrors
from src.dto.rules import REQUIRED_MESSAGE, UNSET, PropertyRule, Schema, is_blank


class DtoState(Enum):
    """Where a DTO is in its population and validation cycle."""

    EMPTY = "EMPTY"
    POPULATED = "POPULATED"
    VALIDATED = "VALIDATED"


@dataclass(frozen=True)
class FieldError:
    """One failed check on one property."""

    property: str
    message: str

    def __str__(self) -> str:
        return f"{self.property}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one ``Dto.validate()`` pass.

    Errors are in schema declaration order, at most one per property.
    """

    dto_name: str
    errors: tuple[FieldError, ...] = ()

    @property
    def is_valid(self) -> bool:
        """True when the pass produced no errors."""
        return not self.errors

    @property
    def messages(self) -> list[str]:
        """Errors formatted as ``"field: message"``."""
        return [str(error) for error in self.errors]

    @property
    def by_field(self) -> FieldErrors:
        """Messages grouped by property, in declaration order."""
        return _group_by_field(self.errors)

    def raise_if_invalid(self) -> None:
        """Raise the aggregate failure when the pass produced errors.

        Raises:
            ValidationFailed: Carrying every message from this pass.
        """
        if self.errors:
            raise ValidationFailed(self.dto_name, self.messages, self.by_field)


def _group_by_field(errors: tuple[FieldError, ...] | list[FieldError]) -> FieldErrors:
    grouped: FieldErrors = {}
    for error in errors:
        grouped.setdefault(error.property, []).append(error.message)
    return grouped


class Dto:
    """A named value bag bound to one schema.

    Args:
        schema: The parsed schema; shared, never copied or mutated.
    """

    def __init__(self, schema: Schema) -> None:
        self._schema = schema
        self._values: dict[str, Any] = {}
        # Last input rejected per property; re-checked by validate()
        self._rejected: dict[str, Any] = {}
        self._errors: list[FieldError] = []
        self._state = DtoState.EMPTY

    @property
    def schema(self) -> Schema:
        """The shared schema this DTO is bound to."""
        return self._schema

    @property
    def name(self) -> str:
        """The DTO name, e.g. ``CreatePost``."""
        return self._schema.name

    @property
    def state(self) -> DtoState:
        """Current lifecycle state."""
        return self._state

    @property
    def values(self) -> dict[str, Any]:
        """Copy of the explicitly held values (defaults not included)."""
        return dict(self._values)

    @property
    def errors(self) -> list[str]:
        """Current errors formatted as ``"field: message"``."""
        return [str(error) for error in self._errors]

    @property
    def field_errors(self) -> FieldErrors:
        """Current errors grouped by property."""
        return _group_by_field(self._errors)

    @property
    def is_valid(self) -> bool:
        """True when no errors are currently recorded."""
        return not self._errors

    def has_property(self, name: object) -> bool:
        """Whether the schema declares ``name``."""
        return name in self._schema

    def get(self, name: str) -> Any:  # noqa: ANN401 - property values are dynamic
        """Return the current value of ``name``.

        Falls back to the declared default for an unset property, and returns
        ``UNSET`` for unset properties without a default and for undeclared
        names.
        """
        rule = self._schema.rule_for(name)
        if rule is None:
            return UNSET
        if name in self._values:
            return self._values[name]
        return rule.default

    def set(self, name: str, raw: Any) -> None:  # noqa: ANN401 - input is dynamic
        """Check ``raw`` against the rule for ``name`` and store it if valid.

        Undeclared names are ignored. Blank input (None or a whitespace-only
        string) clears the property. A value that fails coercion or a
        constraint is not stored: the failure is recorded in ``errors`` and
        the prior value is kept.
        """
        rule = self._schema.rule_for(name)
        if rule is None:
            return

        self._state = DtoState.POPULATED
        self._errors = [error for error in self._errors if error.property != name]

        if is_blank(raw):
            self._values.pop(name, None)
            self._rejected.pop(name, None)
            return

        value, message = rule.check(raw)
        if message is None:
            self._values[name] = value
            self._rejected.pop(name, None)
            return

        self._rejected[name] = raw
        self._errors.append(FieldError(name, message))
        logger.debug(
            "Rejected value for {dto}.{field}: {reason}",
            dto=self.name,
            field=name,
            reason=message,
            value=sanitize_value(raw, name),
        )

    def validate(self) -> ValidationResult:
        """Recompute validation state across every declared property.

        Properties are checked in declaration order. For each one the presence
        check runs first, then its constraint chain against the held value or
        the last rejected input; a failure stops that property's chain only.
        Absent optional properties with a default take the default. Repeated
        calls without intervening ``set()`` return equal results.
        """
        errors: list[FieldError] = []
        for rule in self._schema:
            message = self._check_property(rule)
            if message is not None:
                errors.append(FieldError(rule.name, message))

        self._errors = errors
        self._state = DtoState.VALIDATED

        result = ValidationResult(self.name, tuple(errors))
        if not result.is_valid:
            logger.debug(
                "Validation of {dto} failed with {count} error(s)",
                dto=self.name,
                count=len(errors),
                fields=list(result.by_field),
            )
        return result

    def _check_property(self, rule: PropertyRule) -> str | None:
        if rule.name in self._rejected:
            return rule.check(self._rejected[rule.name])[1]

        if rule.name not in self._values:
            if rule.required:
                return REQUIRED_MESSAGE
            if not rule.has_default:
                return None
            self._values[rule.name] = rule.default

        return rule.check(self._values[rule.name])[1]

    def clone(self) -> Dto:
        """Return a copy sharing the schema but owning independent state."""
        copy = Dto(self._schema)
        copy._values = dict(self._values)
        copy._rejected = dict(self._rejected)
        copy._errors = list(self._errors)
        copy._state = self._state
        return copy

    def to_dict(self) -> dict[str, Any]:
        """Values for every property that has one, defaults included.

        Keys follow declaration order. This is the value bag handed to
        downstream collaborators after a successful ``validate()``.
        """
        result = {}
        for rule in self._schema:
            value = self.get(rule.name)
            if value is not UNSET:
                result[rule.name] = value
        return result

    def __repr__(self) -> str:
        return (
            f"Dto(name='{self.name}', state={self._state.value}, "
            f"values={sorted(self._values)}, errors={len(self._errors)})"
        )
