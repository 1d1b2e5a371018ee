"""Registry of named predicates referenced by schema files.

A property declares ``validator: <name>`` to attach a custom check. Names are
resolved when the schema is parsed, so a schema referencing an unregistered
validator fails to load instead of failing at request time. Register project
validators at import or startup time, before the first DTO is created.
"""

import re
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Final, TypeAlias

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

Predicate: TypeAlias = Callable[[Any], bool]

EMAIL_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
SLUG_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

_http_url_adapter: TypeAdapter[AnyHttpUrl] = TypeAdapter(AnyHttpUrl)


@dataclass(frozen=True)
class NamedValidator:
    """A registered predicate and the message reported when it fails."""

    name: str
    predicate: Predicate
    message: str


_registry: dict[str, NamedValidator] = {}
_registry_lock = threading.Lock()


def register_validator(
    name: str,
    predicate: Predicate,
    message: str = "is invalid",
    *,
    replace: bool = False,
) -> NamedValidator:
    """Register a predicate under ``name``.

    Args:
        name: Name used in schema files.
        predicate: Returns True when the value is acceptable.
        message: Error message reported when the predicate returns False.
        replace: Allow overwriting an existing registration.

    Returns:
        NamedValidator: The registered validator.

    Raises:
        ValueError: If the name is already registered and replace is False.
    """
    validator = NamedValidator(name=name, predicate=predicate, message=message)
    with _registry_lock:
        if name in _registry and not replace:
            msg = f"Validator '{name}' is already registered"
            raise ValueError(msg)
        _registry[name] = validator
    return validator


def unregister_validator(name: str) -> None:
    """Remove a registration; unknown names are ignored."""
    with _registry_lock:
        _registry.pop(name, None)


def get_validator(name: str) -> NamedValidator:
    """Look up a registered validator.

    Raises:
        KeyError: If no validator is registered under ``name``.
    """
    return _registry[name]


def registered_validators() -> list[str]:
    """Names of all registered validators, sorted."""
    return sorted(_registry)


def is_email(value: Any) -> bool:
    """Loose address check: one @, no whitespace, a dot in the domain."""
    return isinstance(value, str) and EMAIL_PATTERN.match(value) is not None


def is_http_url(value: Any) -> bool:
    """Absolute http(s) URL, as accepted by pydantic's AnyHttpUrl."""
    if not isinstance(value, str):
        return False
    try:
        _http_url_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def is_slug(value: Any) -> bool:
    """Lowercase words of letters and digits joined by single hyphens."""
    return isinstance(value, str) and SLUG_PATTERN.match(value) is not None


register_validator("email", is_email, "must be a valid email address")
register_validator("url", is_http_url, "must be a valid http(s) URL")
register_validator(
    "slug", is_slug, "must contain only lowercase letters, digits and hyphens"
)
