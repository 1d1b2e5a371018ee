"""Conversion of raw input into declared property types.

Input reaches the engine mostly as strings (decoded form data), sometimes as
native JSON values. Each coercer accepts the encodings a browser or JSON client
can produce for its type and raises ``ValueError`` with a human-readable
message otherwise. Coercers are idempotent: coercing an already coerced value
returns it unchanged.
"""

import re
from collections.abc import Sequence
from datetime import date, datetime
from enum import StrEnum
from typing import Any, Final

from src.core.constants import BOOLEAN_FALSE_STRINGS, BOOLEAN_TRUE_STRINGS

INTEGER_PATTERN: Final[re.Pattern[str]] = re.compile(r"[+-]?\d+")


class PropertyType(StrEnum):
    """Types a schema property can declare."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ENUM = "enum"
    DATE = "date"


def coerce_string(raw: Any, *, strip: bool = True) -> str:
    """Coerce scalar input to a string."""
    if isinstance(raw, bool) or not isinstance(raw, str | int | float):
        msg = "must be a string"
        raise ValueError(msg)
    text = raw if isinstance(raw, str) else str(raw)
    return text.strip() if strip else text


def coerce_integer(raw: Any) -> int:
    """Coerce input to an integer.

    Accepts ints, integral floats and digit strings with an optional sign.
    Booleans are rejected even though they are ints.
    """
    if isinstance(raw, bool):
        msg = "must be an integer"
        raise ValueError(msg)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str) and INTEGER_PATTERN.fullmatch(raw.strip()):
        return int(raw.strip())
    msg = "must be an integer"
    raise ValueError(msg)


def coerce_boolean(raw: Any) -> bool:
    """Coerce checkbox and JSON encodings to a boolean.

    ``"on"``, ``"1"``, ``"true"`` and ``"yes"`` are true; ``"off"``, ``"0"``,
    ``"false"`` and ``"no"`` are false (case-insensitive). The integers 1 and 0
    are accepted as well.
    """
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text in BOOLEAN_TRUE_STRINGS:
            return True
        if text in BOOLEAN_FALSE_STRINGS:
            return False
    msg = "must be a boolean"
    raise ValueError(msg)


def coerce_enum(raw: Any, members: Sequence[str | int]) -> str | int:
    """Map input onto a declared enum member.

    The member whose string form equals the input's string form is returned.
    Input that matches no member is returned normalised so the membership
    constraint can report it.
    """
    if isinstance(raw, bool) or not isinstance(raw, str | int):
        msg = "must be one of: " + ", ".join(str(m) for m in members)
        raise ValueError(msg)
    text = raw.strip() if isinstance(raw, str) else str(raw)
    for member in members:
        if str(member) == text:
            return member
    return text


def coerce_date(raw: Any, date_format: str) -> date:
    """Coerce input to a calendar date using ``date_format`` for strings."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    msg = f"must be a valid date ({date_format})"
    if not isinstance(raw, str):
        raise ValueError(msg)
    try:
        parsed = datetime.strptime(raw.strip(), date_format)  # noqa: DTZ007
    except ValueError as e:
        raise ValueError(msg) from e
    return parsed.date()
