"""Type aliases for dynamic data structures throughout the application.

This module centralizes type definitions for data that cannot be statically
typed, providing clear semantic meaning for these types.
"""

from collections.abc import Mapping
from typing import Any, TypeAlias

# Decoded key/value input handed to the populator (form data, JSON bodies)
RawInput: TypeAlias = Mapping[str, Any]

# Field name to ordered messages, in schema declaration order
FieldErrors: TypeAlias = dict[str, list[str]]
