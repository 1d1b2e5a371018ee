"""Core application constants."""

# Security and redaction
REDACTED = "[REDACTED]"

# Checkbox and form encodings accepted for boolean properties
BOOLEAN_TRUE_STRINGS = frozenset({"on", "1", "true", "yes"})
BOOLEAN_FALSE_STRINGS = frozenset({"off", "0", "false", "no"})

# DTO names double as file name stems, so they are restricted to identifiers
DTO_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_]*$"
