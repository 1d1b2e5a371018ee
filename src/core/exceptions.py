"""Structured exception hierarchy for consistent error handling.

This module defines the exception system for Dtokit, separating the two
failure families of the DTO engine:

- **Schema errors**: a schema file is missing, malformed or cannot be mapped
  from a DTO name. These are structural problems and abort DTO creation.
- **Validation errors**: submitted values fail their property rules. These are
  collected on the DTO and only raised as one aggregate decision.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **DtokitError**: Base exception with rich context and fingerprinting
- **Specialized exceptions**: Schema and validation failures
"""

import hashlib
import traceback
from enum import Enum
from pathlib import Path
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for Dtokit.

    These error codes provide consistent identification of error types
    across the engine and the HTTP boundary.
    """

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Submitted values failed one or more property rules."""

    UNKNOWN_PROPERTY = "UNKNOWN_PROPERTY"
    """Input carried a field the schema does not declare (strict mode only)."""

    # Schema errors
    SCHEMA_NOT_FOUND = "SCHEMA_NOT_FOUND"
    """A schema definition file does not exist."""

    SCHEMA_PARSE_ERROR = "SCHEMA_PARSE_ERROR"
    """A schema definition file is malformed."""

    UNKNOWN_DTO = "UNKNOWN_DTO"
    """A DTO name cannot be mapped to any schema definition file."""


class Severity(Enum):
    """Severity levels for errors raised by Dtokit.

    These severity levels help categorize the impact and urgency of errors,
    enabling appropriate handling, monitoring, and alerting strategies.
    """

    LOW = "LOW"
    """Low severity errors that don't significantly impact functionality."""

    MEDIUM = "MEDIUM"
    """Medium severity errors that may affect some features but not critical ops."""

    HIGH = "HIGH"
    """High severity errors impacting critical functionality or data integrity."""

    CRITICAL = "CRITICAL"
    """Critical errors requiring immediate attention, may cause system failures."""


class DtokitError(Exception):
    """Base exception class for all Dtokit exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-1]  # Exclude this frame

        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        Creates a hash based on the error type and the location where it was raised,
        allowing similar errors to be grouped together in monitoring systems.

        Returns:
            str: A hash string for error grouping
        """
        max_frames = 5
        relevant_frames = (
            self.stack_trace[-max_frames:]
            if len(self.stack_trace) > max_frames
            else self.stack_trace
        )

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"

        for frame in relevant_frames:
            if "site-packages" not in frame and "src/" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """Determine if this is an expected error based on severity.

        Returns:
            bool: True if the error is expected (LOW or MEDIUM severity)
        """
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Determine if this error should trigger alerts.

        Returns:
            bool: True if the error should trigger alerts (HIGH or CRITICAL severity)
        """
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: A string showing the class name, error code, message, severity,
                and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class SchemaError(DtokitError):
    """Base class for structural schema failures.

    Schema errors are never recoverable at request time: the DTO cannot be
    built, so the caller receives no partially constructed object.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.HIGH, context, cause)


class SchemaNotFoundError(SchemaError):
    """Raised when a schema definition file does not exist.

    Args:
        path: The path that was looked up
        cause: The original exception that caused this error
    """

    def __init__(self, path: str | Path, cause: Exception | None = None) -> None:
        self.path = str(path)
        super().__init__(
            f"Schema definition file not found: {self.path}",
            ErrorCode.SCHEMA_NOT_FOUND,
            {"path": self.path},
            cause,
        )


class SchemaParseError(SchemaError):
    """Raised when a schema definition is malformed.

    Args:
        path: The schema file being parsed
        reason: What is wrong with the declaration
        property_name: The offending property, when the problem is local to one
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        path: str | Path,
        reason: str,
        property_name: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.path = str(path)
        self.reason = reason
        self.property_name = property_name
        location = self.path
        context: dict[str, Any] = {"path": self.path}
        if property_name:
            location = f"property '{property_name}' in {self.path}"
            context["property"] = property_name
        super().__init__(
            f"Invalid schema definition for {location}: {reason}",
            ErrorCode.SCHEMA_PARSE_ERROR,
            context,
            cause,
        )


class UnknownDtoError(SchemaError):
    """Raised when a DTO name cannot be mapped to a schema definition file.

    Args:
        name: The requested DTO name
        expected_path: The path the name was resolved to, if it was resolvable
    """

    def __init__(self, name: str, expected_path: str | Path | None = None) -> None:
        self.name = name
        context: dict[str, Any] = {"dto": name}
        message = f"Unknown DTO '{name}'"
        if expected_path is not None:
            context["expected_path"] = str(expected_path)
            message = f"{message}: no schema definition at {expected_path}"
        super().__init__(message, ErrorCode.UNKNOWN_DTO, context)


class ValidationError(DtokitError):
    """Exception raised when input validation fails.

    Args:
        message: Description of the validation failure
        error_code: Error code (defaults to VALIDATION_ERROR)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class ValidationFailed(ValidationError):
    """Aggregate failure carrying every message from one validation pass.

    The message joins the per-field messages as ``"field: message, ..."`` in
    schema declaration order; ``messages`` and ``field_errors`` keep the
    structured form for callers that render field-level feedback.

    Args:
        dto_name: Name of the DTO that failed validation
        messages: Ordered ``"field: message"`` strings
        field_errors: Messages grouped by field, in declaration order
    """

    def __init__(
        self,
        dto_name: str,
        messages: list[str],
        field_errors: dict[str, list[str]],
    ) -> None:
        self.dto_name = dto_name
        self.messages = list(messages)
        self.field_errors = {field: list(errs) for field, errs in field_errors.items()}
        super().__init__(
            ", ".join(self.messages),
            context={"dto": dto_name, "validation_errors": self.field_errors},
        )


class UnknownPropertyError(ValidationError):
    """Raised by strict population when input carries undeclared fields.

    Args:
        dto_name: Name of the DTO being populated
        fields: The undeclared field names, in input order
    """

    def __init__(self, dto_name: str, fields: list[str]) -> None:
        self.dto_name = dto_name
        self.fields = list(fields)
        super().__init__(
            f"Unknown properties for {dto_name}: {', '.join(self.fields)}",
            ErrorCode.UNKNOWN_PROPERTY,
            {"dto": dto_name, "fields": self.fields},
        )
