"""Global exception handlers for the FastAPI application.

Engine errors are translated here and nowhere else:

- ``ValidationError`` (including the aggregate ``ValidationFailed``) becomes a
  422 response whose ``details.validation_errors`` maps each field to its
  messages in declaration order.
- ``SchemaError`` becomes a 500 response. Outside development the message is
  replaced with a generic one so file paths never reach clients.
- Anything else becomes a generic 500 response.
"""

import traceback

from fastapi import FastAPI, Request, status
from fastapi.responses import Response
from loguru import logger

from src.api.constants import SCHEMA_ERROR_PUBLIC_MESSAGE
from src.api.schemas.errors import ErrorResponse, ServiceInfo
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.error_context import sanitize_error_context
from src.core.exceptions import (
    DtokitError,
    ErrorCode,
    SchemaError,
    UnknownPropertyError,
    ValidationError,
    ValidationFailed,
)


def get_service_info(settings: Settings) -> ServiceInfo:
    """Create ServiceInfo from application settings.

    Args:
        settings: Application settings

    Returns:
        ServiceInfo: Instance with current service metadata
    """
    return ServiceInfo(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


def _validation_details(exc: ValidationError) -> dict[str, object] | None:
    if isinstance(exc, ValidationFailed):
        return {"dto": exc.dto_name, "validation_errors": exc.field_errors}
    if isinstance(exc, UnknownPropertyError):
        return {"dto": exc.dto_name, "unknown_fields": exc.fields}
    return exc.context or None


async def dtokit_error_handler(request: Request, exc: Exception) -> Response:
    """Handle DtokitError exceptions.

    Args:
        request: The FastAPI request that caused the exception
        exc: The DtokitError exception to handle

    Returns:
        Response: ORJSONResponse with error details

    Raises:
        TypeError: If exc is not a DtokitError instance
    """
    # Type narrowing - we know this handler only receives DtokitError
    if not isinstance(exc, DtokitError):
        raise TypeError(f"Expected DtokitError, got {type(exc).__name__}")

    settings = get_settings()
    is_development = settings.environment == "development"

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
            "error_code": exc.error_code,
            **exc.context,
        },
    )

    if isinstance(exc, ValidationError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        message = exc.message
        details = _validation_details(exc)
        logger.warning(
            "DTO validation failed: {message}",
            message=exc.message,
            **error_context,
        )
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        if isinstance(exc, SchemaError) and not is_development:
            message = SCHEMA_ERROR_PUBLIC_MESSAGE
            details = None
        else:
            message = exc.message
            details = exc.context or None
        logger.error(
            "Handling {exception_type}: {message}",
            exception_type=type(exc).__name__,
            message=exc.message,
            fingerprint=exc.fingerprint,
            **error_context,
        )

    debug_info = None
    if is_development:
        debug_info = {
            "stack_trace": exc.stack_trace,
            "error_context": exc.context,
            "exception_type": type(exc).__name__,
        }
        if exc.cause:
            debug_info["cause"] = {
                "type": type(exc.cause).__name__,
                "message": str(exc.cause),
            }

    error_response = ErrorResponse(
        error_code=exc.error_code,
        message=message,
        details=details,
        severity=exc.severity.value,
        service_info=get_service_info(settings),
        debug_info=debug_info,
    )

    return ORJSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle generic exceptions.

    Catches all unhandled exceptions and converts them to a safe error response.
    In production, hides internal error details from clients.

    Args:
        request: The FastAPI request that caused the exception
        exc: The unhandled exception

    Returns:
        Response: ORJSONResponse with generic error message
    """
    settings = get_settings()

    error_context = sanitize_error_context(
        exc,
        {
            "request_method": request.method,
            "request_path": str(request.url.path),
        },
    )

    logger.exception(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        **error_context,
    )

    if settings.environment == "production":
        message = "An internal server error occurred"
        details = None
        debug_info = None
    else:
        message = f"Internal server error: {type(exc).__name__}"
        details = {"error": str(exc), "type": type(exc).__name__}
        debug_info = {
            "stack_trace": traceback.format_tb(exc.__traceback__),
            "exception_type": type(exc).__name__,
        }

    error_response = ErrorResponse(
        error_code=ErrorCode.INTERNAL_ERROR.value,
        message=message,
        details=details,
        severity="CRITICAL",
        service_info=get_service_info(settings),
        debug_info=debug_info,
    )

    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DtokitError, dtokit_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
