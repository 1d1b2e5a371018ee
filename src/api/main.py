"""FastAPI application factory.

``create_app`` configures logging, installs the exception handlers and
exposes service endpoints. Applications mount their own routes on the
returned instance and obtain DTOs through ``DtoFromRequest``.
"""

from typing import Annotated, Any

from fastapi import Depends, FastAPI
from loguru import logger

from src.api.middleware.error_handler import register_exception_handlers
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.logging import setup_logging
from src.dto import DtoFactory, get_dto_factory


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        default_response_class=ORJSONResponse,
    )

    register_exception_handlers(application)

    @application.get("/health")
    async def health(
        factory: Annotated[DtoFactory, Depends(get_dto_factory)],
    ) -> dict[str, Any]:
        """Health check reporting the schema directory and cached schemas.

        Returns:
            dict[str, Any]: Status plus schema cache information.
        """
        directory = factory.schema_directory
        status = "healthy" if directory.is_dir() else "degraded"
        if status == "degraded":
            logger.warning("Schema directory missing: {path}", path=str(directory))
        return {
            "status": status,
            "schema_directory": str(directory),
            "cached_schemas": factory.cached_names(),
        }

    @application.get("/info")
    async def info(
        app_settings: Annotated[Settings, Depends(get_settings)],
    ) -> dict[str, Any]:
        """Get application information.

        Args:
            app_settings: Application settings injected via dependency.

        Returns:
            dict[str, Any]: Application information including name, version,
                and environment.
        """
        return {
            "app_name": app_settings.app_name,
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "debug": app_settings.debug,
        }

    logger.info(
        "Application configured - {} v{}", settings.app_name, settings.app_version
    )
    return application
