"""
FastAPI application setup with dependency injection.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
import logging

from transit_assist.config.loader import load_config_for_environment
from transit_assist.core.dependencies import ServiceContainer
from transit_assist.core.error_handlers import setup_error_handlers
from transit_assist.core.logging import configure_logging
from transit_assist.middleware import RequestContextMiddleware

settings = load_config_for_environment()

configure_logging(
    settings.log_level.value,
    json_output=settings.log_json,
    log_file=settings.log_file,
    plain_format=settings.log_format,
)

logger = logging.getLogger(__name__)


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        container: Service container to own; a default one is built when omitted

    Returns:
        FastAPI: Configured application instance
    """
    service_container = container or ServiceContainer(settings)
    app_settings = service_container.settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {app_settings.app_name} v{app_settings.app_version}")

        try:
            await service_container.initialize_services()
            app.state.service_container = service_container
            logger.info("Application startup complete")

            yield

        except Exception as e:
            logger.error(f"Application startup failed: {e}", exc_info=True)
            raise

        finally:
            logger.info("Shutting down application")
            await service_container.cleanup_services()
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        debug=app_settings.debug,
        lifespan=lifespan
    )

    app.add_middleware(RequestContextMiddleware)
    setup_error_handlers(app)

    from transit_assist.api import (
        cache_router,
        health_router,
        presence_router,
        recommendation_router,
        ticket_router,
    )
    app.include_router(health_router)
    app.include_router(cache_router)
    app.include_router(recommendation_router)
    app.include_router(presence_router)
    app.include_router(ticket_router)

    @app.get("/")
    async def root():
        return {
            "message": f"Welcome to {app_settings.app_name}",
            "version": app_settings.app_version,
            "status": "running"
        }

    return app


# Create application instance
app = create_app()
