"""Main application entry point for the menu view service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os

from fastapi import FastAPI

from menu_view_service.auth.api_key_validator import get_admin_api_keys
from menu_view_service.handlers.api_handler import create_app
from menu_view_service.observability import configure_logging, setup_observability
from menu_view_service.services.menu_view_service import MenuViewService
from menu_view_service.sources.source_factory import create_document_source

logger = logging.getLogger(__name__)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the document source selected by SOURCE_BACKEND
    3. Loads templates and starts watching every restaurant
    4. Creates FastAPI app with public and admin endpoints
    5. Sets up observability

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing menu view service...")

    source = create_document_source()

    view_service = MenuViewService(source)
    view_service.load_templates()
    view_service.watch_all()

    logger.info(f"Watching restaurants - status: {view_service.status.status.value}")

    app = create_app(view_service=view_service, source=source, api_keys=get_admin_api_keys())
    setup_observability(app)

    logger.info("Menu view service initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "8001"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
