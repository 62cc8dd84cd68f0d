"""Shared dependency factory for Lambda handlers.

Dependencies are created once and reused across invocations within the same
Lambda container. Change events are usually handled by a different container
than API requests, so the API re-reads the watched collections before serving
views instead of relying on notifications reaching this container.
"""

import logging
import os

from fastapi import FastAPI

from menu_view_service.auth.api_key_validator import get_admin_api_keys
from menu_view_service.handlers.api_handler import create_app
from menu_view_service.handlers.change_event_handler import ChangeEventHandler
from menu_view_service.observability import configure_logging, setup_observability
from menu_view_service.services.menu_view_service import MenuViewService
from menu_view_service.sources.base_source import DocumentSource
from menu_view_service.sources.source_factory import create_document_source

logger = logging.getLogger(__name__)

# Module-level caches for Lambda container reuse
_document_source: DocumentSource | None = None
_view_service: MenuViewService | None = None
_change_handler: ChangeEventHandler | None = None
_fastapi_app: FastAPI | None = None


def get_document_source() -> DocumentSource:
    """Create or retrieve cached document source.

    Returns:
        Document source selected by SOURCE_BACKEND
    """
    global _document_source

    if _document_source is not None:
        return _document_source

    _document_source = create_document_source()
    return _document_source


def get_view_service() -> MenuViewService:
    """Create or retrieve cached view service watching every restaurant.

    Returns:
        MenuViewService with templates loaded
    """
    global _view_service

    if _view_service is not None:
        return _view_service

    _view_service = MenuViewService(get_document_source())
    _view_service.load_templates()
    _view_service.watch_all()

    logger.info("View service initialized")
    return _view_service


def get_change_handler() -> ChangeEventHandler:
    """Create or retrieve cached change event handler.

    Returns:
        ChangeEventHandler bound to the cached document source
    """
    global _change_handler

    if _change_handler is not None:
        return _change_handler

    _change_handler = ChangeEventHandler(get_document_source())

    logger.info("Change event handler initialized")
    return _change_handler


def get_fastapi_app() -> FastAPI:
    """Create or retrieve cached FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    _fastapi_app = create_app(
        view_service=get_view_service(),
        source=get_document_source(),
        api_keys=get_admin_api_keys(),
        refresh_on_read=True,
    )

    logger.info("FastAPI application initialized")
    return _fastapi_app


def reset_dependencies() -> None:
    """Drop every cached dependency, closing the view service first."""
    global _document_source, _view_service, _change_handler, _fastapi_app

    if _view_service is not None:
        _view_service.close()

    _document_source = None
    _view_service = None
    _change_handler = None
    _fastapi_app = None


def initialize_lambda_environment() -> None:
    """Initialize Lambda environment with logging and observability.

    Should be called once during Lambda cold start.
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    setup_observability()

    logger.info("Lambda environment initialized")
