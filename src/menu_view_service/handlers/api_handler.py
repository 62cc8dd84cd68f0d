"""FastAPI application for the public menu pages and admin endpoints."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Literal

from fastapi import Depends, FastAPI, Header, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from menu_view_service.auth.api_dependencies import require_admin_key
from menu_view_service.auth.api_key_validator import APIKeyValidator
from menu_view_service.handlers.change_event_handler import ChangeEventHandler, DocumentChangedEvent
from menu_view_service.models.menu_models import Template, TemplateVariant
from menu_view_service.models.view_models import (
    DatabaseSummary,
    RestaurantView,
    ViewErrorKind,
    ViewState,
    ViewStatus,
    ViewUpdate,
)
from menu_view_service.services.menu_view_service import MenuViewService
from menu_view_service.services.template_resolver import (
    get_all_templates,
    get_templates_by_category,
    resolve_template,
)
from menu_view_service.sources.base_source import DocumentSource

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "5"

# WebSocket close codes
CLOSE_NOT_FOUND = 4404
CLOSE_TRY_AGAIN_LATER = 1013


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class TemplateResolutionResponse(BaseModel):
    """Response model for template resolution."""

    template_id: str
    variant: TemplateVariant
    template: Template


class ChangeNotificationResponse(BaseModel):
    """Response model for change notifications."""

    changes: int
    refreshed_collections: int


def raise_for_state(state: ViewState) -> None:
    """Translate a non-ready view state into an HTTP error.

    Raises:
        HTTPException: 404 for missing or inactive restaurants, 503 otherwise
    """
    if state.status == ViewStatus.READY:
        return
    if state.error == ViewErrorKind.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    if state.status == ViewStatus.LOADING:
        raise HTTPException(
            status_code=503,
            detail="Menu data is loading",
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    raise HTTPException(
        status_code=503,
        detail="Menu data is temporarily unavailable",
        headers={"Retry-After": RETRY_AFTER_SECONDS},
    )


def update_payload(update: ViewUpdate) -> dict[str, Any]:
    """Serialize a view update for WebSocket delivery."""
    return update.model_dump(mode="json", by_alias=True)


async def stop_forwarding(forwarder: asyncio.Task[None], slug: str) -> None:
    """Cancel a forwarding task and retrieve its outcome.

    A task that already failed, for example because the client went away
    mid-send, has its exception logged instead of left unretrieved.
    """
    forwarder.cancel()
    try:
        await forwarder
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.warning(f"Stopped forwarding updates for slug {slug!r}: {e}")


def create_app(
    view_service: MenuViewService,
    source: DocumentSource,
    api_keys: list[str],
    refresh_on_read: bool = False,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        view_service: Live view service watching all restaurants
        source: Document source shared by per-connection view services
        api_keys: List of valid admin API keys
        refresh_on_read: Re-read the watched collections before serving views

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        app.state.view_service.close()

    app = FastAPI(
        title="Restaurant Menu View Service",
        description="Live, render-ready restaurant menus and presentation templates",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.view_service = view_service
    app.state.source = source
    app.state.change_handler = ChangeEventHandler(source)
    app.state.api_key_validator = APIKeyValidator(api_keys=api_keys)

    def validate_api_key(x_api_key: str | None = Header(None)) -> str:
        """Dependency to validate the admin API key."""
        return require_admin_key(x_api_key=x_api_key, validator=app.state.api_key_validator)

    def current_views() -> MenuViewService:
        """Return the shared view service, refreshed first when configured."""
        service: MenuViewService = app.state.view_service
        if refresh_on_read:
            service.refresh()
        return service

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    @app.get("/restaurants", response_model=list[RestaurantView], tags=["Menus"])
    async def list_restaurants() -> list[RestaurantView]:
        """List the views of all active restaurants.

        Raises:
            HTTPException: 503 while the restaurant collection is loading or unavailable
        """
        service = current_views()
        raise_for_state(service.status)
        return service.views()

    @app.get("/restaurants/{slug}", response_model=RestaurantView, tags=["Menus"])
    async def get_restaurant(slug: str) -> RestaurantView:
        """Get the menu view of an active restaurant by slug.

        Args:
            slug: Public restaurant slug

        Returns:
            Joined restaurant view

        Raises:
            HTTPException: 404 if missing or inactive, 503 if the source is unavailable
        """
        state = current_views().state_for_slug(slug)
        raise_for_state(state)
        if state.view is None:
            raise HTTPException(status_code=503, detail="Menu data is temporarily unavailable")
        return state.view

    @app.websocket("/ws/restaurants/{slug}")
    async def watch_restaurant(websocket: WebSocket, slug: str) -> None:
        """Stream live view updates of one restaurant.

        Every subscription opened for the connection is released when the
        client disconnects.
        """
        await websocket.accept()

        loop = asyncio.get_running_loop()
        updates: asyncio.Queue[ViewUpdate] = asyncio.Queue()
        service = MenuViewService(app.state.source)
        service.add_listener(lambda update: loop.call_soon_threadsafe(updates.put_nowait, update))

        async def forward() -> None:
            while True:
                update = await updates.get()
                await websocket.send_json(update_payload(update))

        forwarder: asyncio.Task[None] | None = None
        try:
            state = service.watch_slug(slug)
            if state.status == ViewStatus.ERROR:
                await websocket.send_json(update_payload(ViewUpdate(state=state)))
                not_found = state.error == ViewErrorKind.NOT_FOUND
                await websocket.close(code=CLOSE_NOT_FOUND if not_found else CLOSE_TRY_AGAIN_LATER)
                return

            logger.info(f"Streaming view updates for restaurant slug {slug!r}")
            forwarder = asyncio.create_task(forward())
            while True:
                await websocket.receive_text()

        except WebSocketDisconnect:
            logger.info(f"Client stopped watching restaurant slug {slug!r}")

        finally:
            service.close()
            if forwarder is not None:
                await stop_forwarding(forwarder, slug)

    @app.get("/templates", response_model=list[Template], tags=["Templates"])
    async def list_templates(
        category: Literal["festivities", "themes"] | None = None,
    ) -> list[Template]:
        """List presentation templates, optionally only festivities or themes."""
        if category is None:
            return get_all_templates()
        return get_templates_by_category(category)

    @app.get("/templates/resolve", response_model=TemplateResolutionResponse, tags=["Templates"])
    async def resolve(template_id: str = "") -> TemplateResolutionResponse:
        """Resolve a stored template identifier to its presentation template."""
        template = resolve_template(template_id)
        return TemplateResolutionResponse(
            template_id=template_id,
            variant=template.component,
            template=template,
        )

    @app.get("/admin/summary", response_model=DatabaseSummary, tags=["Admin"])
    async def get_summary(_api_key: str = Depends(validate_api_key)) -> DatabaseSummary:
        """Count the documents held by the live view service."""
        summary: DatabaseSummary = current_views().summary()
        return summary

    @app.post("/admin/changes", response_model=ChangeNotificationResponse, tags=["Admin"])
    async def notify_changes(
        changes: list[DocumentChangedEvent],
        _api_key: str = Depends(validate_api_key),
    ) -> ChangeNotificationResponse:
        """Refresh live subscribers of the collections named by change events.

        Args:
            changes: Changed documents

        Returns:
            Number of changes received and collections refreshed
        """
        logger.info(f"Received {len(changes)} document change notifications")
        refreshed = app.state.change_handler.handle_changes(changes)
        return ChangeNotificationResponse(changes=len(changes), refreshed_collections=refreshed)

    return app
