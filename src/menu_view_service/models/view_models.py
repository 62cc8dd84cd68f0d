"""Joined view models published to the rendering layer.

A RestaurantView is the denormalized, render-ready tree of one restaurant with
its active categories and items. ViewState wraps a view with its loading or
error status, and ViewUpdate tells listeners which restaurant a state belongs to.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from menu_view_service.models.menu_models import (
    Category,
    MenuItem,
    Restaurant,
    Template,
    TemplateVariant,
)


class ItemView(MenuItem):
    """Menu item with its display price."""

    formatted_price: str = Field(..., alias="formattedPrice", description="Price with currency symbol")


class CategoryView(Category):
    """Category with its sorted, active items."""

    items: list[ItemView] = Field(default_factory=list, description="Active items in display order")


class ScheduleDay(BaseModel):
    """One entry of a restaurant's opening hours."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    day: str = Field(..., description="Stored weekday key (e.g. 'monday')")
    label: str = Field(..., description="Display name of the day")
    hours: str = Field(..., description="'HH:MM-HH:MM' or 'closed'")


class RestaurantView(Restaurant):
    """Restaurant joined with its categories, items and template."""

    categories: list[CategoryView] = Field(
        default_factory=list, description="Active categories in display order"
    )
    template: Template | None = Field(
        None, description="Stored template matching template_id, if any"
    )
    variant: TemplateVariant = Field(
        default=TemplateVariant.DEFAULT, description="Resolved presentation variant"
    )
    opening_hours: list[ScheduleDay] = Field(
        default_factory=list, alias="openingHours", description="Schedule sorted Monday to Sunday"
    )


class ViewStatus(str, Enum):
    """Enumeration of view lifecycle states."""

    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class ViewErrorKind(str, Enum):
    """Errors surfaced to the rendering layer.

    Inactive restaurants are reported as NOT_FOUND so their existence is not leaked.
    """

    NOT_FOUND = "not_found"
    SOURCE_UNAVAILABLE = "source_unavailable"


class ViewState(BaseModel):
    """Status of a restaurant view: Loading, Ready(view) or Error(kind)."""

    model_config = ConfigDict(frozen=True)

    status: ViewStatus = Field(..., description="Current view status")
    view: RestaurantView | None = Field(None, description="Joined view when ready")
    error: ViewErrorKind | None = Field(None, description="Error kind when failed")

    @classmethod
    def loading(cls) -> "ViewState":
        return cls(status=ViewStatus.LOADING)

    @classmethod
    def ready(cls, view: RestaurantView | None = None) -> "ViewState":
        return cls(status=ViewStatus.READY, view=view)

    @classmethod
    def failed(cls, error: ViewErrorKind) -> "ViewState":
        return cls(status=ViewStatus.ERROR, error=error)

    @property
    def retryable(self) -> bool:
        """Whether the error is transient and the request can be retried."""
        return self.error == ViewErrorKind.SOURCE_UNAVAILABLE


class ViewUpdate(BaseModel):
    """Notification delivered to view listeners.

    Attributes:
        restaurant_id: Restaurant the state belongs to, None for the whole watched scope
        state: New state
    """

    model_config = ConfigDict(frozen=True)

    restaurant_id: str | None = Field(None, description="Restaurant identifier or None for scope")
    state: ViewState = Field(..., description="New view state")


class DatabaseSummary(BaseModel):
    """Counts of the documents currently held by a view service."""

    restaurants: int = Field(..., description="Watched restaurants", ge=0)
    categories: int = Field(..., description="Categories across watched restaurants", ge=0)
    items: int = Field(..., description="Items across watched categories", ge=0)
    templates: int = Field(..., description="Loaded templates", ge=0)
    ready_views: int = Field(..., description="Restaurants with a ready view", ge=0)
