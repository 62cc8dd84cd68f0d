"""Menu document models.

These models represent the documents stored in the menu database: restaurants,
their nested categories and items, and presentation templates. Documents are
stored with camelCase field names, so every model accepts both the stored
aliases and the Python field names.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
HOURS_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d-([01]\d|2[0-3]):[0-5]\d$")
DEFAULT_CURRENCY = "COP"


class TemplateVariant(str, Enum):
    """Closed set of presentation variants a restaurant page can use."""

    DEFAULT = "default"
    CHRISTMAS = "christmas"
    HALLOWEEN = "halloween"
    VELITAS = "velitas"
    INDEPENDENCE = "independence"
    EASTER = "easter"
    MOTHERS_DAY = "mothers-day"
    FATHERS_DAY = "fathers-day"
    VALENTINE = "valentine"
    ELEGANT = "elegant"
    TROPICAL = "tropical"
    DARK = "dark"
    COLORFUL = "colorful"
    ROMANTIC = "romantic"


def validate_document_id(value: str) -> str:
    """Validate a document identifier used as a path segment.

    Raises:
        ValueError: If the identifier is empty, not a string or contains "/"
    """
    if not isinstance(value, str) or not value or "/" in value:
        raise ValueError(f"Invalid document identifier: {value!r}")
    return value


@dataclass(frozen=True)
class CategoryKey:
    """Composite key identifying a category within its restaurant.

    Attributes:
        restaurant_id: Owning restaurant identifier
        category_id: Category identifier
    """

    restaurant_id: str
    category_id: str

    def __post_init__(self) -> None:
        validate_document_id(self.restaurant_id)
        validate_document_id(self.category_id)

    def __str__(self) -> str:
        return f"{self.restaurant_id}/{self.category_id}"


class MenuDocument(BaseModel):
    """Base model for documents read from the menu database."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Contact(MenuDocument):
    """Restaurant contact details."""

    whatsapp: str | None = Field(None, description="WhatsApp phone number")
    instagram: str | None = Field(None, description="Instagram handle")
    address: str | None = Field(None, description="Street address")


class Restaurant(MenuDocument):
    """Restaurant document, root of the menu tree."""

    id: str = Field(..., description="Unique identifier for the restaurant")
    slug: str = Field(..., description="Public URL-safe identifier")
    name: str = Field(..., description="Display name")
    is_active: bool = Field(False, alias="isActive", description="Whether the menu is public")
    currency: str = Field(default=DEFAULT_CURRENCY, description="ISO currency code for prices")
    contact: Contact | None = Field(None, description="Contact details")
    schedule: dict[str, str] = Field(
        default_factory=dict, description="Weekday to 'HH:MM-HH:MM' or 'closed'"
    )
    template_id: str = Field(default="", alias="templateId", description="Stored template identifier")

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        """Validate that the slug is URL-safe."""
        if not SLUG_PATTERN.match(v):
            raise ValueError(f"slug must be lowercase letters, digits and hyphens: {v!r}")
        return v

    @field_validator("template_id", mode="before")
    @classmethod
    def coerce_template_id(cls, v: Any) -> str:
        """Accept any stored template identifier; unset means no template."""
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("currency", mode="before")
    @classmethod
    def default_currency(cls, v: Any) -> Any:
        return DEFAULT_CURRENCY if v is None else v

    @field_validator("schedule", mode="before")
    @classmethod
    def default_schedule(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("schedule")
    @classmethod
    def validate_schedule(cls, v: dict[str, str]) -> dict[str, str]:
        """Validate that every schedule entry is a time range or 'closed'."""
        for day, hours in v.items():
            if hours.lower() != "closed" and not HOURS_PATTERN.match(hours):
                raise ValueError(f"Invalid hours for {day}: {hours!r}")
        return v

    @classmethod
    def from_document(cls, document_id: str, data: dict[str, Any]) -> "Restaurant":
        """Create a Restaurant from a stored document.

        Args:
            document_id: Document identifier
            data: Stored document fields

        Returns:
            Restaurant: Parsed model instance
        """
        validate_document_id(document_id)
        return cls.model_validate({**data, "id": document_id})


class Category(MenuDocument):
    """Menu category nested under a restaurant."""

    id: str = Field(..., description="Unique identifier for the category")
    restaurant_id: str = Field(..., alias="restaurantId", description="Owning restaurant")
    name: str = Field(..., description="Category name")
    order: int = Field(default=0, description="Display order of category")
    active: bool | None = Field(None, description="Explicit false hides the category")

    @property
    def key(self) -> CategoryKey:
        return CategoryKey(self.restaurant_id, self.id)

    @classmethod
    def from_document(
        cls, restaurant_id: str, document_id: str, data: dict[str, Any]
    ) -> "Category":
        """Create a Category from a document nested under a restaurant.

        The owning restaurant comes from the document's path. A stored
        restaurant reference that disagrees with the path is rejected.

        Args:
            restaurant_id: Restaurant the collection is nested under
            document_id: Document identifier
            data: Stored document fields

        Returns:
            Category: Parsed model instance

        Raises:
            ValueError: If the document references another restaurant
        """
        stored = data.get("restaurantId")
        if stored is not None and stored != restaurant_id:
            raise ValueError(
                f"Category {document_id} references restaurant {stored!r} "
                f"but is stored under {restaurant_id!r}"
            )
        CategoryKey(restaurant_id, document_id)
        return cls.model_validate({**data, "id": document_id, "restaurantId": restaurant_id})


class MenuItem(MenuDocument):
    """Menu item nested under a category."""

    id: str = Field(..., description="Unique identifier for the menu item")
    restaurant_id: str = Field(..., alias="restaurantId", description="Restaurant this item belongs to")
    category_id: str = Field(..., alias="categoryId", description="Category this item belongs to")
    name: str = Field(..., description="Item name")
    description: str | None = Field(None, description="Item description")
    price: int = Field(..., description="Item price in whole currency units", ge=0)
    order: int = Field(default=0, description="Display order within the category")
    active: bool | None = Field(None, description="Explicit false hides the item")

    @property
    def key(self) -> CategoryKey:
        return CategoryKey(self.restaurant_id, self.category_id)

    @classmethod
    def from_document(cls, key: CategoryKey, document_id: str, data: dict[str, Any]) -> "MenuItem":
        """Create a MenuItem from a document nested under a category.

        Args:
            key: Category the collection is nested under
            document_id: Document identifier
            data: Stored document fields

        Returns:
            MenuItem: Parsed model instance

        Raises:
            ValueError: If the document references another restaurant or category
        """
        for field, expected in (
            ("restaurantId", key.restaurant_id),
            ("categoryId", key.category_id),
        ):
            stored = data.get(field)
            if stored is not None and stored != expected:
                raise ValueError(
                    f"Item {document_id} has {field}={stored!r} but is stored under {key}"
                )
        return cls.model_validate(
            {
                **data,
                "id": document_id,
                "restaurantId": key.restaurant_id,
                "categoryId": key.category_id,
            }
        )


class Template(MenuDocument):
    """Presentation template."""

    id: str = Field(..., description="Unique identifier for the template")
    name: str = Field(..., description="Display name")
    component: TemplateVariant = Field(
        default=TemplateVariant.DEFAULT, description="Presentation variant to render"
    )
    keywords: tuple[str, ...] = Field(default=(), description="Keywords for fallback resolution")
    description: str | None = Field(None, description="Template description")

    @classmethod
    def from_document(cls, document_id: str, data: dict[str, Any]) -> "Template":
        """Create a Template from a stored document."""
        return cls.model_validate({**data, "id": document_id})
