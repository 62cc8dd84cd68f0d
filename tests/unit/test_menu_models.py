"""Unit tests for menu document and view models."""

import pytest
from pydantic import ValidationError

from menu_view_service.models.menu_models import (
    Category,
    CategoryKey,
    MenuItem,
    Restaurant,
    Template,
    TemplateVariant,
    validate_document_id,
)
from menu_view_service.models.view_models import ViewErrorKind, ViewState, ViewStatus


@pytest.mark.unit
class TestCategoryKey:
    """Test suite for CategoryKey."""

    def test_valid_key(self) -> None:
        """Test creating a valid key."""
        key = CategoryKey("rest_1", "cat_1")

        assert key.restaurant_id == "rest_1"
        assert key.category_id == "cat_1"
        assert str(key) == "rest_1/cat_1"

    def test_keys_are_hashable_and_comparable(self) -> None:
        """Test that equal keys collapse in a set."""
        assert {CategoryKey("r", "c"), CategoryKey("r", "c")} == {CategoryKey("r", "c")}

    @pytest.mark.parametrize(
        ("restaurant_id", "category_id"),
        [("", "cat_1"), ("rest_1", ""), ("rest/1", "cat_1"), ("rest_1", "cat/1")],
    )
    def test_malformed_key_raises(self, restaurant_id: str, category_id: str) -> None:
        """Test that empty or slash-containing parts are rejected."""
        with pytest.raises(ValueError):
            CategoryKey(restaurant_id, category_id)

    def test_validate_document_id_rejects_non_string(self) -> None:
        """Test that non-string identifiers are rejected."""
        with pytest.raises(ValueError):
            validate_document_id(123)  # type: ignore[arg-type]


@pytest.mark.unit
class TestRestaurant:
    """Test suite for Restaurant model."""

    def test_from_document_reads_stored_aliases(self) -> None:
        """Test parsing a stored restaurant document."""
        restaurant = Restaurant.from_document(
            "rest_1",
            {
                "slug": "cafe-bella-vista",
                "name": "Café Bella Vista",
                "isActive": True,
                "templateId": "template-elegant",
                "schedule": {"monday": "08:00-18:00", "sunday": "closed"},
            },
        )

        assert restaurant.id == "rest_1"
        assert restaurant.is_active is True
        assert restaurant.template_id == "template-elegant"
        assert restaurant.currency == "COP"
        assert restaurant.schedule["sunday"] == "closed"

    def test_missing_is_active_means_inactive(self) -> None:
        """Test that restaurants are hidden unless explicitly active."""
        restaurant = Restaurant.from_document("rest_1", {"slug": "x", "name": "X"})

        assert restaurant.is_active is False
        assert restaurant.template_id == ""

    @pytest.mark.parametrize(
        ("stored", "expected"), [(None, ""), (7, "7"), ("Navidad", "Navidad")]
    )
    def test_template_id_is_free_text(self, stored: object, expected: str) -> None:
        """Test that any stored template identifier is accepted as text."""
        restaurant = Restaurant.from_document(
            "rest_1", {"slug": "x", "name": "X", "templateId": stored}
        )

        assert restaurant.template_id == expected

    def test_null_schedule_and_currency_use_defaults(self) -> None:
        """Test that explicit nulls fall back to the field defaults."""
        restaurant = Restaurant.from_document(
            "rest_1", {"slug": "x", "name": "X", "schedule": None, "currency": None}
        )

        assert restaurant.schedule == {}
        assert restaurant.currency == "COP"

    def test_invalid_slug_raises(self) -> None:
        """Test that slugs must be URL-safe."""
        with pytest.raises(ValidationError):
            Restaurant.from_document("rest_1", {"slug": "Café Bella", "name": "X"})

    def test_invalid_schedule_raises(self) -> None:
        """Test that schedule entries must be time ranges or closed."""
        with pytest.raises(ValidationError):
            Restaurant.from_document(
                "rest_1", {"slug": "x", "name": "X", "schedule": {"monday": "all day"}}
            )

    def test_invalid_document_id_raises(self) -> None:
        """Test that document ids are validated."""
        with pytest.raises(ValueError):
            Restaurant.from_document("", {"slug": "x", "name": "X"})

    def test_model_is_frozen(self) -> None:
        """Test that parsed documents are immutable."""
        restaurant = Restaurant.from_document("rest_1", {"slug": "x", "name": "X"})

        with pytest.raises(ValidationError):
            restaurant.name = "Y"  # type: ignore[misc]


@pytest.mark.unit
class TestCategory:
    """Test suite for Category model."""

    def test_from_document_takes_restaurant_from_path(self) -> None:
        """Test that the owning restaurant comes from the collection path."""
        category = Category.from_document("rest_1", "cat_1", {"name": "Bebidas", "order": 2})

        assert category.restaurant_id == "rest_1"
        assert category.order == 2
        assert category.active is None
        assert category.key == CategoryKey("rest_1", "cat_1")

    def test_matching_stored_reference_is_accepted(self) -> None:
        """Test that a stored restaurantId equal to the path is accepted."""
        category = Category.from_document(
            "rest_1", "cat_1", {"name": "Bebidas", "restaurantId": "rest_1"}
        )

        assert category.restaurant_id == "rest_1"

    def test_mismatched_restaurant_raises(self) -> None:
        """Test that a category referencing another restaurant is rejected."""
        with pytest.raises(ValueError, match="references restaurant"):
            Category.from_document("rest_1", "cat_1", {"name": "Bebidas", "restaurantId": "rest_9"})


@pytest.mark.unit
class TestMenuItem:
    """Test suite for MenuItem model."""

    def test_from_document(self) -> None:
        """Test parsing an item nested under a category."""
        item = MenuItem.from_document(
            CategoryKey("rest_1", "cat_1"), "item_1", {"name": "Café", "price": 3500}
        )

        assert item.restaurant_id == "rest_1"
        assert item.category_id == "cat_1"
        assert item.key == CategoryKey("rest_1", "cat_1")
        assert item.description is None

    def test_negative_price_raises(self) -> None:
        """Test that prices must be non-negative."""
        with pytest.raises(ValidationError):
            MenuItem.from_document(
                CategoryKey("rest_1", "cat_1"), "item_1", {"name": "Café", "price": -1}
            )

    def test_mismatched_category_raises(self) -> None:
        """Test that an item referencing another category is rejected."""
        with pytest.raises(ValueError, match="categoryId"):
            MenuItem.from_document(
                CategoryKey("rest_1", "cat_1"),
                "item_1",
                {"name": "Café", "price": 3500, "categoryId": "cat_2"},
            )


@pytest.mark.unit
class TestTemplate:
    """Test suite for Template model."""

    def test_from_document(self) -> None:
        """Test parsing a stored template."""
        template = Template.from_document(
            "template-elegant", {"name": "Elegante", "component": "elegant", "keywords": ["lujo"]}
        )

        assert template.component == TemplateVariant.ELEGANT
        assert template.keywords == ("lujo",)

    def test_unknown_component_raises(self) -> None:
        """Test that components outside the variant set are rejected."""
        with pytest.raises(ValidationError):
            Template.from_document("t1", {"name": "Neon", "component": "neon"})


@pytest.mark.unit
class TestViewState:
    """Test suite for ViewState."""

    def test_constructors(self) -> None:
        """Test the loading, ready and failed constructors."""
        assert ViewState.loading().status == ViewStatus.LOADING
        assert ViewState.ready().status == ViewStatus.READY
        failed = ViewState.failed(ViewErrorKind.NOT_FOUND)
        assert failed.status == ViewStatus.ERROR
        assert failed.error == ViewErrorKind.NOT_FOUND

    def test_only_source_unavailable_is_retryable(self) -> None:
        """Test that missing restaurants are not retryable."""
        assert ViewState.failed(ViewErrorKind.SOURCE_UNAVAILABLE).retryable is True
        assert ViewState.failed(ViewErrorKind.NOT_FOUND).retryable is False
