"""Unit tests for the document source base class and in-memory source."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from menu_view_service.models.menu_models import CategoryKey
from menu_view_service.sources.base_source import (
    CollectionPath,
    Document,
    FieldFilter,
    SourceUnavailableError,
)
from menu_view_service.sources.memory_source import InMemoryDocumentSource


@pytest.mark.unit
class TestCollectionPath:
    """Test suite for CollectionPath."""

    def test_factories_render_nested_paths(self) -> None:
        """Test the string form of each collection level."""
        assert str(CollectionPath.restaurants()) == "restaurants"
        assert str(CollectionPath.templates()) == "templates"
        assert str(CollectionPath.categories("r1")) == "restaurants/r1/categories"
        assert (
            str(CollectionPath.items(CategoryKey("r1", "c1")))
            == "restaurants/r1/categories/c1/items"
        )

    @pytest.mark.parametrize(
        "value",
        [
            "restaurants",
            "templates",
            "restaurants/r1/categories",
            "/restaurants/r1/categories/c1/items/",
        ],
    )
    def test_parse_round_trips(self, value: str) -> None:
        """Test parsing each known collection shape."""
        assert str(CollectionPath.parse(value)) == value.strip("/")

    @pytest.mark.parametrize(
        "value", ["", "menus", "restaurants/r1", "restaurants//categories", "templates/t1/items"]
    )
    def test_parse_rejects_unknown_shapes(self, value: str) -> None:
        """Test that unknown or malformed paths raise ValueError."""
        with pytest.raises(ValueError):
            CollectionPath.parse(value)

    def test_path_properties(self) -> None:
        """Test level, restaurant and category accessors."""
        items = CollectionPath.items(CategoryKey("r1", "c1"))

        assert items.level == "items"
        assert items.restaurant_id == "r1"
        assert items.category_key == CategoryKey("r1", "c1")
        assert CollectionPath.categories("r1").category_key is None
        assert CollectionPath.restaurants().restaurant_id is None


@pytest.mark.unit
class TestFieldFilter:
    """Test suite for FieldFilter."""

    def test_matches_equal_field(self) -> None:
        where = FieldFilter("slug", "cafe")

        assert where.matches(Document("r1", {"slug": "cafe"})) is True
        assert where.matches(Document("r2", {"slug": "bar"})) is False
        assert where.matches(Document("r3", {})) is False


@pytest.mark.unit
class TestInMemoryDocumentSource:
    """Test suite for InMemoryDocumentSource subscriptions."""

    @pytest.fixture
    def path(self) -> CollectionPath:
        return CollectionPath.categories("rest_1")

    def test_subscribe_delivers_initial_snapshot(
        self, memory_source: InMemoryDocumentSource, path: CollectionPath
    ) -> None:
        """Test that the current documents are delivered before subscribe returns."""
        on_snapshot = MagicMock()

        subscription = memory_source.subscribe(path, on_snapshot, MagicMock())

        assert subscription.active is True
        documents = on_snapshot.call_args.args[0]
        assert {d.id for d in documents} == {"cat_bebidas", "cat_postres", "cat_oculta"}

    def test_write_notifies_subscribers(
        self, memory_source: InMemoryDocumentSource, path: CollectionPath
    ) -> None:
        """Test that every write delivers a fresh snapshot."""
        on_snapshot = MagicMock()
        memory_source.subscribe(path, on_snapshot, MagicMock())

        memory_source.set_document(path, "cat_nueva", {"name": "Entradas"})

        assert on_snapshot.call_count == 2
        assert "cat_nueva" in {d.id for d in on_snapshot.call_args.args[0]}

    def test_write_to_other_collection_does_not_notify(
        self, memory_source: InMemoryDocumentSource, path: CollectionPath
    ) -> None:
        """Test that subscribers only see their own collection."""
        on_snapshot = MagicMock()
        memory_source.subscribe(path, on_snapshot, MagicMock())

        memory_source.set_document(CollectionPath.categories("rest_3"), "c1", {"name": "X"})

        assert on_snapshot.call_count == 1

    def test_filtered_subscription(self, memory_source: InMemoryDocumentSource) -> None:
        """Test that a where filter narrows every delivery."""
        on_snapshot = MagicMock()

        memory_source.subscribe(
            CollectionPath.restaurants(),
            on_snapshot,
            MagicMock(),
            where=FieldFilter("slug", "el-fogon"),
        )

        assert [d.id for d in on_snapshot.call_args.args[0]] == ["rest_3"]

    def test_cancelled_subscription_never_delivers(
        self, memory_source: InMemoryDocumentSource, path: CollectionPath
    ) -> None:
        """Test that cancel stops deliveries and releases the registration."""
        on_snapshot = MagicMock()
        subscription = memory_source.subscribe(path, on_snapshot, MagicMock())

        subscription.cancel()
        subscription.cancel()
        memory_source.set_document(path, "cat_nueva", {"name": "Entradas"})

        assert subscription.active is False
        assert on_snapshot.call_count == 1
        assert memory_source.subscription_count(path) == 0
        assert memory_source.subscription_count() == 0

    def test_unavailable_collection_delivers_error(
        self, memory_source: InMemoryDocumentSource, path: CollectionPath
    ) -> None:
        """Test that read failures reach on_error and restore re-delivers."""
        on_snapshot = MagicMock()
        on_error = MagicMock()
        memory_source.subscribe(path, on_snapshot, on_error)

        memory_source.set_unavailable(path, "timeout")

        error = on_error.call_args.args[0]
        assert isinstance(error, SourceUnavailableError)
        assert error.path == path
        assert error.reason == "timeout"

        memory_source.restore(path)

        assert on_snapshot.call_count == 2

    def test_get_documents_raises_when_unavailable(
        self, memory_source: InMemoryDocumentSource
    ) -> None:
        """Test that direct reads raise SourceUnavailableError."""
        memory_source.set_unavailable(CollectionPath.restaurants())

        with pytest.raises(SourceUnavailableError):
            memory_source.get_documents(CollectionPath.restaurants())

    def test_failing_callback_does_not_block_siblings(
        self, memory_source: InMemoryDocumentSource, path: CollectionPath
    ) -> None:
        """Test that one subscriber's exception is contained."""
        failing = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        memory_source.subscribe(path, failing, MagicMock())
        memory_source.subscribe(path, healthy, MagicMock())

        memory_source.notify_changed(path)

        assert failing.call_count == 2
        assert healthy.call_count == 2

    def test_reads_return_copies(self, memory_source: InMemoryDocumentSource) -> None:
        """Test that mutating a read document does not change the store."""
        path = CollectionPath.restaurants()
        document = next(d for d in memory_source.get_documents(path) if d.id == "rest_1")

        document.data["name"] = "Changed"

        stored = next(d for d in memory_source.get_documents(path) if d.id == "rest_1")
        assert stored.data["name"] == "Café Bella Vista"

    def test_delete_document(
        self, memory_source: InMemoryDocumentSource, path: CollectionPath
    ) -> None:
        """Test deleting existing and missing documents."""
        on_snapshot = MagicMock()
        memory_source.subscribe(path, on_snapshot, MagicMock())

        assert memory_source.delete_document(path, "cat_postres") is True
        assert memory_source.delete_document(path, "cat_postres") is False
        assert on_snapshot.call_count == 2

    def test_missing_collection_is_empty(self) -> None:
        """Test that reading an unknown collection returns no documents."""
        source = InMemoryDocumentSource()

        assert source.get_documents(CollectionPath.templates()) == []

    def test_load_seed_splits_nested_layout(
        self, memory_source: InMemoryDocumentSource, bebidas_key: CategoryKey
    ) -> None:
        """Test that nested seed data lands in its collections."""
        restaurants = memory_source.get_documents(CollectionPath.restaurants())
        items = memory_source.get_documents(CollectionPath.items(bebidas_key))

        rest_1 = next(d for d in restaurants if d.id == "rest_1")
        assert "categories" not in rest_1.data
        assert {d.id for d in items} == {"item_cafe", "item_jugo"}
        assert len(memory_source.get_documents(CollectionPath.templates())) == 1

    def test_from_seed_file(self, seed_file: Path) -> None:
        """Test creating a seeded source from a JSON file."""
        source = InMemoryDocumentSource.from_seed_file(seed_file)

        assert len(source.get_documents(CollectionPath.restaurants())) == 3
