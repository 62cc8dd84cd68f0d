"""Live restaurant view service.

Keeps an in-memory, eventually consistent view of restaurant menus while the
underlying collections change. Restaurants, their categories and each
category's items are watched through independent live subscriptions; every
delivery updates only the slice of state owned by its source and recomputes
the affected restaurant's view, which is published to listeners when it
differs from the last published one.

Subscription lifecycle per restaurant:

    Unwatched -> Watching(categories) -> Watching(categories + items per category)

Restaurant-set changes reconcile the category subscriptions; category-set
changes reconcile that restaurant's item subscriptions. Existing subscriptions
are never reopened and removed ones are always released.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from menu_view_service.models.menu_models import (
    Category,
    CategoryKey,
    MenuItem,
    Restaurant,
    Template,
)
from menu_view_service.models.view_models import (
    DatabaseSummary,
    RestaurantView,
    ViewErrorKind,
    ViewState,
    ViewStatus,
    ViewUpdate,
)
from menu_view_service.observability import traced
from menu_view_service.observability.metrics import (
    record_subscription_change,
    record_subscription_error,
    record_view_published,
)
from menu_view_service.services.aggregator import aggregate
from menu_view_service.services.subscription_registry import SubscriptionRegistry
from menu_view_service.sources.base_source import (
    CATEGORIES,
    ITEMS,
    RESTAURANTS,
    CollectionPath,
    Document,
    DocumentSource,
    FieldFilter,
    SourceUnavailableError,
    Subscription,
)

logger = logging.getLogger(__name__)

ViewListener = Callable[[ViewUpdate], None]


class MenuViewService:
    """Maintains live restaurant views over a document source.

    A service watches either every restaurant (watch_all) or a single
    restaurant looked up by slug (watch_slug). Listeners receive a ViewUpdate
    for every change: per-restaurant Ready views, NOT_FOUND when a restaurant
    disappears or is deactivated, and a scope-wide update (restaurant_id None)
    when the restaurant collection itself becomes ready or unavailable.
    """

    def __init__(self, source: DocumentSource) -> None:
        """Initialize the service.

        Args:
            source: Document source to read and watch
        """
        self.source = source
        self._listeners: list[ViewListener] = []

        # Each source writes only its own slice
        self._restaurants: dict[str, Restaurant] = {}
        self._categories: dict[str, dict[str, Category]] = {}
        self._items: dict[CategoryKey, list[MenuItem]] = {}
        self._templates: list[Template] = []

        self._states: dict[str, ViewState] = {}
        self._status = ViewState.loading()

        self._root: Subscription | None = None
        self._include_inactive = False
        self._category_subscriptions: SubscriptionRegistry[str] = SubscriptionRegistry(CATEGORIES)
        self._item_subscriptions: SubscriptionRegistry[CategoryKey] = SubscriptionRegistry(ITEMS)

        self._delivery_depth = 0
        self._pending: set[str] = set()

    @property
    def status(self) -> ViewState:
        """Scope-wide state of the restaurant collection."""
        return self._status

    @property
    def templates(self) -> list[Template]:
        return list(self._templates)

    def add_listener(self, listener: ViewListener) -> Callable[[], None]:
        """Register a listener for view updates.

        Args:
            listener: Called with every published ViewUpdate

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def load_templates(self) -> bool:
        """Read the templates collection once.

        Templates change rarely, so they are loaded per session instead of
        watched. On failure the previous templates are kept; restaurants still
        resolve a presentation variant without them.

        Returns:
            bool: True if templates were loaded, False otherwise
        """
        path = CollectionPath.templates()
        try:
            documents = self.source.get_documents(path)
        except SourceUnavailableError as e:
            logger.error(f"Failed to load templates from {path}: {e.reason}")
            return False

        templates: list[Template] = []
        for document in documents:
            try:
                templates.append(Template.from_document(document.id, document.data))
            except ValueError as e:
                logger.warning(f"Skipping malformed template {document.id}: {e}")

        with self._delivery():
            self._templates = templates
            for restaurant_id in self._restaurants:
                self._schedule_publish(restaurant_id)

        logger.info(f"Loaded {len(templates)} templates")
        return True

    def watch_all(self, include_inactive: bool = False) -> None:
        """Start watching every restaurant.

        Args:
            include_inactive: Also build views for inactive restaurants

        Raises:
            RuntimeError: If the service is already watching
        """
        self._start_watching(where=None, include_inactive=include_inactive)

    @traced("watch_restaurant_by_slug")
    def watch_slug(self, slug: str) -> ViewState:
        """Look up an active restaurant by slug and start watching it.

        A missing and an inactive restaurant both return NOT_FOUND without
        opening any subscription.

        Args:
            slug: Public restaurant slug

        Returns:
            ViewState: Current state of the restaurant's view, or the error
        """
        try:
            restaurant = self.find_by_slug(slug)
        except SourceUnavailableError as e:
            logger.error(f"Failed to look up restaurant slug {slug!r}: {e.reason}")
            return ViewState.failed(ViewErrorKind.SOURCE_UNAVAILABLE)

        if restaurant is None:
            logger.info(f"No active restaurant with slug {slug!r}")
            return ViewState.failed(ViewErrorKind.NOT_FOUND)

        self.load_templates()
        self._start_watching(where=FieldFilter("slug", slug), include_inactive=False)
        return self.state(restaurant.id)

    def find_by_slug(self, slug: str) -> Restaurant | None:
        """Query the restaurant collection for an active restaurant by slug.

        Args:
            slug: Public restaurant slug

        Returns:
            Restaurant if an active one matches, None otherwise

        Raises:
            SourceUnavailableError: If the restaurant collection cannot be read
        """
        documents = self.source.query(CollectionPath.restaurants(), FieldFilter("slug", slug))
        for document in sorted(documents, key=lambda d: d.id):
            restaurant = self._parse_restaurant(document)
            if restaurant is not None and restaurant.is_active:
                return restaurant
        return None

    def state(self, restaurant_id: str) -> ViewState:
        """Current state of one restaurant's view."""
        if self._status.status != ViewStatus.READY:
            return self._status
        return self._states.get(restaurant_id, ViewState.failed(ViewErrorKind.NOT_FOUND))

    def state_for_slug(self, slug: str) -> ViewState:
        """Current state of the watched restaurant with a given slug."""
        for restaurant_id, restaurant in self._restaurants.items():
            if restaurant.slug == slug:
                return self.state(restaurant_id)
        if self._status.status != ViewStatus.READY:
            return self._status
        return ViewState.failed(ViewErrorKind.NOT_FOUND)

    def views(self) -> list[RestaurantView]:
        """Ready views of all watched restaurants, ordered by name."""
        views = [state.view for state in self._states.values() if state.view is not None]
        return sorted(views, key=lambda view: (view.name, view.id))

    def summary(self) -> DatabaseSummary:
        """Count the documents currently held by the service."""
        return DatabaseSummary(
            restaurants=len(self._restaurants),
            categories=sum(len(categories) for categories in self._categories.values()),
            items=sum(len(items) for items in self._items.values()),
            templates=len(self._templates),
            ready_views=sum(1 for state in self._states.values() if state.view is not None),
        )

    def refresh(self) -> None:
        """Re-read every watched collection, restaurants first.

        For hosts where change notifications can reach another process, such
        as Lambda containers, so views are rebuilt from the current documents
        before being served. Subscriptions opened by an earlier level are read
        again by the next one; unchanged views are not republished.
        """
        if self._root is None:
            return

        self.source.notify_changed(CollectionPath.restaurants())
        for restaurant_id in sorted(self._category_subscriptions.keys()):
            self.source.notify_changed(CollectionPath.categories(restaurant_id))
        for key in sorted(self._item_subscriptions.keys(), key=str):
            self.source.notify_changed(CollectionPath.items(key))

    def close(self) -> None:
        """Release every live subscription.

        No callback delivered after this point reaches the service.
        """
        if self._root is not None:
            self._root.cancel()
            self._root = None
            record_subscription_change(RESTAURANTS, -1)

        released = self._category_subscriptions.release_all()
        released += self._item_subscriptions.release_all()
        self._listeners.clear()
        logger.info(f"Closed menu view service, released {released} nested subscriptions")

    def _start_watching(self, where: FieldFilter | None, include_inactive: bool) -> None:
        if self._root is not None:
            raise RuntimeError("Menu view service is already watching restaurants")

        self._include_inactive = include_inactive
        self._root = self.source.subscribe(
            CollectionPath.restaurants(),
            self._on_restaurants,
            self._on_restaurants_error,
            where=where,
        )
        record_subscription_change(RESTAURANTS, 1)

    # Delivery handlers

    def _on_restaurants(self, documents: list[Document]) -> None:
        with self._delivery():
            restaurants: dict[str, Restaurant] = {}
            for document in documents:
                restaurant = self._parse_restaurant(document)
                if restaurant is None:
                    continue
                if restaurant.is_active or self._include_inactive:
                    restaurants[restaurant.id] = restaurant

            self._restaurants = restaurants
            self._set_status(ViewState.ready())

            _, removed = self._category_subscriptions.reconcile(
                restaurants.keys(), self._watch_categories
            )
            for restaurant_id in removed:
                self._forget(restaurant_id)

            for restaurant_id in restaurants:
                self._schedule_publish(restaurant_id)

    def _on_restaurants_error(self, error: Exception) -> None:
        logger.error(f"Restaurant subscription on {CollectionPath.restaurants()} failed: {error}")
        record_subscription_error(RESTAURANTS)
        self._set_status(ViewState.failed(ViewErrorKind.SOURCE_UNAVAILABLE))

    def _on_categories(self, restaurant_id: str, documents: list[Document]) -> None:
        if restaurant_id not in self._restaurants:
            return

        with self._delivery():
            categories: dict[str, Category] = {}
            for document in documents:
                try:
                    category = Category.from_document(restaurant_id, document.id, document.data)
                except ValueError as e:
                    logger.warning(
                        f"Skipping malformed category {document.id} of restaurant {restaurant_id}: {e}"
                    )
                    continue
                categories[category.id] = category

            self._categories[restaurant_id] = categories

            _, removed = self._item_subscriptions.reconcile(
                (category.key for category in categories.values()),
                self._watch_items,
                scope=lambda key: key.restaurant_id == restaurant_id,
            )
            for key in removed:
                self._items.pop(key, None)

            self._schedule_publish(restaurant_id)

    def _on_categories_error(self, restaurant_id: str, error: Exception) -> None:
        # Degrades this restaurant only: keep the last known categories
        logger.error(
            f"Category subscription on {CollectionPath.categories(restaurant_id)} failed "
            f"for restaurant {restaurant_id}: {error}"
        )
        record_subscription_error(CATEGORIES)
        with self._delivery():
            self._schedule_publish(restaurant_id)

    def _on_items(self, key: CategoryKey, documents: list[Document]) -> None:
        if key.category_id not in self._categories.get(key.restaurant_id, {}):
            return

        with self._delivery():
            items: list[MenuItem] = []
            for document in documents:
                try:
                    items.append(MenuItem.from_document(key, document.id, document.data))
                except ValueError as e:
                    logger.warning(f"Skipping malformed item {document.id} of category {key}: {e}")

            self._items[key] = items
            self._schedule_publish(key.restaurant_id)

    def _on_items_error(self, key: CategoryKey, error: Exception) -> None:
        logger.error(
            f"Item subscription on {CollectionPath.items(key)} failed for category {key}: {error}"
        )
        record_subscription_error(ITEMS)

    # Subscription factories

    def _watch_categories(self, restaurant_id: str) -> Subscription:
        return self.source.subscribe(
            CollectionPath.categories(restaurant_id),
            lambda documents: self._on_categories(restaurant_id, documents),
            lambda error: self._on_categories_error(restaurant_id, error),
        )

    def _watch_items(self, key: CategoryKey) -> Subscription:
        return self.source.subscribe(
            CollectionPath.items(key),
            lambda documents: self._on_items(key, documents),
            lambda error: self._on_items_error(key, error),
        )

    # State and publication

    def _parse_restaurant(self, document: Document) -> Restaurant | None:
        try:
            return Restaurant.from_document(document.id, document.data)
        except ValueError as e:
            logger.warning(f"Skipping malformed restaurant {document.id}: {e}")
            return None

    def _forget(self, restaurant_id: str) -> None:
        self._item_subscriptions.reconcile(
            (), self._watch_items, scope=lambda key: key.restaurant_id == restaurant_id
        )
        self._categories.pop(restaurant_id, None)
        for key in [key for key in self._items if key.restaurant_id == restaurant_id]:
            del self._items[key]
        self._pending.discard(restaurant_id)

        if self._states.pop(restaurant_id, None) is not None:
            logger.info(f"Restaurant {restaurant_id} is no longer available")
            self._notify(
                ViewUpdate(
                    restaurant_id=restaurant_id,
                    state=ViewState.failed(ViewErrorKind.NOT_FOUND),
                )
            )

    @contextmanager
    def _delivery(self) -> Iterator[None]:
        """Group publications so one delivery publishes each restaurant at most once."""
        self._delivery_depth += 1
        try:
            yield
        finally:
            self._delivery_depth -= 1

        if self._delivery_depth == 0:
            pending, self._pending = self._pending, set()
            for restaurant_id in sorted(pending):
                self._publish(restaurant_id)

    def _schedule_publish(self, restaurant_id: str) -> None:
        self._pending.add(restaurant_id)

    def _publish(self, restaurant_id: str) -> None:
        restaurant = self._restaurants.get(restaurant_id)
        if restaurant is None:
            return

        categories = list(self._categories.get(restaurant_id, {}).values())
        items = [item for category in categories for item in self._items.get(category.key, [])]
        state = ViewState.ready(aggregate(restaurant, categories, items, self._templates))

        if self._states.get(restaurant_id) == state:
            return
        self._states[restaurant_id] = state
        self._notify(ViewUpdate(restaurant_id=restaurant_id, state=state))

    def _set_status(self, status: ViewState) -> None:
        if self._status == status:
            return
        self._status = status
        self._notify(ViewUpdate(restaurant_id=None, state=status))

    def _notify(self, update: ViewUpdate) -> None:
        record_view_published(update.state.status.value)
        for listener in list(self._listeners):
            try:
                listener(update)
            except Exception:
                logger.exception(f"View listener failed for restaurant {update.restaurant_id}")
