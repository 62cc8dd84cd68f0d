"""Base document source for live menu data.

A document source reads collections of documents from the menu database and
delivers live snapshots to subscribers. Implementations only provide
get_documents(); subscription bookkeeping and delivery live here so every
backend behaves the same way:

- subscribe() delivers an initial snapshot, then one snapshot per change
  notification for the subscribed collection
- a read failure is delivered to every subscriber of the collection as a
  SourceUnavailableError
- a cancelled subscription never delivers again
- an exception raised by one subscriber's callback is logged and does not
  prevent delivery to the others
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from menu_view_service.models.menu_models import CategoryKey, validate_document_id

logger = logging.getLogger(__name__)

RESTAURANTS = "restaurants"
CATEGORIES = "categories"
ITEMS = "items"
TEMPLATES = "templates"


class SourceUnavailableError(Exception):
    """Raised when a collection cannot be read from the document source."""

    def __init__(self, path: "CollectionPath", reason: str) -> None:
        super().__init__(f"Collection {path} unavailable: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class CollectionPath:
    """Path of a document collection in the nested menu layout.

    Valid paths are "restaurants", "templates",
    "restaurants/{restaurant_id}/categories" and
    "restaurants/{restaurant_id}/categories/{category_id}/items".
    """

    segments: tuple[str, ...]

    @classmethod
    def restaurants(cls) -> "CollectionPath":
        return cls((RESTAURANTS,))

    @classmethod
    def templates(cls) -> "CollectionPath":
        return cls((TEMPLATES,))

    @classmethod
    def categories(cls, restaurant_id: str) -> "CollectionPath":
        validate_document_id(restaurant_id)
        return cls((RESTAURANTS, restaurant_id, CATEGORIES))

    @classmethod
    def items(cls, key: CategoryKey) -> "CollectionPath":
        return cls((RESTAURANTS, key.restaurant_id, CATEGORIES, key.category_id, ITEMS))

    @classmethod
    def parse(cls, value: str) -> "CollectionPath":
        """Parse a slash-separated collection path.

        Args:
            value: Path string, e.g. "restaurants/r1/categories"

        Returns:
            CollectionPath: Parsed path

        Raises:
            ValueError: If the path is not one of the known collection shapes
        """
        segments = tuple(value.strip("/").split("/"))
        if segments in ((RESTAURANTS,), (TEMPLATES,)):
            return cls(segments)
        if len(segments) == 3 and segments[0] == RESTAURANTS and segments[2] == CATEGORIES:
            return cls.categories(segments[1])
        if (
            len(segments) == 5
            and segments[0] == RESTAURANTS
            and segments[2] == CATEGORIES
            and segments[4] == ITEMS
        ):
            return cls.items(CategoryKey(segments[1], segments[3]))
        raise ValueError(f"Unknown collection path: {value!r}")

    @property
    def level(self) -> str:
        """Collection name at the end of the path."""
        return self.segments[-1]

    @property
    def restaurant_id(self) -> str | None:
        return self.segments[1] if len(self.segments) > 1 else None

    @property
    def category_key(self) -> CategoryKey | None:
        if self.level != ITEMS:
            return None
        return CategoryKey(self.segments[1], self.segments[3])

    def __str__(self) -> str:
        return "/".join(self.segments)


@dataclass
class Document:
    """A stored document: its identifier and raw fields."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldFilter:
    """Equality filter on a top-level document field."""

    field: str
    value: Any

    def matches(self, document: Document) -> bool:
        return document.data.get(self.field) == self.value


SnapshotCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """A live registration on one collection of a document source.

    Deliveries are dropped once the subscription has been cancelled.
    """

    def __init__(
        self,
        path: CollectionPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        where: FieldFilter | None = None,
        on_cancel: Callable[["Subscription"], None] | None = None,
    ) -> None:
        self.path = path
        self.where = where
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def deliver(self, documents: list[Document]) -> None:
        """Deliver a snapshot of the collection, applying the filter if any."""
        if not self._active:
            return
        if self.where is not None:
            documents = [d for d in documents if self.where.matches(d)]
        self._on_snapshot(documents)

    def fail(self, error: Exception) -> None:
        """Deliver a read failure."""
        if not self._active:
            return
        self._on_error(error)

    def cancel(self) -> None:
        """Release the subscription. Calling it again has no effect."""
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel(self)


class DocumentSource(ABC):
    """Abstract base class for menu document sources.

    Subclasses implement get_documents() and call notify_changed() whenever a
    collection changes, which re-reads the collection once and delivers the
    snapshot to all of its subscribers.
    """

    def __init__(self) -> None:
        self._subscriptions: dict[CollectionPath, list[Subscription]] = {}

    @abstractmethod
    def get_documents(self, path: CollectionPath) -> list[Document]:
        """Read every document of a collection.

        Args:
            path: Collection to read

        Returns:
            list: Documents in the collection (empty if it does not exist)

        Raises:
            SourceUnavailableError: If the collection cannot be read
        """

    def query(self, path: CollectionPath, where: FieldFilter) -> list[Document]:
        """Read the documents of a collection matching an equality filter.

        Raises:
            SourceUnavailableError: If the collection cannot be read
        """
        return [document for document in self.get_documents(path) if where.matches(document)]

    def subscribe(
        self,
        path: CollectionPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        where: FieldFilter | None = None,
    ) -> Subscription:
        """Open a live subscription on a collection.

        The current snapshot (or read error) is delivered before this returns.

        Args:
            path: Collection to watch
            on_snapshot: Called with the (filtered) documents on every change
            on_error: Called with a SourceUnavailableError when a read fails
            where: Optional equality filter

        Returns:
            Subscription: Handle to cancel the subscription
        """
        subscription = Subscription(path, on_snapshot, on_error, where, on_cancel=self._release)
        self._subscriptions.setdefault(path, []).append(subscription)
        logger.debug(f"Subscribed to {path}")
        self._refresh(path, [subscription])
        return subscription

    def notify_changed(self, path: CollectionPath) -> None:
        """Deliver a fresh snapshot of a collection to its subscribers."""
        self._refresh(path, list(self._subscriptions.get(path, [])))

    def subscription_count(self, path: CollectionPath | None = None) -> int:
        """Count open subscriptions, optionally for a single collection."""
        if path is not None:
            return len(self._subscriptions.get(path, []))
        return sum(len(subscriptions) for subscriptions in self._subscriptions.values())

    def _refresh(self, path: CollectionPath, subscriptions: list[Subscription]) -> None:
        if not subscriptions:
            return

        try:
            documents = self.get_documents(path)
        except SourceUnavailableError as e:
            logger.error(f"Failed to read collection {path}: {e.reason}")
            for subscription in subscriptions:
                self._dispatch(subscription, subscription.fail, e)
            return

        for subscription in subscriptions:
            self._dispatch(subscription, subscription.deliver, documents)

    def _dispatch(
        self, subscription: Subscription, callback: Callable[[Any], None], payload: Any
    ) -> None:
        try:
            callback(payload)
        except Exception:
            logger.exception(f"Subscriber callback failed for collection {subscription.path}")

    def _release(self, subscription: Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.path, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)
        if not subscriptions:
            self._subscriptions.pop(subscription.path, None)
        logger.debug(f"Released subscription on {subscription.path}")
