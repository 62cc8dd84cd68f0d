"""In-memory document source.

Holds the nested menu collections in process memory. Used for local
development (seeded from a JSON file) and as the live source in tests, where
collections can also be made unavailable to simulate outages.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from menu_view_service.models.menu_models import CategoryKey
from menu_view_service.sources.base_source import (
    CollectionPath,
    Document,
    DocumentSource,
    SourceUnavailableError,
)

logger = logging.getLogger(__name__)


class InMemoryDocumentSource(DocumentSource):
    """Document source backed by dictionaries.

    Every write notifies the subscribers of the written collection
    synchronously. Reads return deep copies so subscribers never share
    mutable state with the store.
    """

    def __init__(self) -> None:
        super().__init__()
        self._collections: dict[CollectionPath, dict[str, dict[str, Any]]] = {}
        self._unavailable: dict[CollectionPath, str] = {}

    def get_documents(self, path: CollectionPath) -> list[Document]:
        if path in self._unavailable:
            raise SourceUnavailableError(path, self._unavailable[path])

        documents = self._collections.get(path, {})
        return [Document(id=doc_id, data=copy.deepcopy(data)) for doc_id, data in documents.items()]

    def set_document(
        self, path: CollectionPath, document_id: str, data: dict[str, Any], notify: bool = True
    ) -> None:
        """Create or replace a document.

        Args:
            path: Collection to write to
            document_id: Document identifier
            data: Document fields
            notify: Whether to deliver the change to subscribers
        """
        self._collections.setdefault(path, {})[document_id] = copy.deepcopy(data)
        if notify:
            self.notify_changed(path)

    def delete_document(self, path: CollectionPath, document_id: str, notify: bool = True) -> bool:
        """Delete a document.

        Nested collections under the document are kept, as in a hosted
        document database.

        Returns:
            bool: True if the document existed, False otherwise
        """
        removed = self._collections.get(path, {}).pop(document_id, None) is not None
        if removed and notify:
            self.notify_changed(path)
        return removed

    def set_unavailable(self, path: CollectionPath, reason: str = "simulated outage") -> None:
        """Make reads of a collection fail and notify its subscribers of the error."""
        self._unavailable[path] = reason
        self.notify_changed(path)

    def restore(self, path: CollectionPath) -> None:
        """Make a collection readable again and deliver its current snapshot."""
        if self._unavailable.pop(path, None) is not None:
            self.notify_changed(path)

    def load_seed(self, seed: dict[str, Any]) -> None:
        """Load nested seed data without notifying subscribers.

        The seed mirrors the stored layout::

            {
                "restaurants": {
                    "<restaurant_id>": {
                        ...restaurant fields,
                        "categories": {
                            "<category_id>": {
                                ...category fields,
                                "items": {"<item_id>": {...item fields}}
                            }
                        }
                    }
                },
                "templates": {"<template_id>": {...template fields}}
            }

        Args:
            seed: Nested seed document
        """
        restaurant_count = 0
        for restaurant_id, restaurant in seed.get("restaurants", {}).items():
            fields = dict(restaurant)
            categories = fields.pop("categories", {})
            self.set_document(CollectionPath.restaurants(), restaurant_id, fields, notify=False)
            restaurant_count += 1

            for category_id, category in categories.items():
                category_fields = dict(category)
                items = category_fields.pop("items", {})
                self.set_document(
                    CollectionPath.categories(restaurant_id),
                    category_id,
                    category_fields,
                    notify=False,
                )
                items_path = CollectionPath.items(CategoryKey(restaurant_id, category_id))
                for item_id, item in items.items():
                    self.set_document(items_path, item_id, item, notify=False)

        for template_id, template in seed.get("templates", {}).items():
            self.set_document(CollectionPath.templates(), template_id, template, notify=False)

        logger.info(f"Loaded seed data with {restaurant_count} restaurants")

    @classmethod
    def from_seed_file(cls, seed_file: str | Path) -> "InMemoryDocumentSource":
        """Create a source seeded from a JSON file.

        Args:
            seed_file: Path to a JSON file in the load_seed() layout

        Returns:
            InMemoryDocumentSource: Seeded source
        """
        source = cls()
        with open(seed_file, encoding="utf-8") as f:
            source.load_seed(json.load(f))
        return source
