"""Handler for document change notifications.

Menu documents are written out of band. Changes reach this service either as
DynamoDB Stream records or as EventBridge "DocumentChanged" events; each one
names the collection that changed, and the handler asks the document source to
deliver a fresh snapshot of that collection to its live subscribers.
"""

import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from menu_view_service.sources.base_source import CollectionPath, DocumentSource

logger = logging.getLogger(__name__)

EVENT_SOURCE = "com.restaurant.menu"
EVENT_DETAIL_TYPE = "DocumentChanged"


class DocumentChangedEvent(BaseModel):
    """A change to one document of a collection.

    Attributes:
        collection_path: Collection containing the document (e.g. "restaurants/r1/categories")
        document_id: Changed document
        change_type: "insert", "modify" or "remove"
    """

    collection_path: str
    document_id: str
    change_type: str = "modify"


def parse_eventbridge_event(event: dict[str, Any]) -> DocumentChangedEvent | None:
    """Parse an EventBridge event into a DocumentChangedEvent.

    Args:
        event: Raw EventBridge event dictionary

    Returns:
        DocumentChangedEvent if parsing succeeds, None otherwise
    """
    try:
        return DocumentChangedEvent(**event.get("detail", {}))
    except (ValidationError, TypeError) as e:
        logger.error(f"Failed to parse EventBridge event: {e}")  # pragma: no cover
        return None


def parse_stream_records(event: dict[str, Any]) -> list[DocumentChangedEvent]:
    """Parse DynamoDB Stream records into DocumentChangedEvents.

    Records from other event sources or without the table keys are skipped.

    Args:
        event: Raw DynamoDB Stream event with a "Records" list

    Returns:
        list: Parsed change events in record order
    """
    changes: list[DocumentChangedEvent] = []
    for record in event.get("Records", []):
        if record.get("eventSource") != "aws:dynamodb":
            continue

        keys = record.get("dynamodb", {}).get("Keys", {})
        collection_path = keys.get("collection_path", {}).get("S")
        document_id = keys.get("document_id", {}).get("S")
        if not collection_path or not document_id:
            logger.warning(f"Skipping stream record without document keys: {record.get('eventID')}")
            continue

        changes.append(
            DocumentChangedEvent(
                collection_path=collection_path,
                document_id=document_id,
                change_type=str(record.get("eventName", "MODIFY")).lower(),
            )
        )
    return changes


def is_stream_event(event: dict[str, Any]) -> bool:
    """Determine if a Lambda event carries DynamoDB Stream records."""
    records = event.get("Records")
    return bool(records) and all(r.get("eventSource") == "aws:dynamodb" for r in records)


def is_eventbridge_event(event: dict[str, Any]) -> bool:
    """Determine if a Lambda event comes from EventBridge."""
    return "source" in event and "detail-type" in event and "detail" in event


class ChangeEventHandler:
    """Routes document change notifications to a document source."""

    def __init__(self, source: DocumentSource) -> None:
        """Initialize the handler.

        Args:
            source: Document source whose subscribers should be refreshed
        """
        self.source = source

    def handle_changes(self, changes: list[DocumentChangedEvent]) -> int:
        """Refresh every collection touched by a batch of changes.

        Each collection is refreshed once per batch, in first-seen order.

        Args:
            changes: Change events to process

        Returns:
            int: Number of collections refreshed
        """
        paths: list[CollectionPath] = []
        for change in changes:
            try:
                path = CollectionPath.parse(change.collection_path)
            except ValueError as e:
                logger.warning(f"Ignoring change to {change.document_id}: {e}")
                continue
            if path not in paths:
                paths.append(path)

        for path in paths:
            logger.info(f"Refreshing subscribers of {path}")
            self.source.notify_changed(path)

        return len(paths)

    def handle_lambda_event(self, event: dict[str, Any]) -> dict[str, Any]:
        """Lambda entry point for DynamoDB Stream and EventBridge change events.

        Args:
            event: Stream or EventBridge event dictionary

        Returns:
            Dictionary with statusCode and body for Lambda response
        """
        if is_stream_event(event):
            changes = parse_stream_records(event)
        elif is_eventbridge_event(event):
            if event.get("source") != EVENT_SOURCE or event.get("detail-type") != EVENT_DETAIL_TYPE:
                logger.warning(
                    f"Unsupported event type: {event.get('source')}/{event.get('detail-type')}"
                )
                return {
                    "statusCode": 400,
                    "body": f"Unsupported event type: {event.get('source')}/{event.get('detail-type')}",
                }
            change = parse_eventbridge_event(event)
            if change is None:
                return {"statusCode": 400, "body": "Invalid event format"}
            changes = [change]
        else:
            logger.error("Received invalid change event format")  # pragma: no cover
            return {"statusCode": 400, "body": "Invalid event format"}

        refreshed = self.handle_changes(changes)
        return {
            "statusCode": 200,
            "body": f"Refreshed {refreshed} collections from {len(changes)} changes",
        }
