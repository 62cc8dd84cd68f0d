"""DynamoDB document source.

All collections live in a single table keyed by (collection_path, document_id),
with the document fields stored in a "data" map. Change notifications come
from DynamoDB Streams through the change event handler; this source never
polls.
"""

import logging
from decimal import Decimal
from typing import Any

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from menu_view_service.sources.base_source import (
    CollectionPath,
    Document,
    DocumentSource,
    SourceUnavailableError,
)

logger = logging.getLogger(__name__)


def from_dynamodb_value(value: Any) -> Any:
    """Convert values returned by boto3 into plain Python values.

    DynamoDB numbers are returned as Decimal; integral values become int and
    the rest float. Sets become sorted lists.
    """
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamodb_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamodb_value(v) for v in value]
    if isinstance(value, set):
        return sorted(from_dynamodb_value(v) for v in value)
    return value


class DynamoDBDocumentSource(DocumentSource):
    """Document source reading collections from a DynamoDB table."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize the source.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the documents table
        """
        super().__init__()
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_documents(self, path: CollectionPath) -> list[Document]:
        """Read every document of a collection, following pagination.

        Args:
            path: Collection to read

        Returns:
            list: Documents ordered by document id

        Raises:
            SourceUnavailableError: If DynamoDB rejects the query
        """
        query_args: dict[str, Any] = {
            "KeyConditionExpression": Key("collection_path").eq(str(path)),
        }
        documents: list[Document] = []

        try:
            while True:
                response = self.table.query(**query_args)
                for item in response.get("Items", []):
                    documents.append(
                        Document(
                            id=str(item["document_id"]),
                            data=from_dynamodb_value(item.get("data", {})),
                        )
                    )

                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                query_args["ExclusiveStartKey"] = last_key

        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Failed to query collection {path}: {code}")  # pragma: no cover
            raise SourceUnavailableError(path, code) from e

        return documents
