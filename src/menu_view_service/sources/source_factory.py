"""Document source construction from environment configuration."""

import logging
import os
from typing import Any

import boto3

from menu_view_service.sources.base_source import DocumentSource
from menu_view_service.sources.dynamodb_source import DynamoDBDocumentSource
from menu_view_service.sources.memory_source import InMemoryDocumentSource

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENTS_TABLE = "menu-documents"


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )

    # Default credential chain (IAM role, env vars, etc.)
    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region)


def create_document_source() -> DocumentSource:
    """Create the document source selected by SOURCE_BACKEND.

    Returns:
        In-memory source (optionally seeded from SEED_DATA_FILE) or DynamoDB source

    Raises:
        ValueError: If SOURCE_BACKEND names an unknown backend
    """
    backend = os.getenv("SOURCE_BACKEND", "dynamodb").lower()

    if backend == "memory":
        seed_file = os.getenv("SEED_DATA_FILE")
        if seed_file:
            logger.info(f"Using in-memory document source seeded from {seed_file}")
            return InMemoryDocumentSource.from_seed_file(seed_file)
        logger.warning("Using empty in-memory document source")
        return InMemoryDocumentSource()

    if backend == "dynamodb":
        table_name = os.getenv("DYNAMODB_DOCUMENTS_TABLE", DEFAULT_DOCUMENTS_TABLE)
        logger.info(f"Using DynamoDB document source - table: {table_name}")
        return DynamoDBDocumentSource(
            dynamodb_resource=get_dynamodb_resource(), table_name=table_name
        )

    raise ValueError(f"Unsupported SOURCE_BACKEND: {backend}")
