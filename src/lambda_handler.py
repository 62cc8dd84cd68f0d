"""AWS Lambda handler for API Gateway requests and document change events.

This module provides a single Lambda entry point that handles:
1. API Gateway requests (via Mangum ASGI adapter for FastAPI)
2. DynamoDB Stream records and EventBridge "DocumentChanged" events

The handler automatically detects the event type and routes accordingly.
"""

import logging
import os
from typing import Any

from mangum import Mangum

from lambda_dependencies import get_change_handler, get_fastapi_app, initialize_lambda_environment
from menu_view_service.handlers.change_event_handler import is_eventbridge_event, is_stream_event

logger = logging.getLogger(__name__)

# Initialize during cold start (skip in test mode)
if os.getenv("ENVIRONMENT") != "test":
    initialize_lambda_environment()
    app = get_fastapi_app()
    mangum_handler = Mangum(app, lifespan="off")
else:
    app = None  # type: ignore
    mangum_handler = None  # type: ignore


def is_change_event(event: dict[str, Any]) -> bool:
    """Determine if the event is a document change notification.

    Args:
        event: The Lambda event payload

    Returns:
        True for DynamoDB Stream and EventBridge events, False otherwise
    """
    return is_stream_event(event) or is_eventbridge_event(event)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Multi-purpose Lambda handler for API Gateway and change events.

    Routes incoming events to the appropriate handler:
    - DynamoDB Stream / EventBridge events -> ChangeEventHandler
    - API Gateway requests -> FastAPI via Mangum

    Args:
        event: The Lambda event payload
        context: The Lambda context object

    Returns:
        Response dict with statusCode and body
    """
    logger.info(f"Received Lambda invocation, request_id: {context.aws_request_id}")

    try:
        if is_change_event(event):
            logger.info("Processing document change event")
            return get_change_handler().handle_lambda_event(event)

        logger.info("Processing API Gateway request via Mangum")
        result: dict[str, Any] = mangum_handler(event, context)
        return result

    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return {
            "statusCode": 500,
            "body": f"Internal server error: {str(e)}",
        }
