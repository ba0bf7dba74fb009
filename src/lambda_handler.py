"""AWS Lambda handler for API Gateway requests.

API Gateway events are passed to the FastAPI application through the Mangum
ASGI adapter. The application is built once per cold start and reused on
warm invocations.
"""

import logging
import os
from typing import Any

from mangum import Mangum

from main import create_application

logger = logging.getLogger(__name__)

# Create FastAPI app and Mangum adapter (cached for warm starts, skip in test mode)
if os.getenv("ENVIRONMENT") != "test":
    mangum_handler: Mangum | None = Mangum(create_application(), lifespan="off")
else:
    mangum_handler = None


def get_mangum_handler() -> Mangum:
    """Return the cached Mangum adapter, building it on first use."""
    global mangum_handler
    if mangum_handler is None:
        mangum_handler = Mangum(create_application(), lifespan="off")
    return mangum_handler


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Lambda entry point for API Gateway requests.

    Args:
        event: The API Gateway event payload
        context: The Lambda context object

    Returns:
        API Gateway response dict with statusCode and body
    """
    logger.info(f"Received Lambda invocation, request_id: {context.aws_request_id}")

    try:
        result: dict[str, Any] = get_mangum_handler()(event, context)
        return result
    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return {
            "statusCode": 500,
            "body": '{"error": "Internal server error"}',
        }
