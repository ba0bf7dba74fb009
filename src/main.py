"""Main application entry point for the menu catalog service.

This module provides the FastAPI application factory and configuration
for running the service locally or in production.
"""

import logging
import os
from typing import Any

import boto3
from botocore.config import Config
from fastapi import FastAPI

from menu_catalog_service.adapters.gemini_gateway import GeminiConfig, GeminiGateway
from menu_catalog_service.handlers.api_handler import create_app
from menu_catalog_service.observability import configure_logging, setup_observability
from menu_catalog_service.repositories.base_store import MenuStore
from menu_catalog_service.repositories.dynamodb_menu_store import DynamoDBMenuStore
from menu_catalog_service.repositories.in_memory_menu_store import InMemoryMenuStore
from menu_catalog_service.services.menu_catalog_service import MenuCatalogService

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Connect and read timeouts come from DYNAMODB_TIMEOUT_SECONDS.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")
    timeout = float(os.getenv("DYNAMODB_TIMEOUT_SECONDS", "5"))
    client_config = Config(
        connect_timeout=timeout,
        read_timeout=timeout,
        retries={"max_attempts": 2, "mode": "standard"},
    )

    if endpoint_url:
        # Local DynamoDB accepts any credentials
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID", "dummy"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", "dummy"),
            config=client_config,
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    return boto3.resource("dynamodb", region_name=region, config=client_config)


def create_menu_store() -> MenuStore:
    """Create the menu store selected by MENU_STORE_BACKEND.

    Returns:
        DynamoDB-backed store by default, in-memory store for "memory"

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = os.getenv("MENU_STORE_BACKEND", "dynamodb").lower()

    if backend == "memory":
        logger.warning("Using in-memory menu store - data is lost on restart")
        return InMemoryMenuStore()

    if backend != "dynamodb":
        raise ValueError(f"Unknown MENU_STORE_BACKEND '{backend}', expected 'dynamodb' or 'memory'")

    table_name = os.getenv("DYNAMODB_MENU_TABLE", "menu-catalog-items")
    store = DynamoDBMenuStore(dynamodb_resource=get_dynamodb_resource(), table_name=table_name)

    if _env_flag("DYNAMODB_CREATE_TABLE"):
        store.create_table_if_missing()

    logger.info(f"Menu store configured - table: {table_name}")
    return store


def create_ai_gateway() -> GeminiGateway:
    """Create the Gemini gateway from environment variables.

    A missing GEMINI_API_KEY is allowed; AI calls then fail and catalog
    writes use the fallback description.

    Returns:
        Configured Gemini gateway
    """
    api_key = os.getenv("GEMINI_API_KEY", "")
    if not api_key:
        logger.warning("GEMINI_API_KEY not configured - AI features will be unavailable")

    config = GeminiConfig(
        api_key=api_key,
        model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
        timeout_seconds=float(os.getenv("GEMINI_TIMEOUT_SECONDS", "15")),
    )
    logger.info(f"Gemini gateway configured - model: {config.model}")
    return GeminiGateway(config)


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    This factory function:
    1. Configures logging
    2. Creates the menu store
    3. Creates the AI gateway
    4. Creates the catalog service and FastAPI app
    5. Sets up observability when enabled

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing menu catalog service...")

    menu_service = MenuCatalogService(
        menu_store=create_menu_store(),
        ai_gateway=create_ai_gateway(),
    )

    app = create_app(menu_service=menu_service)

    if _env_flag("ENABLE_OBSERVABILITY"):
        setup_observability(app)

    logger.info("Menu catalog service initialized successfully")

    return app


# Create the FastAPI application instance (only when not in test mode)
# This prevents the app from being created during test collection
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    # Create a placeholder app for test imports
    app = FastAPI()


if __name__ == "__main__":
    """Run the application with uvicorn when executed directly."""
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
