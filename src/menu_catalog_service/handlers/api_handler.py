"""FastAPI application for the menu catalog endpoints."""

import logging
from decimal import Decimal
from typing import Union

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from menu_catalog_service.exceptions import (
    AIEmptyResponseError,
    AIUnavailableError,
    InvalidArgumentError,
    MalformedAIResponseError,
    NotFoundError,
    PersistenceError,
)
from menu_catalog_service.models.menu_models import (
    CategoryGrouping,
    MenuFilter,
    MenuItem,
    MenuItemInput,
    PageResult,
)
from menu_catalog_service.models.recommendation_models import (
    GenerateDescriptionRequest,
    Recommendation,
    RecommendationRequest,
)
from menu_catalog_service.services.menu_catalog_service import MenuCatalogService

logger = logging.getLogger(__name__)

DEFAULT_PER_CATEGORY = 5
INVALID_ID_MESSAGE = "Invalid ID format"


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


class WelcomeResponse(BaseModel):
    """Root endpoint response model."""

    message: str
    status: str
    documentation: str


class MenuItemResponse(BaseModel):
    """Envelope for a single menu item."""

    message: str | None = None
    data: MenuItem


class MessageResponse(BaseModel):
    """Envelope carrying only a message."""

    message: str


class GroupingResponse(BaseModel):
    """Envelope for the category grouping view."""

    data: CategoryGrouping


class GeneratedDescriptionResponse(BaseModel):
    """Response model for description generation."""

    generated_description: str


class RecommendationListResponse(BaseModel):
    """Response model for AI recommendations."""

    recommendations: list[Recommendation]


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the ``{"error": ...}`` body used by every failing endpoint."""
    return JSONResponse(status_code=status_code, content={"error": message})


def parse_menu_id(raw_id: str) -> int:
    """Parse a path id, rejecting anything that is not a non-negative integer.

    Raises:
        InvalidArgumentError: If the id is malformed
    """
    try:
        menu_id = int(raw_id)
    except ValueError:
        raise InvalidArgumentError(INVALID_ID_MESSAGE) from None
    if menu_id < 0:
        raise InvalidArgumentError(INVALID_ID_MESSAGE)
    return menu_id


def parse_per_category(raw_value: str | None) -> int:
    """Parse the per-category cap, falling back to the default on bad input."""
    if raw_value is None:
        return DEFAULT_PER_CATEGORY
    try:
        return int(raw_value)
    except ValueError:
        return DEFAULT_PER_CATEGORY


def format_validation_error(exc: RequestValidationError) -> str:
    """Flatten FastAPI validation errors into one readable message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(messages) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Map catalog exceptions to HTTP responses."""

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, format_validation_error(exc))

    @app.exception_handler(InvalidArgumentError)
    async def handle_invalid_argument(_request: Request, exc: InvalidArgumentError) -> JSONResponse:
        return error_response(400, str(exc))

    @app.exception_handler(NotFoundError)
    async def handle_not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
        return error_response(404, str(exc))

    @app.exception_handler(PersistenceError)
    async def handle_persistence_error(_request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error(f"Storage failure while serving request: {exc}")
        return error_response(500, str(exc))

    async def handle_ai_error(_request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"AI failure while serving request: {exc}")
        return error_response(502, f"AI Service unavailable: {exc}")

    for exc_class in (AIUnavailableError, AIEmptyResponseError, MalformedAIResponseError):
        app.add_exception_handler(exc_class, handle_ai_error)


def create_app(menu_service: MenuCatalogService) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        menu_service: Service backing every catalog endpoint

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Menu Catalog API",
        description="Menu catalog with search, grouping and AI-assisted descriptions and recommendations",
        version="1.0.0",
    )

    # Store services in app state for access in route handlers
    app.state.menu_service = menu_service

    register_exception_handlers(app)

    @app.get("/", response_model=WelcomeResponse, tags=["Health"])
    async def welcome() -> WelcomeResponse:
        """Root endpoint describing the API."""
        return WelcomeResponse(
            message="Welcome to Menu Catalog API",
            status="running",
            documentation="/docs",
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    @app.post("/menu", response_model=MenuItemResponse, status_code=201, tags=["Menu"])
    async def create_menu(item: MenuItemInput) -> MenuItemResponse:
        """Create a menu item.

        An empty description is filled in by the AI, or with a fallback text
        when the AI is unavailable.
        """
        created = await app.state.menu_service.create(item)
        return MenuItemResponse(message="Menu created successfully", data=created)

    async def list_menus(
        q: str = "",
        category: str = "",
        min_price: Decimal = Decimal("0"),
        max_price: Decimal = Decimal("0"),
        max_cal: int = 0,
        sort: str = "",
        page: int = 1,
        per_page: int = 10,
    ) -> PageResult:
        """List menu items with search, filters, sorting and pagination.

        Args:
            q: Case-insensitive text matched against name and description
            category: Exact category
            min_price: Lower price bound, 0 for none
            max_price: Upper price bound, 0 for none
            max_cal: Calorie ceiling, 0 for none
            sort: "<field>:<asc|desc>", newest first when empty
            page: 1-based page number
            per_page: Page size

        Returns:
            One page of matching items with pagination totals
        """
        menu_filter = MenuFilter(
            query=q,
            category=category,
            min_price=min_price,
            max_price=max_price,
            max_calories=max_cal,
            sort=sort,
            page=page,
            per_page=per_page,
        )
        result: PageResult = await app.state.menu_service.list(menu_filter)
        return result

    app.add_api_route("/menu", list_menus, methods=["GET"], response_model=PageResult, tags=["Menu"])
    app.add_api_route(
        "/menu/search", list_menus, methods=["GET"], response_model=PageResult, tags=["Menu"]
    )

    @app.get("/menu/group-by-category", response_model=GroupingResponse, tags=["Menu"])
    async def group_by_category(mode: str = "", per_category: str | None = None) -> GroupingResponse:
        """Group menu items by category.

        Args:
            mode: "count" for per-category totals, "list" for item lists
            per_category: Cap per category in list mode (default 5)

        Returns:
            The grouping view
        """
        grouping = await app.state.menu_service.grouped_view(mode, parse_per_category(per_category))
        return GroupingResponse(data=grouping)

    @app.post(
        "/menu/generate-description",
        response_model=GeneratedDescriptionResponse,
        tags=["AI"],
    )
    async def generate_description(
        request: GenerateDescriptionRequest,
    ) -> Union[GeneratedDescriptionResponse, JSONResponse]:
        """Generate a menu description with the AI.

        Returns 500 when the AI answers with no text and 502 when it cannot
        be reached.
        """
        try:
            description = await app.state.menu_service.generate_description(
                request.name, request.ingredients
            )
        except AIEmptyResponseError as e:
            logger.error(f"AI returned no description for '{request.name}'")
            return error_response(500, f"AI Service Error: {e}")

        return GeneratedDescriptionResponse(generated_description=description)

    @app.post(
        "/menu/recommendations",
        response_model=RecommendationListResponse,
        tags=["AI"],
    )
    async def recommend(request: RecommendationRequest) -> RecommendationListResponse:
        """Recommend menu items matching a free-text preference."""
        recommendations = await app.state.menu_service.recommend(request)
        return RecommendationListResponse(recommendations=recommendations)

    @app.get(
        "/menu/{menu_id}",
        response_model=MenuItemResponse,
        response_model_exclude_none=True,
        tags=["Menu"],
    )
    async def get_menu(menu_id: str) -> MenuItemResponse:
        """Get a menu item by id."""
        menu = await app.state.menu_service.get_detail(parse_menu_id(menu_id))
        return MenuItemResponse(data=menu)

    @app.put("/menu/{menu_id}", response_model=MenuItemResponse, tags=["Menu"])
    async def update_menu(menu_id: str, item: MenuItemInput) -> MenuItemResponse:
        """Replace every field of a menu item."""
        updated = await app.state.menu_service.update(parse_menu_id(menu_id), item)
        return MenuItemResponse(message="Menu updated successfully", data=updated)

    @app.delete("/menu/{menu_id}", response_model=MessageResponse, tags=["Menu"])
    async def delete_menu(menu_id: str) -> MessageResponse:
        """Delete a menu item."""
        await app.state.menu_service.delete(parse_menu_id(menu_id))
        return MessageResponse(message="Menu deleted successfully")

    return app
