"""Menu catalog service orchestrating storage and AI features."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from decimal import Decimal

from menu_catalog_service.adapters.base_gateway import AIGateway
from menu_catalog_service.exceptions import AIError, InvalidArgumentError
from menu_catalog_service.models.menu_models import (
    CategoryGrouping,
    MenuFilter,
    MenuItem,
    MenuItemInput,
    PageResult,
)
from menu_catalog_service.models.recommendation_models import (
    Recommendation,
    RecommendationRequest,
)
from menu_catalog_service.observability import traced
from menu_catalog_service.observability.metrics import (
    record_ai_completion,
    record_description_fallback,
)
from menu_catalog_service.repositories.base_store import MenuStore
from menu_catalog_service.services.recommendation_reconciler import RecommendationReconciler

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 10
CATALOG_SNAPSHOT_LIMIT = 100


def fallback_description(name: str) -> str:
    """Description used when the AI cannot write one."""
    return f"Delicious {name}"


class MenuCatalogService:
    """Service for managing the menu catalog.

    This service validates catalog writes, delegates persistence to a
    MenuStore, and runs the AI flows: description generation through the
    AIGateway and recommendations through the gateway plus the reconciler.
    Catalog writes never fail because of the AI; the direct AI endpoints do.
    """

    def __init__(
        self,
        menu_store: MenuStore,
        ai_gateway: AIGateway,
        reconciler: RecommendationReconciler | None = None,
        catalog_snapshot_limit: int = CATALOG_SNAPSHOT_LIMIT,
    ) -> None:
        """Initialize the MenuCatalogService.

        Args:
            menu_store: Store holding the menu items
            ai_gateway: Gateway to the generative-AI backend
            reconciler: Reconciler for AI suggestions (a default one is created if omitted)
            catalog_snapshot_limit: Maximum number of items shown to the AI for recommendations
        """
        self.menu_store = menu_store
        self.ai_gateway = ai_gateway
        self.reconciler = reconciler or RecommendationReconciler()
        self.catalog_snapshot_limit = catalog_snapshot_limit

    @traced("create_menu_item")
    async def create(self, item: MenuItemInput) -> MenuItem:
        """Create a menu item, generating a description when none is given.

        Args:
            item: Fields of the new item

        Returns:
            MenuItem: The stored item with id and timestamps

        Raises:
            InvalidArgumentError: If the price is negative
            PersistenceError: If the store fails
        """
        self._validate_price(item.price)

        if not item.description.strip():
            description = await self._describe_or_fallback(item.name, item.ingredients)
            item = item.model_copy(update={"description": description})

        created = self.menu_store.create(item)
        logger.info(f"Created menu item {created.id} ({created.name})")
        return created

    @traced("list_menu_items")
    async def list(self, menu_filter: MenuFilter) -> PageResult:
        """List menu items matching a filter, one page at a time.

        Page numbers below 1 become 1 and page sizes below 1 become 10.

        Args:
            menu_filter: Search, filter, sort and paging parameters

        Returns:
            PageResult: The requested page and pagination totals
        """
        normalized = menu_filter.model_copy(
            update={
                "page": menu_filter.page if menu_filter.page >= 1 else DEFAULT_PAGE,
                "per_page": menu_filter.per_page if menu_filter.per_page >= 1 else DEFAULT_PER_PAGE,
            }
        )

        items, total = self.menu_store.list(normalized)
        return PageResult.from_page(items, total, normalized.page, normalized.per_page)

    @traced("get_menu_detail", record_args=("menu_id",))
    async def get_detail(self, menu_id: int) -> MenuItem:
        """Get a menu item by id.

        Raises:
            NotFoundError: If no item has that id
        """
        return self.menu_store.get_by_id(menu_id)

    @traced("update_menu_item", record_args=("menu_id",))
    async def update(self, menu_id: int, item: MenuItemInput) -> MenuItem:
        """Overwrite every mutable field of an existing menu item.

        Args:
            menu_id: Id of the item to update
            item: New field values

        Returns:
            MenuItem: The updated item

        Raises:
            InvalidArgumentError: If the price is negative
            NotFoundError: If no item has that id
        """
        self._validate_price(item.price)

        existing = self.menu_store.get_by_id(menu_id)
        updated = self.menu_store.update(existing.model_copy(update=item.model_dump()))
        logger.info(f"Updated menu item {menu_id}")
        return updated

    @traced("delete_menu_item", record_args=("menu_id",))
    async def delete(self, menu_id: int) -> None:
        """Delete a menu item.

        Raises:
            NotFoundError: If no item has that id
        """
        self.menu_store.delete(menu_id)
        logger.info(f"Deleted menu item {menu_id}")

    @traced("group_menu_items", record_args=("mode", "limit_per_category"))
    async def grouped_view(self, mode: str, limit_per_category: int) -> CategoryGrouping:
        """Group the catalog by category.

        Raises:
            InvalidArgumentError: If mode is not "count" or "list"
        """
        return self.menu_store.group_by_category(mode, limit_per_category)

    @traced("generate_menu_description")
    async def generate_description(self, name: str, ingredients: Sequence[str]) -> str:
        """Ask the AI for a short menu description.

        Args:
            name: Menu item name
            ingredients: Ingredient names

        Returns:
            str: Generated description

        Raises:
            AIUnavailableError: If the AI cannot be reached
            AIEmptyResponseError: If the AI returns no text
        """
        prompt = self.ai_gateway.build_description_prompt(name, ingredients)
        return await self._complete("description", prompt)

    @traced("recommend_menu_items")
    async def recommend(self, request: RecommendationRequest) -> list[Recommendation]:
        """Recommend menu items for a free-text preference.

        Shows the AI a snapshot of the newest catalog items and keeps only the
        suggestions that name one of them.

        Args:
            request: The guest's preference

        Returns:
            list[Recommendation]: Matched recommendations in the AI's order,
                empty when nothing matched

        Raises:
            AIUnavailableError: If the AI cannot be reached
            AIEmptyResponseError: If the AI returns no text
            MalformedAIResponseError: If the AI output is not a suggestion array
        """
        catalog, _ = self.menu_store.list(
            MenuFilter(page=1, per_page=self.catalog_snapshot_limit)
        )
        if not catalog:
            logger.info("Catalog is empty, skipping AI recommendation")
            return []

        prompt = self.ai_gateway.build_recommendation_prompt(request.preference, catalog)
        raw_text = await self._complete("recommendation", prompt)

        suggestions = self.reconciler.parse(raw_text)
        recommendations = self.reconciler.reconcile(suggestions, catalog)

        logger.info(
            f"AI suggested {len(suggestions)} item(s), {len(recommendations)} matched the catalog"
        )
        return recommendations

    async def _complete(self, use_case: str, prompt: str) -> str:
        """Run one AI completion and record its outcome and latency."""
        start = time.perf_counter()
        try:
            text = await self.ai_gateway.complete(prompt)
        except AIError as e:
            record_ai_completion(use_case, type(e).__name__, time.perf_counter() - start)
            raise
        record_ai_completion(use_case, "success", time.perf_counter() - start)
        return text

    async def _describe_or_fallback(self, name: str, ingredients: Sequence[str]) -> str:
        try:
            return await self.generate_description(name, ingredients)
        except AIError as e:
            logger.warning(f"AI description failed for '{name}', using fallback: {e}")
            record_description_fallback()
            return fallback_description(name)

    @staticmethod
    def _validate_price(price: Decimal) -> None:
        if price < 0:
            raise InvalidArgumentError("price cannot be negative")
