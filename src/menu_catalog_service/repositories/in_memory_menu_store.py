"""In-memory menu store for local development and tests."""

import itertools
import logging
import threading
from datetime import UTC, datetime

from menu_catalog_service.exceptions import NotFoundError
from menu_catalog_service.models.menu_models import (
    CategoryGrouping,
    MenuFilter,
    MenuItem,
    MenuItemInput,
)
from menu_catalog_service.repositories.base_store import (
    MenuStore,
    group_items,
    paginate,
    sort_items,
    validate_grouping_mode,
)

logger = logging.getLogger(__name__)


def matches_filter(item: MenuItem, menu_filter: MenuFilter) -> bool:
    """Check whether an item satisfies every predicate of a filter.

    Args:
        item: Menu item to test
        menu_filter: Filter to apply

    Returns:
        bool: True if the item matches
    """
    if menu_filter.query:
        needle = menu_filter.query.lower()
        if needle not in item.name.lower() and needle not in item.description.lower():
            return False

    if menu_filter.category and item.category != menu_filter.category:
        return False

    if menu_filter.min_price > 0 and item.price < menu_filter.min_price:
        return False

    if menu_filter.max_price > 0 and item.price > menu_filter.max_price:
        return False

    if menu_filter.max_calories > 0 and item.calories > menu_filter.max_calories:
        return False

    return True


class InMemoryMenuStore(MenuStore):
    """Menu store backed by a process-local dictionary.

    Writes are serialized with a lock. Data is lost when the process exits.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._items: dict[int, MenuItem] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create(self, item: MenuItemInput) -> MenuItem:
        with self._lock:
            now = datetime.now(UTC)
            menu = MenuItem(id=next(self._ids), created_at=now, updated_at=now, **item.model_dump())
            self._items[menu.id] = menu
        logger.debug(f"Stored menu item {menu.id} in memory")
        return menu

    def list(self, menu_filter: MenuFilter) -> tuple[list[MenuItem], int]:
        matching = [item for item in self._items.values() if matches_filter(item, menu_filter)]
        ordered = sort_items(matching, menu_filter.sort)
        return paginate(ordered, menu_filter.page, menu_filter.per_page), len(matching)

    def get_by_id(self, menu_id: int) -> MenuItem:
        try:
            return self._items[menu_id]
        except KeyError:
            raise NotFoundError(menu_id) from None

    def update(self, item: MenuItem) -> MenuItem:
        with self._lock:
            if item.id not in self._items:
                raise NotFoundError(item.id)
            updated = item.model_copy(update={"updated_at": datetime.now(UTC)})
            self._items[item.id] = updated
        return updated

    def delete(self, menu_id: int) -> None:
        with self._lock:
            if self._items.pop(menu_id, None) is None:
                raise NotFoundError(menu_id)

    def group_by_category(self, mode: str, limit_per_category: int) -> CategoryGrouping:
        validate_grouping_mode(mode)
        return group_items(list(self._items.values()), mode, limit_per_category)
