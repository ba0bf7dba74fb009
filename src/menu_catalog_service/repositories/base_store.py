"""Base store for menu persistence.

This module defines the abstract MenuStore every backend implements, plus the
sorting, paging and grouping rules they share so that each backend only has
to decide how to find matching records.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from menu_catalog_service.exceptions import InvalidArgumentError
from menu_catalog_service.models.menu_models import (
    CategoryGrouping,
    CountView,
    ListView,
    MenuFilter,
    MenuItem,
    MenuItemInput,
)

SORTABLE_FIELDS = frozenset(
    {"id", "name", "category", "calories", "price", "created_at", "updated_at"}
)
SORT_DIRECTIONS = frozenset({"asc", "desc"})
GROUPING_MODES = frozenset({"count", "list"})


class MenuStore(ABC):
    """Abstract base class for menu item persistence.

    Expected failures are raised as catalog exceptions:
    - get_by_id, update and delete raise NotFoundError for unknown ids
    - storage failures raise PersistenceError
    - list and group_by_category raise InvalidArgumentError for bad input
    """

    @abstractmethod
    def create(self, item: MenuItemInput) -> MenuItem:
        """Persist a new menu item, assigning its id and timestamps."""

    @abstractmethod
    def list(self, menu_filter: MenuFilter) -> tuple[list[MenuItem], int]:
        """Return one page of matching items and the total match count.

        The total counts every item matching the filter, not just the page.
        """

    @abstractmethod
    def get_by_id(self, menu_id: int) -> MenuItem:
        """Fetch a single menu item."""

    @abstractmethod
    def update(self, item: MenuItem) -> MenuItem:
        """Overwrite the mutable fields of an existing item."""

    @abstractmethod
    def delete(self, menu_id: int) -> None:
        """Remove a menu item."""

    @abstractmethod
    def group_by_category(self, mode: str, limit_per_category: int) -> CategoryGrouping:
        """Aggregate the catalog by category in "count" or "list" mode."""


def parse_sort(sort: str) -> tuple[str, bool] | None:
    """Parse a ``field:direction`` sort specifier.

    Args:
        sort: Raw sort string, e.g. "price:asc"

    Returns:
        (field, descending) for a well-formed specifier, None when the string
        is empty or does not contain exactly one colon. An empty direction
        sorts ascending.

    Raises:
        InvalidArgumentError: If the field or direction is not supported
    """
    parts = sort.split(":")
    if len(parts) != 2:
        return None

    field, direction = parts[0].strip(), parts[1].strip().lower() or "asc"
    if field not in SORTABLE_FIELDS:
        raise InvalidArgumentError(
            f"Cannot sort by '{field}'. Use one of: {', '.join(sorted(SORTABLE_FIELDS))}"
        )
    if direction not in SORT_DIRECTIONS:
        raise InvalidArgumentError(f"Invalid sort direction '{direction}'. Use 'asc' or 'desc'")

    return field, direction == "desc"


def sort_items(items: Iterable[MenuItem], sort: str) -> list[MenuItem]:
    """Order items by the sort specifier, newest first when none applies."""
    parsed = parse_sort(sort)
    if parsed is None:
        return sorted(items, key=lambda item: (item.created_at, item.id), reverse=True)

    field, descending = parsed

    def key(item: MenuItem) -> tuple[Any, int]:
        return getattr(item, field), item.id

    return sorted(items, key=key, reverse=descending)


def paginate(items: list[MenuItem], page: int, per_page: int) -> list[MenuItem]:
    """Slice out a 1-based page."""
    offset = (page - 1) * per_page
    return items[offset : offset + per_page]


def validate_grouping_mode(mode: str) -> None:
    """Raise InvalidArgumentError unless mode is "count" or "list"."""
    if mode not in GROUPING_MODES:
        raise InvalidArgumentError("Invalid mode. Use 'count' or 'list'")


def group_items(items: Iterable[MenuItem], mode: str, limit_per_category: int) -> CategoryGrouping:
    """Group items by category.

    Args:
        items: All catalog items, in any order
        mode: "count" for per-category counts, "list" for per-category items
        limit_per_category: Cap on items per category in list mode; zero or
            negative means unbounded

    Returns:
        CountView or ListView

    Raises:
        InvalidArgumentError: If mode is not supported
    """
    validate_grouping_mode(mode)

    if mode == "count":
        counts: dict[str, int] = {}
        for item in items:
            counts[item.category] = counts.get(item.category, 0) + 1
        return CountView(counts=counts)

    grouped: dict[str, list[MenuItem]] = {}
    for item in sorted(items, key=lambda i: (i.category, i.name, i.id)):
        bucket = grouped.setdefault(item.category, [])
        if limit_per_category > 0 and len(bucket) >= limit_per_category:
            continue
        bucket.append(item)
    return ListView(items=grouped)
