"""Menu data models.

These models represent menu items as stored in the catalog, the query
filter used to list them, and the result shapes returned to callers.
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class MenuItemInput(BaseModel):
    """Client-supplied fields of a menu item.

    Price is limited to 12 digits with at most 2 decimal places. Negative
    values pass the model; the service rejects them with its own error
    before anything reaches storage.
    """

    model_config = ConfigDict(json_encoders={Decimal: float})

    name: str = Field(..., min_length=1, description="Item name")
    category: str = Field(default="", description="Category the item is listed under")
    calories: int = Field(default=0, description="Calorie count", ge=0)
    price: Decimal = Field(
        default=Decimal("0"), description="Item price", max_digits=12, decimal_places=2
    )
    ingredients: list[str] = Field(default_factory=list, description="Ordered ingredient names")
    description: str = Field(default="", description="Free-text description")


class MenuItem(MenuItemInput):
    """Menu item as persisted in the catalog."""

    id: int = Field(..., description="Unique identifier for the menu item", ge=1)
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")


class MenuFilter(BaseModel):
    """Immutable filter for listing and searching menu items.

    Zero price and calorie bounds mean "unbounded".
    """

    model_config = ConfigDict(frozen=True)

    query: str = ""
    category: str = ""
    min_price: Decimal = Decimal("0")
    max_price: Decimal = Decimal("0")
    max_calories: int = 0
    sort: str = ""
    page: int = 1
    per_page: int = 10


class PageResult(BaseModel):
    """One page of a filtered listing plus the pagination bookkeeping."""

    total: int = Field(..., description="Matching items before pagination", ge=0)
    page: int
    per_page: int
    total_pages: int
    data: list[MenuItem]

    @classmethod
    def from_page(cls, items: list[MenuItem], total: int, page: int, per_page: int) -> "PageResult":
        """Build a page result, deriving total_pages from total and per_page.

        Args:
            items: The items on the requested page
            total: Count of all items matching the filter
            page: Requested page number (1-based)
            per_page: Requested page size, must be positive

        Returns:
            PageResult: The assembled page
        """
        return cls(
            total=total,
            page=page,
            per_page=per_page,
            total_pages=math.ceil(total / per_page),
            data=items,
        )


class CountView(BaseModel):
    """Number of menu items per category."""

    mode: Literal["count"] = "count"
    counts: dict[str, int]


class ListView(BaseModel):
    """Menu items per category, each list capped and name-ordered."""

    mode: Literal["list"] = "list"
    items: dict[str, list[MenuItem]]


CategoryGrouping = Annotated[Union[CountView, ListView], Field(discriminator="mode")]
