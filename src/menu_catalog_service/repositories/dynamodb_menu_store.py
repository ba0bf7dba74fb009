"""DynamoDB menu store.

Menu items live in a single table keyed by a numeric ``id``. Ingredients are
stored as a JSON-encoded string, and lower-cased copies of the name and
description back case-insensitive search. A reserved record with ``id = 0``
holds the identity counter.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal, DecimalException
from typing import Any

from boto3.dynamodb.conditions import Attr, ConditionBase
from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from menu_catalog_service.exceptions import NotFoundError, PersistenceError
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

COUNTER_ID = 0


def build_filter_expression(menu_filter: MenuFilter) -> ConditionBase:
    """Translate a MenuFilter into a DynamoDB scan filter expression.

    The counter record is always excluded. Other predicates are AND-combined
    and only added when the corresponding filter field is set.

    Args:
        menu_filter: Filter to translate

    Returns:
        ConditionBase: Filter expression for Table.scan
    """
    condition: ConditionBase = Attr("id").gt(COUNTER_ID)

    if menu_filter.query:
        needle = menu_filter.query.lower()
        condition = condition & (
            Attr("name_lower").contains(needle) | Attr("description_lower").contains(needle)
        )

    if menu_filter.category:
        condition = condition & Attr("category").eq(menu_filter.category)

    if menu_filter.min_price > 0:
        condition = condition & Attr("price").gte(menu_filter.min_price)

    if menu_filter.max_price > 0:
        condition = condition & Attr("price").lte(menu_filter.max_price)

    if menu_filter.max_calories > 0:
        condition = condition & Attr("calories").lte(menu_filter.max_calories)

    return condition


def to_dynamodb_item(menu: MenuItem) -> dict[str, Any]:
    """Convert a menu item to DynamoDB item format."""
    return {
        "id": menu.id,
        "name": menu.name,
        "name_lower": menu.name.lower(),
        "category": menu.category,
        "calories": menu.calories,
        "price": menu.price,
        "ingredients": json.dumps(menu.ingredients),
        "description": menu.description,
        "description_lower": menu.description.lower(),
        "created_at": menu.created_at.isoformat(),
        "updated_at": menu.updated_at.isoformat(),
    }


def from_dynamodb_item(item: dict[str, Any]) -> MenuItem:
    """Create a menu item from a DynamoDB item.

    DynamoDB hands numbers back as Decimal, so integral fields are converted.
    """
    return MenuItem(
        id=int(item["id"]),
        name=item["name"],
        category=item.get("category", ""),
        calories=int(item.get("calories", 0)),
        price=Decimal(str(item.get("price", 0))),
        ingredients=json.loads(item.get("ingredients") or "[]"),
        description=item.get("description", ""),
        created_at=datetime.fromisoformat(item["created_at"]),
        updated_at=datetime.fromisoformat(item["updated_at"]),
    )


def _is_conditional_check_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class DynamoDBMenuStore(MenuStore):
    """Menu store backed by a DynamoDB table."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize the store.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def create_table_if_missing(self) -> bool:
        """Create the menu table when it does not exist yet.

        Returns:
            bool: True if the table was created, False if it already existed

        Raises:
            PersistenceError: If DynamoDB rejects the request
        """
        try:
            self.dynamodb.meta.client.describe_table(TableName=self.table_name)
            return False
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "ResourceNotFoundException":
                logger.error(f"Failed to describe table {self.table_name}: {e}")
                raise PersistenceError(f"Failed to describe table {self.table_name}") from e

        try:
            table = self.dynamodb.create_table(
                TableName=self.table_name,
                KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
                AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "N"}],
                BillingMode="PAY_PER_REQUEST",
            )
            table.wait_until_exists()
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to create table {self.table_name}: {e}")
            raise PersistenceError(f"Failed to create table {self.table_name}") from e

        self.table = table
        logger.info(f"Created DynamoDB table {self.table_name}")
        return True

    def create(self, item: MenuItemInput) -> MenuItem:
        now = datetime.now(UTC)
        menu = MenuItem(id=self._next_id(), created_at=now, updated_at=now, **item.model_dump())

        try:
            self.table.put_item(Item=to_dynamodb_item(menu))
        except (ClientError, BotoCoreError, DecimalException) as e:
            logger.error(f"Failed to save menu item: {e}")
            raise PersistenceError("Failed to save menu item") from e

        return menu

    def list(self, menu_filter: MenuFilter) -> tuple[list[MenuItem], int]:
        matching = self._scan(build_filter_expression(menu_filter))
        ordered = sort_items(matching, menu_filter.sort)
        return paginate(ordered, menu_filter.page, menu_filter.per_page), len(matching)

    def get_by_id(self, menu_id: int) -> MenuItem:
        if menu_id <= COUNTER_ID:
            raise NotFoundError(menu_id)

        try:
            response = self.table.get_item(Key={"id": menu_id})
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to get menu item {menu_id}: {e}")
            raise PersistenceError(f"Failed to get menu item {menu_id}") from e

        if "Item" not in response:
            raise NotFoundError(menu_id)

        return from_dynamodb_item(response["Item"])

    def update(self, item: MenuItem) -> MenuItem:
        if item.id <= COUNTER_ID:
            raise NotFoundError(item.id)

        updated = item.model_copy(update={"updated_at": datetime.now(UTC)})

        try:
            self.table.put_item(
                Item=to_dynamodb_item(updated),
                ConditionExpression=Attr("id").exists(),
            )
        except ClientError as e:
            if _is_conditional_check_failure(e):
                raise NotFoundError(item.id) from e
            logger.error(f"Failed to update menu item {item.id}: {e}")
            raise PersistenceError(f"Failed to update menu item {item.id}") from e
        except (BotoCoreError, DecimalException) as e:
            logger.error(f"Failed to update menu item {item.id}: {e}")
            raise PersistenceError(f"Failed to update menu item {item.id}") from e

        return updated

    def delete(self, menu_id: int) -> None:
        if menu_id <= COUNTER_ID:
            raise NotFoundError(menu_id)

        try:
            self.table.delete_item(
                Key={"id": menu_id},
                ConditionExpression=Attr("id").exists(),
            )
        except ClientError as e:
            if _is_conditional_check_failure(e):
                raise NotFoundError(menu_id) from e
            logger.error(f"Failed to delete menu item {menu_id}: {e}")
            raise PersistenceError(f"Failed to delete menu item {menu_id}") from e
        except BotoCoreError as e:
            logger.error(f"Failed to delete menu item {menu_id}: {e}")
            raise PersistenceError(f"Failed to delete menu item {menu_id}") from e

    def group_by_category(self, mode: str, limit_per_category: int) -> CategoryGrouping:
        validate_grouping_mode(mode)
        return group_items(self._scan(Attr("id").gt(COUNTER_ID)), mode, limit_per_category)

    def _next_id(self) -> int:
        """Atomically increment the counter record and return the new value."""
        try:
            response = self.table.update_item(
                Key={"id": COUNTER_ID},
                UpdateExpression="ADD next_id :one",
                ExpressionAttributeValues={":one": 1},
                ReturnValues="UPDATED_NEW",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to allocate menu id: {e}")
            raise PersistenceError("Failed to allocate menu id") from e

        return int(response["Attributes"]["next_id"])

    def _scan(self, condition: ConditionBase) -> list[MenuItem]:
        """Scan the whole table, following LastEvaluatedKey across pages."""
        kwargs: dict[str, Any] = {"FilterExpression": condition}
        items: list[MenuItem] = []

        try:
            while True:
                response = self.table.scan(**kwargs)
                items.extend(from_dynamodb_item(item) for item in response.get("Items", []))

                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to scan menu items: {e}")
            raise PersistenceError("Failed to scan menu items") from e

        return items
