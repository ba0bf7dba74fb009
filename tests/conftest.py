"""Shared pytest fixtures and configuration for all tests."""

import os
from collections.abc import Sequence
from decimal import Decimal

# Must be set before main/lambda_handler are imported so no real app is built
os.environ.setdefault("ENVIRONMENT", "test")

import pytest  # noqa: E402

from menu_catalog_service.adapters.base_gateway import AIGateway  # noqa: E402
from menu_catalog_service.models.menu_models import MenuItemInput  # noqa: E402
from menu_catalog_service.repositories.in_memory_menu_store import InMemoryMenuStore  # noqa: E402


class FakeAIGateway(AIGateway):
    """AI gateway returning scripted responses and recording prompts."""

    def __init__(self, responses: Sequence[str | Exception] = ()) -> None:
        super().__init__("fake")
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_gateway() -> FakeAIGateway:
    """Fixture providing an AI gateway with no scripted responses."""
    return FakeAIGateway()


@pytest.fixture
def memory_store() -> InMemoryMenuStore:
    """Fixture providing an empty in-memory menu store."""
    return InMemoryMenuStore()


@pytest.fixture
def latte_input() -> MenuItemInput:
    """Fixture providing a sample coffee menu item."""
    return MenuItemInput(
        name="Latte",
        category="Coffee",
        calories=190,
        price=Decimal("4.50"),
        ingredients=["espresso", "steamed milk"],
        description="Smooth espresso with steamed milk",
    )


@pytest.fixture
def sample_inputs() -> list[MenuItemInput]:
    """Fixture providing a small mixed catalog."""
    return [
        MenuItemInput(
            name="Latte",
            category="Coffee",
            calories=190,
            price=Decimal("4.50"),
            ingredients=["espresso", "steamed milk"],
            description="Smooth espresso with steamed milk",
        ),
        MenuItemInput(
            name="Mocha",
            category="Coffee",
            calories=290,
            price=Decimal("5.25"),
            ingredients=["espresso", "chocolate", "milk"],
            description="Chocolate and espresso",
        ),
        MenuItemInput(
            name="Americano",
            category="Coffee",
            calories=15,
            price=Decimal("3.00"),
            ingredients=["espresso", "water"],
            description="Espresso lengthened with hot water",
        ),
        MenuItemInput(
            name="Croissant",
            category="Pastry",
            calories=270,
            price=Decimal("3.75"),
            ingredients=["flour", "butter"],
            description="Flaky butter pastry",
        ),
        MenuItemInput(
            name="Green Tea",
            category="Tea",
            calories=0,
            price=Decimal("2.50"),
            ingredients=["sencha"],
            description="Light grassy infusion",
        ),
    ]


@pytest.fixture
def populated_store(
    memory_store: InMemoryMenuStore, sample_inputs: list[MenuItemInput]
) -> InMemoryMenuStore:
    """Fixture providing an in-memory store holding the sample catalog."""
    for item in sample_inputs:
        memory_store.create(item)
    return memory_store
