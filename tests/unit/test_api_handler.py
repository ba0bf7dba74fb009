"""Unit tests for FastAPI menu catalog endpoints."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import FakeAIGateway
from menu_catalog_service.exceptions import (
    AIEmptyResponseError,
    AIUnavailableError,
    MalformedAIResponseError,
    PersistenceError,
)
from menu_catalog_service.handlers.api_handler import create_app, parse_menu_id, parse_per_category
from menu_catalog_service.models.menu_models import MenuFilter
from menu_catalog_service.repositories.in_memory_menu_store import InMemoryMenuStore
from menu_catalog_service.services.menu_catalog_service import MenuCatalogService

LATTE = {
    "name": "Latte",
    "category": "Coffee",
    "calories": 190,
    "price": 4.5,
    "ingredients": ["espresso", "steamed milk"],
    "description": "Smooth espresso with steamed milk",
}


@pytest.fixture
def gateway() -> FakeAIGateway:
    """AI gateway with no scripted answers."""
    return FakeAIGateway()


@pytest.fixture
def client(populated_store: InMemoryMenuStore, gateway: FakeAIGateway) -> TestClient:
    """Create a test client over a real service and the sample catalog."""
    service = MenuCatalogService(menu_store=populated_store, ai_gateway=gateway)
    return TestClient(create_app(menu_service=service))


@pytest.fixture
def mock_client() -> TestClient:
    """Create a test client with a mocked service."""
    return TestClient(create_app(menu_service=MagicMock(spec=MenuCatalogService)))


@pytest.mark.unit
class TestHealthEndpoints:
    """Test suite for health and welcome endpoints."""

    def test_health_check(self, mock_client: TestClient) -> None:
        """Test health check endpoint returns 200."""
        response = mock_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_welcome(self, mock_client: TestClient) -> None:
        """Test root endpoint describes the API."""
        response = mock_client.get("/")

        assert response.status_code == 200
        assert response.json() == {
            "message": "Welcome to Menu Catalog API",
            "status": "running",
            "documentation": "/docs",
        }


@pytest.mark.unit
class TestMenuCrudEndpoints:
    """Test suite for menu CRUD endpoints."""

    def test_create_menu(self, client: TestClient) -> None:
        """Test creating a menu item returns 201 with the stored item."""
        response = client.post("/menu", json=LATTE)

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Menu created successfully"
        assert body["data"]["id"] == 6
        assert body["data"]["price"] == 4.5
        assert body["data"]["ingredients"] == ["espresso", "steamed milk"]

    def test_create_menu_negative_price(self, client: TestClient) -> None:
        """Test that negative prices are rejected with 400."""
        response = client.post("/menu", json={**LATTE, "price": -1})

        assert response.status_code == 400
        assert response.json() == {"error": "price cannot be negative"}

    @pytest.mark.parametrize("price", ["1e1000", 10_000_000_000_000, 4.999])
    def test_create_menu_price_out_of_range(self, client: TestClient, price: object) -> None:
        """Test that oversized or over-precise prices are rejected with 400."""
        response = client.post("/menu", json={**LATTE, "price": price})

        assert response.status_code == 400
        assert "price" in response.json()["error"]

    def test_create_menu_missing_name(self, client: TestClient) -> None:
        """Test that request validation failures map to 400."""
        response = client.post("/menu", json={"price": 3})

        assert response.status_code == 400
        assert "name" in response.json()["error"]

    def test_create_menu_uses_fallback_description(self, client: TestClient) -> None:
        """Test that create succeeds with the fallback text when the AI fails."""
        client.app.state.menu_service.ai_gateway.responses = [AIUnavailableError("down")]

        response = client.post("/menu", json={**LATTE, "description": ""})

        assert response.status_code == 201
        assert response.json()["data"]["description"] == "Delicious Latte"

    def test_create_menu_storage_failure(self, mock_client: TestClient) -> None:
        """Test that storage failures map to 500."""
        mock_client.app.state.menu_service.create = AsyncMock(
            side_effect=PersistenceError("Failed to save menu item")
        )

        response = mock_client.post("/menu", json=LATTE)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save menu item"}

    def test_get_menu(self, client: TestClient) -> None:
        """Test fetching a menu item by id."""
        response = client.get("/menu/1")

        assert response.status_code == 200
        body = response.json()
        assert "message" not in body
        assert body["data"]["name"] == "Latte"

    def test_get_menu_not_found(self, client: TestClient) -> None:
        """Test that unknown ids return 404."""
        response = client.get("/menu/99")

        assert response.status_code == 404
        assert response.json() == {"error": "Menu 99 not found"}

    @pytest.mark.parametrize("raw_id", ["abc", "-1", "1.5"])
    def test_get_menu_invalid_id(self, client: TestClient, raw_id: str) -> None:
        """Test that malformed ids return 400."""
        response = client.get(f"/menu/{raw_id}")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid ID format"}

    def test_update_menu(self, client: TestClient) -> None:
        """Test replacing a menu item."""
        response = client.put("/menu/1", json={**LATTE, "name": "Oat Latte", "price": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Menu updated successfully"
        assert body["data"]["id"] == 1
        assert body["data"]["name"] == "Oat Latte"

    def test_update_menu_not_found(self, client: TestClient) -> None:
        """Test that updating an unknown id returns 404."""
        response = client.put("/menu/99", json=LATTE)

        assert response.status_code == 404

    def test_delete_menu(self, client: TestClient) -> None:
        """Test deleting a menu item, then deleting it again."""
        response = client.delete("/menu/2")

        assert response.status_code == 200
        assert response.json() == {"message": "Menu deleted successfully"}
        assert client.delete("/menu/2").status_code == 404


@pytest.mark.unit
class TestMenuListEndpoints:
    """Test suite for list, search and grouping endpoints."""

    def test_list_defaults(self, client: TestClient) -> None:
        """Test listing with default paging."""
        response = client.get("/menu")

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 5
        assert body["page"] == 1
        assert body["per_page"] == 10
        assert body["total_pages"] == 1
        assert len(body["data"]) == 5

    def test_list_filters_and_sort(self, client: TestClient) -> None:
        """Test combined filters with an explicit sort."""
        response = client.get(
            "/menu",
            params={"category": "Coffee", "max_price": 5, "sort": "price:asc", "per_page": 1},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["total_pages"] == 2
        assert [item["name"] for item in body["data"]] == ["Americano"]

    def test_search_alias(self, client: TestClient) -> None:
        """Test that /menu/search matches name and description."""
        response = client.get("/menu/search", params={"q": "espresso"})

        assert response.status_code == 200
        names = {item["name"] for item in response.json()["data"]}
        assert names == {"Latte", "Mocha", "Americano"}

    def test_list_passes_filter_to_service(self, mock_client: TestClient) -> None:
        """Test query parameter to filter mapping."""
        service = mock_client.app.state.menu_service
        service.list = AsyncMock(
            return_value={"total": 0, "page": 2, "per_page": 5, "total_pages": 0, "data": []}
        )

        response = mock_client.get(
            "/menu",
            params={
                "q": "latte",
                "category": "Coffee",
                "min_price": 1.5,
                "max_price": 6,
                "max_cal": 200,
                "sort": "name:desc",
                "page": 2,
                "per_page": 5,
            },
        )

        assert response.status_code == 200
        service.list.assert_called_once_with(
            MenuFilter(
                query="latte",
                category="Coffee",
                min_price=Decimal("1.5"),
                max_price=Decimal("6.0"),
                max_calories=200,
                sort="name:desc",
                page=2,
                per_page=5,
            )
        )

    def test_list_invalid_sort(self, client: TestClient) -> None:
        """Test that unknown sort fields return 400."""
        response = client.get("/menu", params={"sort": "rating:asc"})

        assert response.status_code == 400
        assert "rating" in response.json()["error"]

    def test_list_invalid_number(self, client: TestClient) -> None:
        """Test that non-numeric filters return 400."""
        response = client.get("/menu", params={"max_price": "cheap"})

        assert response.status_code == 400

    @pytest.mark.parametrize("param", ["min_price", "max_price"])
    @pytest.mark.parametrize("value", ["inf", "-inf", "nan"])
    def test_list_non_finite_price_rejected(
        self, client: TestClient, param: str, value: str
    ) -> None:
        """Test that infinite or NaN price bounds return 400."""
        response = client.get("/menu", params={param: value})

        assert response.status_code == 400
        assert param in response.json()["error"]

    def test_group_by_category_count(self, client: TestClient) -> None:
        """Test count grouping."""
        response = client.get("/menu/group-by-category", params={"mode": "count"})

        assert response.status_code == 200
        assert response.json() == {
            "data": {"mode": "count", "counts": {"Coffee": 3, "Pastry": 1, "Tea": 1}}
        }

    def test_group_by_category_list(self, client: TestClient) -> None:
        """Test list grouping with a per-category cap."""
        response = client.get(
            "/menu/group-by-category", params={"mode": "list", "per_category": 2}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["mode"] == "list"
        assert [item["name"] for item in data["items"]["Coffee"]] == ["Americano", "Latte"]

    def test_group_by_category_bad_cap_falls_back(self, client: TestClient) -> None:
        """Test that a non-integer cap falls back to the default of 5."""
        response = client.get(
            "/menu/group-by-category", params={"mode": "list", "per_category": "lots"}
        )

        assert response.status_code == 200
        assert len(response.json()["data"]["items"]["Coffee"]) == 3

    @pytest.mark.parametrize("params", [{"mode": "bogus"}, {}])
    def test_group_by_category_invalid_mode(self, client: TestClient, params: dict) -> None:
        """Test that missing or unknown modes return 400."""
        response = client.get("/menu/group-by-category", params=params)

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid mode. Use 'count' or 'list'"}


@pytest.mark.unit
class TestAIEndpoints:
    """Test suite for AI-assisted endpoints."""

    def test_generate_description(self, client: TestClient, gateway: FakeAIGateway) -> None:
        """Test generating a description."""
        gateway.responses = ["Velvety foam over bold espresso."]

        response = client.post(
            "/menu/generate-description", json={"name": "Latte", "ingredients": ["espresso"]}
        )

        assert response.status_code == 200
        assert response.json() == {"generated_description": "Velvety foam over bold espresso."}

    def test_generate_description_ai_unavailable(
        self, client: TestClient, gateway: FakeAIGateway
    ) -> None:
        """Test that transport failures return 502."""
        gateway.responses = [AIUnavailableError("Gemini request timed out")]

        response = client.post("/menu/generate-description", json={"name": "Latte"})

        assert response.status_code == 502
        assert "timed out" in response.json()["error"]

    def test_generate_description_empty_response(
        self, client: TestClient, gateway: FakeAIGateway
    ) -> None:
        """Test that an empty AI answer returns 500."""
        gateway.responses = [AIEmptyResponseError("Empty response from AI")]

        response = client.post("/menu/generate-description", json={"name": "Latte"})

        assert response.status_code == 500
        assert response.json() == {"error": "AI Service Error: Empty response from AI"}

    def test_generate_description_invalid_body(self, client: TestClient) -> None:
        """Test that a missing name returns 400."""
        response = client.post("/menu/generate-description", json={"ingredients": []})

        assert response.status_code == 400

    def test_recommendations(self, client: TestClient, gateway: FakeAIGateway) -> None:
        """Test that only catalog items are recommended."""
        gateway.responses = [
            '```json\n[{"menu_name": "Mocha", "reason": "Chocolatey"}, '
            '{"menu_name": "Unicorn Frappe", "reason": "Magic"}]\n```'
        ]

        response = client.post("/menu/recommendations", json={"preference": "something sweet"})

        assert response.status_code == 200
        recommendations = response.json()["recommendations"]
        assert len(recommendations) == 1
        assert recommendations[0]["menu"]["name"] == "Mocha"
        assert recommendations[0]["reason"] == "Chocolatey"

    def test_recommendations_blank_preference(self, client: TestClient) -> None:
        """Test that blank preferences return 400."""
        response = client.post("/menu/recommendations", json={"preference": "  "})

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "error",
        [
            AIUnavailableError("down"),
            AIEmptyResponseError("Empty response from AI"),
            MalformedAIResponseError("Failed to parse AI response", "oops"),
        ],
    )
    def test_recommendations_ai_failures(
        self, client: TestClient, gateway: FakeAIGateway, error: Exception
    ) -> None:
        """Test that every AI failure on recommendations returns 502."""
        if isinstance(error, MalformedAIResponseError):
            gateway.responses = ["not json at all"]
        else:
            gateway.responses = [error]

        response = client.post("/menu/recommendations", json={"preference": "coffee"})

        assert response.status_code == 502
        assert response.json()["error"].startswith("AI Service unavailable")


@pytest.mark.unit
class TestRequestParsing:
    """Tests for path and query parsing helpers."""

    def test_parse_menu_id(self) -> None:
        """Test that plain integers parse."""
        assert parse_menu_id("12") == 12

    @pytest.mark.parametrize(("raw", "expected"), [(None, 5), ("3", 3), ("x", 5), ("0", 0)])
    def test_parse_per_category(self, raw: str | None, expected: int) -> None:
        """Test the per-category fallback."""
        assert parse_per_category(raw) == expected
