"""Typed exceptions for the menu catalog.

The HTTP layer maps each of these to a status code, so services and stores
raise them instead of returning sentinel values.
"""


class MenuCatalogError(Exception):
    """Base exception for all menu catalog errors."""


class InvalidArgumentError(MenuCatalogError):
    """A caller supplied a value the catalog cannot accept.

    Raised for negative prices, unknown grouping modes and unknown sort fields.
    """


class NotFoundError(MenuCatalogError):
    """No menu item exists with the requested identity."""

    def __init__(self, menu_id: int) -> None:
        super().__init__(f"Menu {menu_id} not found")
        self.menu_id = menu_id


class PersistenceError(MenuCatalogError):
    """The storage layer failed. Never retried by the catalog."""


class AIError(MenuCatalogError):
    """Base exception for failures of the generative-AI dependency."""


class AIUnavailableError(AIError):
    """The AI transport failed (network, auth, timeout or HTTP error)."""


class AIEmptyResponseError(AIError):
    """The AI answered but produced no usable text."""


class MalformedAIResponseError(AIError):
    """The AI text could not be parsed as the expected suggestion array."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text
