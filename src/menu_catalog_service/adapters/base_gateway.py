"""Base gateway for generative-AI integrations.

This module defines the abstract class every AI backend implements. Prompt
construction is deterministic and lives here so it can be tested without any
network I/O; backends only implement ``complete``.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from menu_catalog_service.models.menu_models import MenuItem

DESCRIPTION_PROMPT_TEMPLATE = """Role: Senior Culinary Copywriter.
Task: Write a menu description for "{name}".

Ingredients: {ingredients}.

Constraints:
1. Focus on SENSORY details (texture, temperature, specific flavor notes).
2. Do NOT use generic words like "delicious", "yummy", or "tasty".
3. Keep it under 20 words.
4. Language: English (Elegant & Appetizing).

Output example: "Silky steamed milk meets robust espresso, finished with a touch of caramelized sweetness."

Result without any intro or chit-chat:"""

RECOMMENDATION_PROMPT_TEMPLATE = """Role: Strict Menu Recommendation Engine.

Context:
User Request: "{preference}"
Available Menu:
{catalog}
Task: Recommend 1-3 items based on the user request.

CRITICAL INSTRUCTION:
1. Output MUST be a valid JSON Array.
2. Use the EXACT menu name from the list above.
3. Format: [{{"menu_name": "Exact Name", "reason": "Why it fits"}}]
4. No Markdown. No Intro. No commentary.
5. If nothing fits, output: []"""


def clean_completion(text: str) -> str:
    """Trim whitespace and surrounding double quotes from model output."""
    return text.strip().strip('"').strip()


def format_catalog_line(item: MenuItem) -> str:
    """Render one menu item as a line of the recommendation prompt."""
    ingredients = ", ".join(item.ingredients) or "n/a"
    return (
        f"- {item.name} (Ingredients: {ingredients}, Category: {item.category}, "
        f"Price: {item.price})"
    )


class AIGateway(ABC):
    """Abstract base class for generative-AI gateways.

    ``complete`` is the single failure boundary: it raises AIUnavailableError
    when the backend cannot be reached and AIEmptyResponseError when it returns
    no usable text.
    """

    def __init__(self, provider_name: str) -> None:
        """Initialize the gateway.

        Args:
            provider_name: Name of the AI provider (e.g., 'gemini')
        """
        self.provider_name = provider_name

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the cleaned completion text.

        Args:
            prompt: Fully rendered prompt

        Returns:
            str: Completion text, trimmed and stripped of surrounding quotes
        """

    def build_description_prompt(self, name: str, ingredients: Sequence[str]) -> str:
        """Render the menu description prompt.

        Args:
            name: Menu item name
            ingredients: Ingredient names in display order

        Returns:
            str: Prompt asking for a short sensory description
        """
        return DESCRIPTION_PROMPT_TEMPLATE.format(
            name=name,
            ingredients=", ".join(ingredients),
        )

    def build_recommendation_prompt(self, preference: str, catalog: Sequence[MenuItem]) -> str:
        """Render the recommendation prompt.

        Args:
            preference: Free-text user preference
            catalog: Menu items the model may choose from

        Returns:
            str: Prompt asking for a strict JSON array of suggestions
        """
        lines = "".join(f"{format_catalog_line(item)}\n" for item in catalog)
        return RECOMMENDATION_PROMPT_TEMPLATE.format(preference=preference, catalog=lines)
