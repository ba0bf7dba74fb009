"""Reconciliation of AI suggestions against the live menu catalog.

The model is untrusted: it may wrap its answer in markdown fences, break the
JSON contract, or invent menu names. This module is the single place where
its text becomes typed catalog data.
"""

import json
import logging
from collections.abc import Sequence

from pydantic import ValidationError

from menu_catalog_service.exceptions import MalformedAIResponseError
from menu_catalog_service.models.menu_models import MenuItem
from menu_catalog_service.models.recommendation_models import Recommendation, RawSuggestion
from menu_catalog_service.observability.metrics import record_recommendations_dropped

logger = logging.getLogger(__name__)

_OPENING_FENCES = ("```json", "```")
_CLOSING_FENCE = "```"


def strip_code_fences(raw_text: str) -> str:
    """Remove an optional markdown code fence around the model output."""
    text = raw_text.strip()

    for fence in _OPENING_FENCES:
        if text.lower().startswith(fence):
            text = text[len(fence) :]
            break

    if text.endswith(_CLOSING_FENCE):
        text = text[: -len(_CLOSING_FENCE)]

    return text.strip()


class RecommendationReconciler:
    """Turns raw model output into recommendations backed by real menu items."""

    def parse(self, raw_text: str) -> list[RawSuggestion]:
        """Parse the model's suggestion array.

        Args:
            raw_text: Completion text, optionally fenced with ```json

        Returns:
            list[RawSuggestion]: Suggestions in the order the model gave them

        Raises:
            MalformedAIResponseError: If the text is not a JSON array of
                suggestion objects
        """
        text = strip_code_fences(raw_text)

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedAIResponseError(f"Failed to parse AI response: {e}", raw_text) from e

        if not isinstance(payload, list):
            raise MalformedAIResponseError("AI response is not a JSON array", raw_text)

        try:
            return [RawSuggestion.model_validate(entry) for entry in payload]
        except ValidationError as e:
            raise MalformedAIResponseError(
                f"AI response contains an invalid suggestion: {e.error_count()} error(s)",
                raw_text,
            ) from e

    def reconcile(
        self,
        suggestions: Sequence[RawSuggestion],
        catalog: Sequence[MenuItem],
    ) -> list[Recommendation]:
        """Match suggestions to catalog items by exact, case-sensitive name.

        Unknown names are dropped. A name suggested twice is only returned
        once, at its first position.

        Args:
            suggestions: Parsed model suggestions
            catalog: Catalog snapshot the prompt was built from

        Returns:
            list[Recommendation]: Matched recommendations in suggestion order,
                possibly empty
        """
        by_name: dict[str, MenuItem] = {}
        for item in catalog:
            by_name.setdefault(item.name, item)

        recommendations: list[Recommendation] = []
        seen: set[str] = set()
        dropped = 0

        for suggestion in suggestions:
            menu = by_name.get(suggestion.menu_name)
            if menu is None:
                dropped += 1
                logger.debug(f"Dropping suggestion for unknown menu '{suggestion.menu_name}'")
                continue
            if suggestion.menu_name in seen:
                continue
            seen.add(suggestion.menu_name)
            recommendations.append(Recommendation(menu=menu, reason=suggestion.reason))

        if dropped:
            record_recommendations_dropped(dropped)

        return recommendations
