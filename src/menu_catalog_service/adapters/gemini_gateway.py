"""Google Gemini gateway implementation.

This gateway calls the Gemini ``generateContent`` REST endpoint directly and
returns the first candidate's text.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from menu_catalog_service.adapters.base_gateway import AIGateway, clean_completion
from menu_catalog_service.exceptions import AIEmptyResponseError, AIUnavailableError
from menu_catalog_service.observability import traced

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


@dataclass(frozen=True)
class GeminiConfig:
    """Configuration for the Gemini gateway, loaded once at startup."""

    api_key: str = ""
    model: str = "gemini-2.0-flash"
    timeout_seconds: float = 15.0
    temperature: float = 0.7
    max_output_tokens: int = 1024
    base_url: str = GEMINI_BASE_URL


def extract_candidate_text(payload: Any) -> str:
    """Pull the text of the first candidate out of a generateContent response.

    Args:
        payload: Decoded JSON response body

    Returns:
        str: Concatenated text parts, empty if the response has none
    """
    if not isinstance(payload, dict):
        return ""

    candidates = payload.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return ""

    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if isinstance(part, dict))


class GeminiGateway(AIGateway):
    """Gateway for the Gemini generateContent API.

    Authenticates with an API key header. Every request is bounded by the
    configured timeout.
    """

    def __init__(self, config: GeminiConfig) -> None:
        """Initialize the Gemini gateway.

        Args:
            config: Gemini configuration (API key, model, timeout)
        """
        super().__init__("gemini")
        self.config = config
        self.url = f"{config.base_url.rstrip('/')}/models/{config.model}:generateContent"

    @traced("gemini_complete", service_name="menu-catalog-svc")
    async def complete(self, prompt: str) -> str:
        """Send a prompt to Gemini and return the cleaned completion text.

        Args:
            prompt: Fully rendered prompt

        Returns:
            str: Completion text

        Raises:
            AIUnavailableError: If the key is missing or the request fails
            AIEmptyResponseError: If Gemini returns no text
        """
        if not self.config.api_key:
            raise AIUnavailableError("GEMINI_API_KEY is not configured")

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_output_tokens,
            },
        }
        headers = {"x-goog-api-key": self.config.api_key}

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_seconds) as client:
                response = await client.post(self.url, json=body, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Gemini request failed with status {e.response.status_code}")
            raise AIUnavailableError(
                f"Gemini returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Gemini request timed out after {self.config.timeout_seconds}s")
            raise AIUnavailableError("Gemini request timed out") from e
        except httpx.RequestError as e:
            logger.error(f"Gemini request failed: {e}")
            raise AIUnavailableError(f"Gemini request failed: {e}") from e
        except ValueError as e:
            logger.error(f"Gemini returned a non-JSON body: {e}")
            raise AIUnavailableError("Gemini returned an unreadable response") from e

        text = clean_completion(extract_candidate_text(payload))
        if not text:
            raise AIEmptyResponseError("Empty response from AI")

        return text
