"""Thin client for the hosted Gemini text-generation API."""
import logging
from typing import Any, Optional

import httpx

from config import settings
from errors import AINotConfiguredError, AIServiceError

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiClient:
    """Sends one system prompt plus one user query and returns the reply text.

    No retries and no caching. A missing key, a non-2xx answer or a reply
    without text all raise, and the caller turns that into a 500.
    """

    def __init__(self, api_key: Optional[str], model: str, timeout: Optional[float] = None):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def generate(self, system_prompt: str, user_query: str) -> str:
        if not self.configured:
            raise AINotConfiguredError("GEMINI_API_KEY is not defined")

        payload = {
            "contents": [{"parts": [{"text": user_query}]}],
            "systemInstruction": {"parts": [{"text": system_prompt}]},
        }
        url = GEMINI_URL.format(model=self.model)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            raise AIServiceError(f"Gemini request failed: {e}") from e

        if response.status_code >= 400:
            logger.error("Gemini API error %s: %s", response.status_code, response.text)
            raise AIServiceError(f"API call failed with status: {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise AIServiceError(f"Gemini returned a non-JSON body: {e}") from e

        text = extract_text(result)
        if not text:
            raise AIServiceError("Gemini returned no text")
        return text


def extract_text(result: Any) -> Optional[str]:
    """Pulls candidates[0].content.parts[0].text out of a generateContent reply."""
    if not isinstance(result, dict):
        return None
    candidates = result.get("candidates") or []
    if not candidates:
        return None
    candidate = candidates[0] if isinstance(candidates, list) else None
    if not isinstance(candidate, dict) or not isinstance(candidate.get("content"), dict):
        return None
    parts = candidate["content"].get("parts") or []
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) else None


def get_ai_client() -> GeminiClient:
    """Dependency returning a client built from the current settings."""
    return GeminiClient(
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_MODEL,
        timeout=settings.GEMINI_TIMEOUT,
    )
