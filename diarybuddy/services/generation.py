"""
HTTP client for the structured-generation backend (Gemini generateContent).

Sends one request per user message: the system instruction carrying the
context block, the user's text, and RESPONSE_SCHEMA as the required output
shape. No retries; the request is bounded by the configured timeout.

Failure handling
----------------
- transport errors, timeouts and non-2xx replies raise GenerationUnavailableError
- a reply that is not schema-conformant JSON is logged and returned as an
  empty GenerationResult, so callers treat every field as optionally absent
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from diarybuddy.core.config import Settings
from diarybuddy.core.config import settings as default_settings
from diarybuddy.core.errors import GenerationUnavailableError, MalformedResponseError
from diarybuddy.schemas.generation import RESPONSE_SCHEMA, GenerationResult, parse_generation_text
from diarybuddy.services.context import ContextBlock, build_system_instruction

logger = logging.getLogger(__name__)


def build_request(user_message: str, context: ContextBlock) -> dict[str, Any]:
    """generateContent request body for one user message."""
    return {
        "systemInstruction": {
            "parts": [{"text": build_system_instruction(context)}],
        },
        "contents": [
            {"role": "user", "parts": [{"text": user_message}]},
        ],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }


def extract_text(body: Any) -> str:
    """Concatenate the text parts of the first candidate."""
    try:
        parts = body["candidates"][0]["content"]["parts"]
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    except (KeyError, IndexError, TypeError) as exc:
        raise MalformedResponseError(reason=f"unexpected response envelope: {exc!r}") from exc


class GenerationClient:
    """Synchronous client; one instance per conversation session."""

    def __init__(
        self,
        api_key: str,
        *,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        # unset options fall back to the application settings
        self._model = model or default_settings.GENERATION_MODEL
        api_url = api_url or default_settings.GENERATION_API_URL
        if timeout is None:
            timeout = default_settings.GENERATION_TIMEOUT
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers={
                "x-goog-api-key": api_key,
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationClient":
        if not settings.GEMINI_API_KEY:
            logger.warning("GEMINI_API_KEY is not set; generation requests will be rejected")
        return cls(
            settings.GEMINI_API_KEY,
            model=settings.GENERATION_MODEL,
            api_url=settings.GENERATION_API_URL,
            timeout=settings.GENERATION_TIMEOUT,
        )

    @property
    def model(self) -> str:
        return self._model

    def generate(self, user_message: str, context: ContextBlock) -> GenerationResult:
        """POST models/{model}:generateContent -> GenerationResult."""
        payload = build_request(user_message, context)
        try:
            resp = self._client.post(f"/models/{self._model}:generateContent", json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Generation request rejected: %s %s",
                e.response.status_code, e.response.text[:200],
            )
            raise GenerationUnavailableError(
                reason="backend returned an error status",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Generation request failed: %s", e)
            raise GenerationUnavailableError(reason=f"{type(e).__name__}: {e}") from e

        try:
            return parse_generation_text(extract_text(resp.json()))
        except ValueError as e:
            # resp.json() on a non-JSON body
            logger.warning("Generation response body is not JSON: %s", e)
        except MalformedResponseError as e:
            logger.warning("Discarding malformed generation response: %s", e.details.get("reason"))
        return GenerationResult()

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()
