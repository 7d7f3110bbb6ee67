"""
Structured generation result.

The backend is asked for a JSON object shaped like RESPONSE_SCHEMA; the
reply is validated into GenerationResult immediately after parsing.
`chatResponse` is the only required field. `updatedPreferences` is a single
object, so at most one preference can be learned per turn.
"""
from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from diarybuddy.core.errors import MalformedResponseError


# Gemini responseSchema (OpenAPI subset, upper-case type names)
RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "summary": {"type": "STRING"},
        "learning": {"type": "STRING"},
        "chatResponse": {"type": "STRING"},
        "updatedPreferences": {
            "type": "OBJECT",
            "description": "Any new preferences or personal details learned from this interaction",
            "properties": {
                "key": {"type": "STRING"},
                "value": {"type": "STRING"},
            },
        },
    },
    "required": ["chatResponse"],
}


def _none_to_empty(v):
    return "" if v is None else v


class PreferenceUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str = ""
    value: str = ""

    @field_validator("key", "value", mode="before")
    @classmethod
    def strip_text(cls, v):
        v = _none_to_empty(v)
        return v.strip() if isinstance(v, str) else v

    @property
    def is_complete(self) -> bool:
        return bool(self.key) and bool(self.value)


class GenerationResult(BaseModel):
    """Validated reply of one generation call. Every field may be empty."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    summary: str = ""
    learning: str = ""
    chat_response: str = Field(default="", alias="chatResponse")
    updated_preferences: Optional[PreferenceUpdate] = Field(
        default=None, alias="updatedPreferences"
    )

    @field_validator("summary", "learning", "chat_response", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return _none_to_empty(v)

    @property
    def has_record(self) -> bool:
        """True when both summary and learning are non-empty."""
        return bool(self.summary.strip()) and bool(self.learning.strip())

    @property
    def preference(self) -> Optional[PreferenceUpdate]:
        """The learned preference, if it carries both a key and a value."""
        if self.updated_preferences is not None and self.updated_preferences.is_complete:
            return self.updated_preferences
        return None


def parse_generation_text(text: Optional[str]) -> GenerationResult:
    """
    Parse and validate the raw text returned by the backend.

    Raises MalformedResponseError when the text is not a JSON object,
    a field has the wrong type, or `chatResponse` is missing or empty.
    """
    try:
        data = json.loads(text or "{}")
    except ValueError as exc:
        raise MalformedResponseError(reason=f"invalid JSON: {exc}", raw=text) from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(reason="expected a JSON object", raw=text)

    try:
        result = GenerationResult.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(reason=str(exc), raw=text) from exc

    if not result.chat_response.strip():
        raise MalformedResponseError(reason="chatResponse is missing or empty", raw=text)
    return result
