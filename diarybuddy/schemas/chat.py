"""
Conversation request / response schemas.

POST /api/chat         → ChatRequest → ChatResponse
GET  /api/chat/turns   → TurnListResponse
POST /api/chat/reload  → ReloadResponse
"""
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, Field, field_validator

from diarybuddy.schemas.common import strip_required
from diarybuddy.schemas.diary import MAX_TEXT_LENGTH


class ChatRequest(BaseModel):
    """One user message for the diary assistant."""

    message: Annotated[str, Field(
        min_length=1,
        max_length=MAX_TEXT_LENGTH,
        description="What the user did today, or anything on their mind.",
        examples=["Studied algorithms, learned merge sort."],
    )]

    @field_validator("message", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v):
        return strip_required(v, "message")


class AttachedRecordOut(BaseModel):
    summary: str
    learning: str


class TurnOut(BaseModel):
    role: str = Field(description='"user" or "assistant".')
    content: str
    attached_record: Optional[AttachedRecordOut] = Field(
        default=None,
        description="Summary and learning extracted in this turn, when an entry was recorded.",
    )


class WriteResultOut(BaseModel):
    """Outcome of one store write attempted during reconciliation."""
    status: str = Field(description='"skipped", "ok" or "failed".')
    error_code: Optional[str] = None
    error: Optional[str] = None


class ChatResponse(BaseModel):
    user_turn: TurnOut
    turn: TurnOut = Field(description="The assistant turn appended for this message.")
    entry_id: Optional[int] = Field(default=None, description="ID of the entry created, if any.")
    preference_write: WriteResultOut
    entry_write: WriteResultOut
    generation_error: Optional[str] = Field(
        default=None,
        description="Error code when the generation backend could not be used.",
    )


class TurnListResponse(BaseModel):
    total: int
    items: list[TurnOut]


class ReloadResponse(BaseModel):
    preferences: int = Field(description="Number of preferences loaded.")
    entries: int = Field(description="Number of entries loaded.")
