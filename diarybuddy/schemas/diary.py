"""
Record store request / response schemas.

GET  /api/entries      → list[EntryResponse]
POST /api/entries      → EntryCreate       → EntryCreated
GET  /api/preferences  → dict[str, str]
POST /api/preferences  → PreferenceUpsert  → PreferenceSaved
"""
from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, Field, field_validator

from diarybuddy.schemas.common import strip_required

MAX_TEXT_LENGTH = 10_000


class EntryCreate(BaseModel):
    """A diary entry to persist as-is."""

    content: Annotated[str, Field(
        min_length=1,
        max_length=MAX_TEXT_LENGTH,
        description="The user's own description of their day, stored verbatim.",
        examples=["Studied algorithms, learned merge sort."],
    )]
    summary: Annotated[str, Field(
        min_length=1,
        max_length=MAX_TEXT_LENGTH,
        examples=["Studied algorithms"],
    )]
    learning: Annotated[str, Field(
        min_length=1,
        max_length=MAX_TEXT_LENGTH,
        examples=["Merge sort works by divide and conquer"],
    )]

    @field_validator("content", "summary", "learning", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v, info):
        return strip_required(v, info.field_name)


class EntryResponse(BaseModel):
    """A persisted diary entry."""
    id: int
    content: str
    summary: Optional[str] = None
    learning: Optional[str] = None
    created_at: Optional[str] = Field(default=None, description="UTC timestamp of creation.")


class EntryCreated(BaseModel):
    id: int = Field(description="ID assigned by the store.")


class PreferenceUpsert(BaseModel):
    """Insert a preference, or replace the value of an existing key."""

    key: Annotated[str, Field(min_length=1, max_length=255, examples=["favorite_subject"])]
    value: Annotated[str, Field(min_length=1, max_length=MAX_TEXT_LENGTH, examples=["math"])]

    @field_validator("key", "value", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v, info):
        return strip_required(v, info.field_name)


class PreferenceSaved(BaseModel):
    success: bool = True
