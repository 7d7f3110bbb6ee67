"""
Entries router.

GET  /api/entries  — all diary entries, newest first
POST /api/entries  — persist one entry
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from diarybuddy.deps import get_store
from diarybuddy.schemas.common import ErrorResponse
from diarybuddy.schemas.diary import EntryCreate, EntryCreated, EntryResponse
from diarybuddy.services.state import DiaryEntry
from diarybuddy.services.store import RecordStore

router = APIRouter(prefix="/api/entries", tags=["entries"])


def _entry_to_response(entry: DiaryEntry) -> EntryResponse:
    return EntryResponse(
        id=entry.id,
        content=entry.content,
        summary=entry.summary,
        learning=entry.learning,
        created_at=entry.created_at.isoformat() if entry.created_at else None,
    )


@router.get(
    "",
    response_model=list[EntryResponse],
    summary="List diary entries (newest first)",
    responses={503: {"model": ErrorResponse, "description": "Record store unavailable."}},
)
def list_entries(store: RecordStore = Depends(get_store)):
    return [_entry_to_response(e) for e in store.list_entries()]


@router.post(
    "",
    response_model=EntryCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create a diary entry",
    responses={
        422: {"model": ErrorResponse, "description": "Validation error (empty content, summary or learning)."},
        503: {"model": ErrorResponse, "description": "Record store unavailable."},
    },
)
def create_entry(payload: EntryCreate, store: RecordStore = Depends(get_store)):
    """
    Store the entry verbatim. The database assigns `id` and `created_at`.
    Entries are immutable: there is no update or delete endpoint.
    """
    entry_id = store.create_entry(payload.content, payload.summary, payload.learning)
    return EntryCreated(id=entry_id)
