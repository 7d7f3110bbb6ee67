"""
Preferences router.

GET  /api/preferences  — key → value mapping
POST /api/preferences  — insert or replace one key
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from diarybuddy.deps import get_store
from diarybuddy.schemas.common import ErrorResponse
from diarybuddy.schemas.diary import PreferenceSaved, PreferenceUpsert
from diarybuddy.services.store import RecordStore

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get(
    "",
    response_model=dict[str, str],
    summary="All learned preferences",
)
def list_preferences(store: RecordStore = Depends(get_store)):
    return store.list_preferences()


@router.post(
    "",
    response_model=PreferenceSaved,
    summary="Save a preference (last write wins)",
    responses={422: {"model": ErrorResponse, "description": "Validation error (empty key or value)."}},
)
def save_preference(payload: PreferenceUpsert, store: RecordStore = Depends(get_store)):
    store.upsert_preference(payload.key, payload.value)
    return PreferenceSaved()
