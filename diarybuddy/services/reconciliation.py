"""
Reconciliation engine: turns one generation result into store writes and
the assistant turn shown to the user.

A result with an empty chatResponse is treated as malformed: nothing is
written and the fallback turn is appended. Otherwise, in this order and
all attempted:
1. learned preference (non-empty key and value) -> upsert + mirror in state
2. summary and learning both non-empty          -> create entry + prepend in state
3. assistant turn: chatResponse, with the summary/learning attached iff
   step 2 was attempted
4. append the turn to the session

Store failures are logged and reported in the outcome; they never stop
the user from getting a reply. Nothing is retried or rolled back.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from diarybuddy.core.errors import ConstraintViolationError, StoreUnavailableError
from diarybuddy.schemas.generation import GenerationResult
from diarybuddy.services.state import (
    ASSISTANT,
    AttachedRecord,
    ConversationTurn,
    DiaryEntry,
    SessionState,
)
from diarybuddy.services.store import RecordStore

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Oops, something went wrong. Can you try again?"

_STORE_ERRORS = (StoreUnavailableError, ConstraintViolationError)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

class WriteStatus(str, enum.Enum):
    skipped = "skipped"
    ok = "ok"
    failed = "failed"


@dataclass(frozen=True)
class WriteResult:
    status: WriteStatus
    error_code: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def skipped(cls) -> "WriteResult":
        return cls(WriteStatus.skipped)

    @classmethod
    def ok(cls) -> "WriteResult":
        return cls(WriteStatus.ok)

    @classmethod
    def failed(cls, exc: StoreUnavailableError | ConstraintViolationError) -> "WriteResult":
        return cls(WriteStatus.failed, error_code=exc.code, error=exc.message)

    @property
    def attempted(self) -> bool:
        return self.status != WriteStatus.skipped


@dataclass
class ReconciliationOutcome:
    """What one reconciliation did. Partial success is visible per write."""
    turn: ConversationTurn
    preference_write: WriteResult = field(default_factory=WriteResult.skipped)
    entry_write: WriteResult = field(default_factory=WriteResult.skipped)
    entry_id: Optional[int] = None
    generation_error: Optional[str] = None


def fallback_turn() -> ConversationTurn:
    return ConversationTurn(role=ASSISTANT, content=FALLBACK_MESSAGE)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

def _apply_preference(
    result: GenerationResult,
    state: SessionState,
    store: RecordStore,
) -> WriteResult:
    pref = result.preference
    if pref is None:
        return WriteResult.skipped()
    try:
        store.upsert_preference(pref.key, pref.value)
    except _STORE_ERRORS as exc:
        logger.warning("Preference %r not saved: %s", pref.key, exc.message)
        return WriteResult.failed(exc)
    state.remember_preference(pref.key, pref.value)
    return WriteResult.ok()


def _apply_entry(
    result: GenerationResult,
    user_message: str,
    state: SessionState,
    store: RecordStore,
) -> tuple[WriteResult, Optional[int]]:
    if not result.has_record:
        return WriteResult.skipped(), None
    try:
        entry_id = store.create_entry(user_message, result.summary, result.learning)
    except _STORE_ERRORS as exc:
        logger.warning("Diary entry not saved: %s", exc.message)
        return WriteResult.failed(exc), None
    # created_at is a client-side approximation until the next reload
    state.prepend_entry(DiaryEntry(
        id=entry_id,
        content=user_message,
        summary=result.summary,
        learning=result.learning,
        created_at=datetime.now(tz=timezone.utc),
    ))
    return WriteResult.ok(), entry_id


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def reconcile(
    result: GenerationResult,
    user_message: str,
    state: SessionState,
    store: RecordStore,
) -> ReconciliationOutcome:
    # A reply without chatResponse is malformed: no writes, fallback turn only.
    if not result.chat_response.strip():
        logger.info("Empty chat response; skipping writes and replying with fallback message")
        turn = fallback_turn()
        state.append_turn(turn)
        return ReconciliationOutcome(
            turn=turn,
            preference_write=WriteResult.skipped(),
            entry_write=WriteResult.skipped(),
            entry_id=None,
        )

    preference_write = _apply_preference(result, state, store)
    entry_write, entry_id = _apply_entry(result, user_message, state, store)

    attached = (
        AttachedRecord(summary=result.summary, learning=result.learning)
        if entry_write.attempted
        else None
    )
    turn = ConversationTurn(role=ASSISTANT, content=result.chat_response, attached_record=attached)
    state.append_turn(turn)

    return ReconciliationOutcome(
        turn=turn,
        preference_write=preference_write,
        entry_write=entry_write,
        entry_id=entry_id,
    )
