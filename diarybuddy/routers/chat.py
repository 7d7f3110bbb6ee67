"""
Chat router: HTTP face of the conversation session.

POST /api/chat         — submit one user message, get the assistant turn
GET  /api/chat/turns   — the conversation so far, oldest first
POST /api/chat/reload  — refresh preference/entry snapshots from the store
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from diarybuddy.deps import get_conversation
from diarybuddy.schemas.common import ErrorResponse
from diarybuddy.schemas.chat import (
    AttachedRecordOut,
    ChatRequest,
    ChatResponse,
    ReloadResponse,
    TurnListResponse,
    TurnOut,
    WriteResultOut,
)
from diarybuddy.services.reconciliation import WriteResult
from diarybuddy.services.session import ConversationSession
from diarybuddy.services.state import USER, ConversationTurn

router = APIRouter(prefix="/api/chat", tags=["chat"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _turn_to_response(turn: ConversationTurn) -> TurnOut:
    record = turn.attached_record
    return TurnOut(
        role=turn.role,
        content=turn.content,
        attached_record=(
            AttachedRecordOut(summary=record.summary, learning=record.learning)
            if record is not None
            else None
        ),
    )


def _write_to_response(write: WriteResult) -> WriteResultOut:
    return WriteResultOut(
        status=write.status.value,
        error_code=write.error_code,
        error=write.error,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=ChatResponse,
    summary="Send a message to the diary assistant",
    responses={
        409: {"model": ErrorResponse, "description": "Another message is still being processed."},
        422: {"model": ErrorResponse, "description": "Validation error (empty message)."},
    },
)
def chat(payload: ChatRequest, conversation: ConversationSession = Depends(get_conversation)):
    """
    Runs context building, generation and reconciliation for one message.

    The reply is always a 200 with an assistant turn: when the generation
    backend fails, the turn carries a fixed apology and `generation_error`
    names the failure. Store failures show up in `preference_write` /
    `entry_write` without blocking the reply.
    """
    outcome = conversation.submit(payload.message)
    return ChatResponse(
        user_turn=_turn_to_response(ConversationTurn(role=USER, content=payload.message)),
        turn=_turn_to_response(outcome.turn),
        entry_id=outcome.entry_id,
        preference_write=_write_to_response(outcome.preference_write),
        entry_write=_write_to_response(outcome.entry_write),
        generation_error=outcome.generation_error,
    )


@router.get(
    "/turns",
    response_model=TurnListResponse,
    summary="Conversation turns in order of occurrence",
)
def list_turns(conversation: ConversationSession = Depends(get_conversation)):
    turns = conversation.turns
    return TurnListResponse(total=len(turns), items=[_turn_to_response(t) for t in turns])


@router.post(
    "/reload",
    response_model=ReloadResponse,
    summary="Reload preference and entry snapshots from the store",
    responses={
        409: {"model": ErrorResponse, "description": "A message is being processed."},
        503: {"model": ErrorResponse, "description": "Record store unavailable."},
    },
)
def reload(conversation: ConversationSession = Depends(get_conversation)):
    state = conversation.reload()
    return ReloadResponse(preferences=len(state.preferences), entries=len(state.entries))
