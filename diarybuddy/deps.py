"""
FastAPI dependencies shared by the routers.

The conversation session is created on first use and kept on `app.state`,
so there is exactly one per process (single user, single history).
"""
import logging
import threading

from fastapi import Request

from diarybuddy.core.config import settings
from diarybuddy.core.errors import StoreUnavailableError
from diarybuddy.db.base import SessionLocal
from diarybuddy.services.generation import GenerationClient
from diarybuddy.services.session import ConversationSession
from diarybuddy.services.store import RecordStore

logger = logging.getLogger(__name__)

_session_lock = threading.Lock()


def get_store() -> RecordStore:
    return RecordStore(SessionLocal)


def get_conversation(request: Request) -> ConversationSession:
    with _session_lock:
        conversation = getattr(request.app.state, "conversation", None)
        if conversation is None:
            conversation = ConversationSession(
                store=RecordStore(SessionLocal),
                generator=GenerationClient.from_settings(settings),
                history_limit=settings.CONTEXT_HISTORY_LIMIT,
            )
            try:
                conversation.reload()
            except StoreUnavailableError:
                logger.warning("Starting conversation with empty snapshots; store unavailable")
            request.app.state.conversation = conversation
        return conversation
