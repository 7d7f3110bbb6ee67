"""
Conversation session: one user's running chat with the diary assistant.

submit(text) runs the whole pipeline:
    context builder -> generation client -> reconciliation engine
and is guarded so that only one submission is in flight at a time. A
second submit() while one is running raises SubmissionInProgressError
instead of interleaving with it.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

from diarybuddy.core.config import settings
from diarybuddy.core.errors import (
    ConstraintViolationError,
    GenerationUnavailableError,
    MalformedResponseError,
    SubmissionInProgressError,
)
from diarybuddy.schemas.generation import GenerationResult
from diarybuddy.services.context import ContextBlock, build_context
from diarybuddy.services.reconciliation import (
    ReconciliationOutcome,
    fallback_turn,
    reconcile,
)
from diarybuddy.services.state import ASSISTANT, USER, ConversationTurn, SessionState
from diarybuddy.services.store import RecordStore

logger = logging.getLogger(__name__)

GREETING = (
    "Hey! I'm your student diary buddy. How was your day? Just tell me what you did "
    "or what's on your mind, and I'll help you summarize it and track your learning!"
)


class GenerationBackend(Protocol):
    def generate(self, user_message: str, context: ContextBlock) -> GenerationResult: ...


class ConversationSession:
    def __init__(
        self,
        store: RecordStore,
        generator: GenerationBackend,
        *,
        history_limit: Optional[int] = None,
    ):
        self.store = store
        self.generator = generator
        self.history_limit = settings.CONTEXT_HISTORY_LIMIT if history_limit is None else history_limit
        self.state = SessionState(turns=[ConversationTurn(role=ASSISTANT, content=GREETING)])
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def turns(self) -> list[ConversationTurn]:
        return list(self.state.turns)

    def reload(self) -> SessionState:
        """Replace the preference and entry snapshots with the store's contents."""
        if not self._lock.acquire(blocking=False):
            raise SubmissionInProgressError()
        try:
            preferences = self.store.list_preferences()
            entries = self.store.list_entries()
            self.state.preferences = preferences
            self.state.entries = entries
        finally:
            self._lock.release()
        logger.info("Session reloaded: %d preferences, %d entries", len(preferences), len(entries))
        return self.state

    def submit(self, user_text: str) -> ReconciliationOutcome:
        text = (user_text or "").strip()
        if not text:
            raise ConstraintViolationError(message="message must not be empty.", field="message")

        if not self._lock.acquire(blocking=False):
            raise SubmissionInProgressError()
        try:
            self.state.append_turn(ConversationTurn(role=USER, content=text))
            context = build_context(self.state.preferences, self.state.entries, self.history_limit)
            try:
                result = self.generator.generate(text, context)
            except (GenerationUnavailableError, MalformedResponseError) as exc:
                logger.warning("Generation failed (%s): %s", exc.code, exc.details.get("reason"))
                turn = self.state.append_turn(fallback_turn())
                return ReconciliationOutcome(turn=turn, generation_error=exc.code)
            return reconcile(result, text, self.state, self.store)
        finally:
            self._lock.release()
