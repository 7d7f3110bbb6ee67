"""
Session state: the in-memory side of one conversation.

Holds the ordered turn sequence plus snapshots of the preference map and
entry history mirrored from the record store. The state is passed
explicitly through the pipeline; ConversationSession.reload() refreshes
the snapshots from the store.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

USER = "user"
ASSISTANT = "assistant"


@dataclass
class DiaryEntry:
    """A diary entry as seen by the pipeline (detached from the ORM)."""
    content: str
    summary: str
    learning: str
    id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttachedRecord:
    summary: str
    learning: str


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str
    attached_record: Optional[AttachedRecord] = None


@dataclass
class SessionState:
    preferences: dict[str, str] = field(default_factory=dict)
    entries: list[DiaryEntry] = field(default_factory=list)  # newest first
    turns: list[ConversationTurn] = field(default_factory=list)

    def append_turn(self, turn: ConversationTurn) -> ConversationTurn:
        self.turns.append(turn)
        return turn

    def remember_preference(self, key: str, value: str) -> None:
        self.preferences[key] = value

    def prepend_entry(self, entry: DiaryEntry) -> None:
        self.entries.insert(0, entry)
