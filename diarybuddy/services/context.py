"""
Context builder: renders preferences and recent history into the text
block embedded in the assistant's system instruction.

Pure functions, no store access: the same inputs always give the same text.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from diarybuddy.core.config import settings
from diarybuddy.services.state import DiaryEntry


@dataclass(frozen=True)
class ContextBlock:
    preferences: str
    history: str


def render_preferences(preferences: Mapping[str, str]) -> str:
    """One `key: value` line per preference, in mapping order."""
    return "\n".join(f"{k}: {v}" for k, v in preferences.items())


def render_history(entries: Sequence[DiaryEntry], limit: Optional[int] = None) -> str:
    """
    The first `limit` entries (callers pass them newest first), separated
    by blank lines. An empty history renders as an empty string.
    `limit` defaults to CONTEXT_HISTORY_LIMIT.
    """
    if limit is None:
        limit = settings.CONTEXT_HISTORY_LIMIT
    return "\n\n".join(
        f"Past Entry: {e.summary}\nLearning: {e.learning}"
        for e in list(entries)[:max(limit, 0)]
    )


def build_context(
    preferences: Mapping[str, str],
    entries: Sequence[DiaryEntry],
    limit: Optional[int] = None,
) -> ContextBlock:
    return ContextBlock(
        preferences=render_preferences(preferences),
        history=render_history(entries, limit),
    )


SYSTEM_INSTRUCTION_TEMPLATE = """You are a helpful student diary assistant.
Your goal is to help the user write their daily work summary and learning outcomes.
Style: Student-like, simple English, relatable, slightly informal but organized.
Tone: Encouraging and reflective.

User Preferences:
{preferences}

Context from past entries:
{history}

When the user provides their day's content, generate a JSON object with:
1. "summary": A concise summary of what they did today in a student style.
2. "learning": What they learned from these activities.
3. "chatResponse": A friendly message to the user acknowledging their day and maybe asking a follow-up or giving a small piece of advice.

If the user is just chatting or providing personal details/preferences, update your understanding and respond naturally in the "chatResponse" field, leaving "summary" and "learning" empty or as appropriate.
If you learn a new preference or personal detail, return it as "updatedPreferences" with a short snake_case "key" and its "value".

Always return JSON."""


def build_system_instruction(context: ContextBlock) -> str:
    return SYSTEM_INSTRUCTION_TEMPLATE.format(
        preferences=context.preferences,
        history=context.history,
    )
