"""
Unit tests for the context builder (pure functions, no DB).
"""
from diarybuddy.core.config import settings
from diarybuddy.services.context import (
    ContextBlock,
    build_context,
    build_system_instruction,
    render_history,
    render_preferences,
)
from diarybuddy.services.state import DiaryEntry


def _entries(n):
    # newest first, as the store returns them
    return [
        DiaryEntry(id=n - i, content=f"day {n - i}", summary=f"S{n - i}", learning=f"L{n - i}")
        for i in range(n)
    ]


class TestRenderPreferences:
    def test_one_line_per_pair(self):
        text = render_preferences({"favorite_subject": "math", "name": "Ana"})
        assert text == "favorite_subject: math\nname: Ana"

    def test_empty(self):
        assert render_preferences({}) == ""


class TestRenderHistory:
    def test_more_than_three_keeps_three_most_recent(self):
        text = render_history(_entries(5))
        assert text == (
            "Past Entry: S5\nLearning: L5\n\n"
            "Past Entry: S4\nLearning: L4\n\n"
            "Past Entry: S3\nLearning: L3"
        )
        assert "S2" not in text
        assert "S1" not in text

    def test_fewer_than_three_uses_all(self):
        text = render_history(_entries(2))
        assert text.count("Past Entry:") == 2

    def test_no_entries_is_empty_text(self):
        assert render_history([]) == ""

    def test_custom_limit(self):
        assert render_history(_entries(5), limit=1) == "Past Entry: S5\nLearning: L5"

    def test_does_not_mutate_input(self):
        entries = _entries(4)
        render_history(entries)
        assert len(entries) == 4


class TestBuildContext:
    def test_deterministic(self):
        prefs = {"a": "1", "b": "2"}
        entries = _entries(4)
        assert build_context(prefs, entries) == build_context(prefs, entries)

    def test_blocks_rendered_separately(self):
        block = build_context({"a": "1"}, _entries(1))
        assert block == ContextBlock(preferences="a: 1", history="Past Entry: S1\nLearning: L1")

    def test_default_limit_follows_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "CONTEXT_HISTORY_LIMIT", 2)
        block = build_context({}, _entries(5))
        assert block.history.count("Past Entry:") == 2


class TestSystemInstruction:
    def test_embeds_context(self):
        block = ContextBlock(preferences="favorite_subject: math", history="Past Entry: X\nLearning: Y")
        instruction = build_system_instruction(block)
        assert "User Preferences:\nfavorite_subject: math" in instruction
        assert "Context from past entries:\nPast Entry: X\nLearning: Y" in instruction

    def test_names_output_fields(self):
        instruction = build_system_instruction(ContextBlock(preferences="", history=""))
        for field in ('"summary"', '"learning"', '"chatResponse"', '"updatedPreferences"'):
            assert field in instruction
