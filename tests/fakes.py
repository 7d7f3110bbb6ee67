"""Test doubles shared across test modules."""
from diarybuddy.schemas.generation import GenerationResult


class FakeGenerator:
    """
    Scripted stand-in for GenerationClient.

    Each queued item is either a dict (validated into GenerationResult,
    aliases accepted), a GenerationResult, or an exception to raise.
    Every call is recorded as (user_message, context).
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls = []

    def queue(self, *items):
        self.script.extend(items)

    def generate(self, user_message, context):
        self.calls.append((user_message, context))
        item = self.script.pop(0) if self.script else {}
        if isinstance(item, Exception):
            raise item
        if isinstance(item, GenerationResult):
            return item
        return GenerationResult.model_validate(item)
