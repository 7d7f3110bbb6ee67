from .entry import Entry
from .preference import Preference

__all__ = [
    "Entry",
    "Preference",
]
