from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

"""NormalizedRow: one upload row after cell coercion.

row_number is the spreadsheet row (header row = 1, first data row = 2), the
number an operator sees in their spreadsheet application.
"""

__all__ = [
    "Priority",
    "NormalizedRow",
]


class Priority(Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value: str) -> Priority | None:
        """Case-insensitive lookup; None when the text is not a known priority."""
        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


@dataclass(frozen=True)
class NormalizedRow:
    """Fixed-shape calendar row produced by the row normalizer."""
    row_number: int
    date: date
    client_raw_text: str  # trimmed, not yet resolved
    post_type: str
    hashtags: str | None
    priority: Priority
    campaign_flag: bool
