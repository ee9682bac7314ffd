from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from calendar_reconcile.models.client import CanonicalClient

__all__ = [
    "MatchStrategy",
    "MatchResult",
]


class MatchStrategy(Enum):
    """Cascade stage that produced a match (kept on the row for audit)."""
    EXACT = "Exact"
    SUBSTRING = "Substring"
    WORD_OVERLAP = "WordOverlap"
    FUZZY = "Fuzzy"
    NONE = "None"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of resolving one free-text client reference.

    candidate_names is filled on failures so the operator can see what the
    registry offered.
    """
    matched_client: CanonicalClient | None
    strategy: MatchStrategy
    similarity: float | None
    diagnostic_text: str
    candidate_names: tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return self.matched_client is not None

    @staticmethod
    def unmatched(diagnostic_text: str, candidate_names: tuple[str, ...] = ()) -> MatchResult:
        return MatchResult(
            matched_client=None,
            strategy=MatchStrategy.NONE,
            similarity=None,
            diagnostic_text=diagnostic_text,
            candidate_names=candidate_names,
        )
