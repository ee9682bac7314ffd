from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from calendar_reconcile.models.client import CanonicalClient
from calendar_reconcile.models.config_models import MatchingRules
from calendar_reconcile.models.match_result import MatchResult, MatchStrategy

"""Client resolution: free-text client reference -> CanonicalClient.

Both the input and every registry display name go through the same
normalization (normalize_client_name) before any comparison. Resolution is a
cascade of independent strategies tried in order; the first one that returns
a match wins:

1. exact        normalized strings are equal
2. substring    one normalized string contains the other
3. word overlap enough shared significant tokens
4. fuzzy        Levenshtein similarity above the threshold, smallest distance

Each strategy sees the whole candidate list and returns the first candidate it
accepts (canonical list order), so results only depend on the input text and
the order of the registry list.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "Candidate",
    "ClientResolver",
    "normalize_client_name",
    "match_exact",
    "match_substring",
    "match_word_overlap",
    "match_fuzzy",
    "DEFAULT_STRATEGIES",
]

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_client_name(name: str | None, rules: MatchingRules) -> str:
    """Normalize a client name for comparison.

    space variants -> ' ', trim, lowercase, punctuation -> ' ', drop one
    trailing business suffix token, collapse whitespace.

    >>> normalize_client_name("ACME   INC.", MatchingRules())
    'acme'
    """
    if not name:
        return ""
    text = name.translate({ord(ch): " " for ch in rules.space_variants})
    text = text.strip().lower()
    text = text.translate({ord(ch): " " for ch in rules.punctuation})
    tokens = text.split()
    # a lone token is the name itself, never a suffix ("Co" stays "co")
    if len(tokens) > 1 and tokens[-1] in rules.business_suffixes:
        tokens = tokens[:-1]
    return _WHITESPACE_RE.sub(" ", " ".join(tokens)).strip()


@dataclass(frozen=True)
class Candidate:
    client: CanonicalClient
    normalized: str


StrategyFn = Callable[[str, Sequence[Candidate], MatchingRules], MatchResult | None]


def _significant_tokens(text: str, rules: MatchingRules) -> set[str]:
    return {t for t in text.split(" ") if len(t) > rules.min_token_length}


def match_exact(
    text: str, candidates: Sequence[Candidate], rules: MatchingRules
) -> MatchResult | None:
    for c in candidates:
        if c.normalized == text:
            return MatchResult(c.client, MatchStrategy.EXACT, 1.0, "Exact match")
    return None


def match_substring(
    text: str, candidates: Sequence[Candidate], rules: MatchingRules
) -> MatchResult | None:
    for c in candidates:
        if c.normalized in text or text in c.normalized:
            return MatchResult(
                c.client,
                MatchStrategy.SUBSTRING,
                None,
                f'Partial match: "{c.client.display_name}"',
            )
    return None


def match_word_overlap(
    text: str, candidates: Sequence[Candidate], rules: MatchingRules
) -> MatchResult | None:
    input_tokens = _significant_tokens(text, rules)
    if not input_tokens:
        return None
    for c in candidates:
        candidate_tokens = _significant_tokens(c.normalized, rules)
        common = input_tokens & candidate_tokens
        if not common:
            continue
        needed = math.floor(
            min(len(input_tokens), len(candidate_tokens)) * rules.word_overlap_fraction
        )
        if len(common) >= needed:
            return MatchResult(
                c.client,
                MatchStrategy.WORD_OVERLAP,
                None,
                f'Word match: "{c.client.display_name}"',
            )
    return None


def match_fuzzy(
    text: str, candidates: Sequence[Candidate], rules: MatchingRules
) -> MatchResult | None:
    best: Candidate | None = None
    best_distance = math.inf
    best_similarity = 0.0
    for c in candidates:
        distance = Levenshtein.distance(text, c.normalized)
        longest = max(len(text), len(c.normalized))
        similarity = 1 - distance / longest if longest else 0.0
        # strict '<' keeps the first candidate on ties
        if similarity > rules.fuzzy_threshold and distance < best_distance:
            best, best_distance, best_similarity = c, distance, similarity
    if best is None:
        return None
    return MatchResult(
        best.client,
        MatchStrategy.FUZZY,
        best_similarity,
        f'Fuzzy match ({round(best_similarity * 100)}%): "{best.client.display_name}"',
    )


DEFAULT_STRATEGIES: tuple[StrategyFn, ...] = (
    match_exact,
    match_substring,
    match_word_overlap,
    match_fuzzy,
)


class ClientResolver:
    """Resolves client text against one registry snapshot.

    Candidate names are normalized once at construction; resolve() is a pure
    function of its input for the resolver's lifetime.
    """

    def __init__(
        self,
        clients: Sequence[CanonicalClient],
        rules: MatchingRules | None = None,
        strategies: Sequence[StrategyFn] = DEFAULT_STRATEGIES,
    ) -> None:
        self.rules = rules or MatchingRules()
        self.strategies = tuple(strategies)
        self.clients = tuple(clients)
        self.candidate_names = tuple(c.display_name for c in self.clients)
        normalized = [Candidate(c, normalize_client_name(c.display_name, self.rules)) for c in self.clients]
        # a name that normalizes to nothing would be a substring of every input
        self.candidates = tuple(c for c in normalized if c.normalized)
        skipped = len(normalized) - len(self.candidates)
        if skipped:
            logger.warning("ignoring %d registry client(s) with blank display names", skipped)

    def resolve(self, client_text: str) -> MatchResult:
        text = normalize_client_name(client_text, self.rules)
        if not text:
            return MatchResult.unmatched("Empty client name", self.candidate_names)

        for strategy in self.strategies:
            result = strategy(text, self.candidates, self.rules)
            if result is not None:
                logger.debug(
                    "client %r -> %s (%s)",
                    client_text,
                    result.matched_client.id if result.matched_client else None,
                    result.strategy.value,
                )
                return result

        available = ", ".join(self.candidate_names)
        return MatchResult.unmatched(
            f"No match found. Available clients: {available}", self.candidate_names
        )
