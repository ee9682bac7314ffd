from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from calendar_reconcile.models.match_result import MatchResult
from calendar_reconcile.models.normalized_row import NormalizedRow

"""ReconciledRow: the terminal per-row artifact shown to the operator pre-commit."""

__all__ = [
    "Classification",
    "ReconciledRow",
]


class Classification(Enum):
    VALID = "Valid"
    DUPLICATE = "Duplicate"
    UNRESOLVED = "Unresolved"


@dataclass(frozen=True)
class ReconciledRow:
    """One upload row with its match outcome and classification.

    ``row`` is None only for rows that failed normalization (bad date, empty
    client text, missing post type); those are always Unresolved and keep
    their original cells in ``raw_cells`` for display.
    """
    row_number: int
    row: NormalizedRow | None
    match: MatchResult
    classification: Classification
    resolved_client_id: str | None = None
    reason: str = ""  # duplicate reason or unresolved diagnostic
    raw_cells: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # matched_client is set iff the row is not Unresolved
        if (self.classification is Classification.UNRESOLVED) == self.match.matched:
            raise ValueError(
                f"row {self.row_number}: classification {self.classification.value} "
                f"inconsistent with match strategy {self.match.strategy.value}"
            )

    @property
    def composite_key(self) -> tuple[Any, str, str] | None:
        if self.row is None or self.resolved_client_id is None:
            return None
        return (self.row.date, self.row.post_type, self.resolved_client_id)

    def to_review_dict(self) -> dict[str, Any]:
        """Row shape used by the pre-commit review table."""
        out: dict[str, Any] = {"row": self.row_number}
        if self.row is not None:
            out.update(
                {
                    "date": self.row.date.isoformat(),
                    "clientText": self.row.client_raw_text,
                    "postType": self.row.post_type,
                    "hashtags": self.row.hashtags,
                    "priority": self.row.priority.value,
                    "campaign": self.row.campaign_flag,
                }
            )
        else:
            out.update({"date": None, "cells": dict(self.raw_cells)})

        client = self.match.matched_client
        if client is not None:
            out["client"] = client.display_name
            out["clientId"] = client.id
            out["matchStrategy"] = self.match.strategy.value
            out["matchDiagnostic"] = self.match.diagnostic_text

        if self.classification is Classification.DUPLICATE:
            out["reason"] = self.reason
        elif self.classification is Classification.UNRESOLVED:
            out["diagnostic"] = self.reason or self.match.diagnostic_text
            out["candidates"] = list(self.match.candidate_names)
        return out
