from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any

from calendar_reconcile.models.reconciled_row import ReconciledRow

"""Aggregated results of a reconciliation run and of its commit."""

__all__ = [
    "ReconciliationReport",
    "CommitResult",
]


@dataclass(frozen=True)
class ReconciliationReport:
    """Partitioned rows of one upload, in original order within each list."""
    file_name: str
    valid: tuple[ReconciledRow, ...]
    duplicates: tuple[ReconciledRow, ...]
    unresolved: tuple[ReconciledRow, ...]
    total_rows: int
    period_start: date | None = None
    period_end: date | None = None
    elapsed_seconds: float = 0.0

    @property
    def counts(self) -> dict[str, int]:
        return {
            "total": self.total_rows,
            "valid": len(self.valid),
            "duplicate": len(self.duplicates),
            "unresolved": len(self.unresolved),
        }

    @property
    def all_valid(self) -> bool:
        return not self.duplicates and not self.unresolved

    def to_review_payload(self) -> dict[str, Any]:
        return {
            "validRows": [r.to_review_dict() for r in self.valid],
            "duplicateRows": [r.to_review_dict() for r in self.duplicates],
            "unresolvedRows": [r.to_review_dict() for r in self.unresolved],
            "summary": self.counts,
        }


@dataclass(frozen=True)
class CommitResult:
    inserted_rows: int
    skipped_duplicates: int
    skipped_unresolved: int
    elapsed_seconds: float = 0.0
