from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from calendar_reconcile.models.reconciled_row import Classification, ReconciledRow
from calendar_reconcile.models.reconciliation_report import ReconciliationReport


class PartitionError(Exception):
    """Raised when classified rows do not account for every input row."""


def partition(
    rows: Sequence[ReconciledRow],
    total_rows: int,
    file_name: str,
    period: tuple[date, date] | None = None,
    elapsed_seconds: float = 0.0,
) -> ReconciliationReport:
    """Split reconciled rows into Valid / Duplicate / Unresolved, keeping order.

    Raises:
        PartitionError: if the lists do not add up to ``total_rows``
    """
    buckets: dict[Classification, list[ReconciledRow]] = {c: [] for c in Classification}
    for r in rows:
        buckets[r.classification].append(r)

    accounted = sum(len(b) for b in buckets.values())
    if accounted != total_rows:
        raise PartitionError(
            f"{file_name}: {accounted} reconciled rows for {total_rows} uploaded rows"
        )

    return ReconciliationReport(
        file_name=file_name,
        valid=tuple(buckets[Classification.VALID]),
        duplicates=tuple(buckets[Classification.DUPLICATE]),
        unresolved=tuple(buckets[Classification.UNRESOLVED]),
        total_rows=total_rows,
        period_start=period[0] if period else None,
        period_end=period[1] if period else None,
        elapsed_seconds=elapsed_seconds,
    )
