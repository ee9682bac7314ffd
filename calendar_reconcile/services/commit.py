from __future__ import annotations

import logging
from datetime import UTC, datetime

from calendar_reconcile.models.client import NewCalendarEntry
from calendar_reconcile.models.reconciled_row import Classification, ReconciledRow
from calendar_reconcile.models.reconciliation_report import CommitResult, ReconciliationReport
from calendar_reconcile.services.collaborators import EntryStore

"""Commit executor: persist the Valid rows of a reviewed report.

Exactly one insert call per commit. The store either takes the whole batch or
raises; a failure is reported as CommitError and nothing is assumed written.
"""

logger = logging.getLogger(__name__)


class CommitError(Exception):
    pass


def build_entries(rows: tuple[ReconciledRow, ...], operator_id: str) -> list[NewCalendarEntry]:
    entries: list[NewCalendarEntry] = []
    for r in rows:
        if r.classification is not Classification.VALID or r.row is None or r.resolved_client_id is None:
            raise CommitError(f"row {r.row_number} is not a Valid row and cannot be committed")
        entries.append(
            NewCalendarEntry(
                date=r.row.date,
                client_id=r.resolved_client_id,
                post_type=r.row.post_type,
                hashtags=r.row.hashtags,
                priority=r.row.priority.value,
                operator_id=operator_id,
            )
        )
    return entries


def commit_valid_rows(
    report: ReconciliationReport, operator_id: str, store: EntryStore
) -> CommitResult:
    """Insert ``report.valid`` as one batch tagged with ``operator_id``.

    Raises:
        CommitError: missing operator, non-Valid row in the batch, or insert failure
    """
    if not operator_id or not operator_id.strip():
        raise CommitError("operator identity is required to commit")

    skipped_dup = len(report.duplicates)
    skipped_unresolved = len(report.unresolved)
    if not report.valid:
        logger.warning("%s: no valid entries to import", report.file_name)
        return CommitResult(0, skipped_dup, skipped_unresolved)

    entries = build_entries(report.valid, operator_id.strip())
    start = datetime.now(UTC)
    try:
        store.insert_entries(entries)
    except Exception as e:
        raise CommitError(f"insert of {len(entries)} entries failed: {e}") from e
    elapsed = (datetime.now(UTC) - start).total_seconds()

    logger.info(
        "%s: committed %d entries for operator %s", report.file_name, len(entries), operator_id
    )
    return CommitResult(
        inserted_rows=len(entries),
        skipped_duplicates=skipped_dup,
        skipped_unresolved=skipped_unresolved,
        elapsed_seconds=elapsed,
    )
