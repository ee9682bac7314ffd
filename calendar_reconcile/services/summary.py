from __future__ import annotations

from calendar_reconcile.models.reconciled_row import ReconciledRow
from calendar_reconcile.models.reconciliation_report import CommitResult, ReconciliationReport

"""SUMMARY line and review table rendering for the CLI.

Summary lines are ``key=value`` pairs so scripts can grep them:

SUMMARY file={name} rows={total} valid={n} duplicate={n} unresolved={n} elapsed_sec={s}
SUMMARY committed={n} skipped_duplicates={n} skipped_unresolved={n} elapsed_sec={s}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(report: ReconciliationReport) -> str:
    """Render the SUMMARY line for a reconciliation run.

    >>> from calendar_reconcile.models.reconciliation_report import ReconciliationReport
    >>> render_summary_line(ReconciliationReport("up.xlsx", (), (), (), 0, elapsed_seconds=2.0))
    'SUMMARY file=up.xlsx rows=0 valid=0 duplicate=0 unresolved=0 elapsed_sec=2'
    """
    c = report.counts
    return (
        f"SUMMARY file={report.file_name} "
        f"rows={c['total']} "
        f"valid={c['valid']} "
        f"duplicate={c['duplicate']} "
        f"unresolved={c['unresolved']} "
        f"elapsed_sec={_format_seconds(report.elapsed_seconds)}"
    )


def render_commit_line(result: CommitResult) -> str:
    return (
        f"SUMMARY committed={result.inserted_rows} "
        f"skipped_duplicates={result.skipped_duplicates} "
        f"skipped_unresolved={result.skipped_unresolved} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )


def _describe(r: ReconciledRow) -> str:
    if r.row is None:
        cells = ", ".join(f"{k}={v}" for k, v in r.raw_cells.items())
        return f"row {r.row_number}: [{cells}]"
    client = r.match.matched_client.display_name if r.match.matched_client else r.row.client_raw_text
    return (
        f"row {r.row_number}: {r.row.date.isoformat()} {client} "
        f"{r.row.post_type} priority={r.row.priority.value}"
    )


def render_review_lines(report: ReconciliationReport) -> list[str]:
    """Plain-text review table, one line per row, grouped by classification."""
    lines = [f"VALID ({len(report.valid)})"]
    for r in report.valid:
        lines.append(f"  {_describe(r)} [{r.match.strategy.value}: {r.match.diagnostic_text}]")
    lines.append(f"DUPLICATE ({len(report.duplicates)})")
    for r in report.duplicates:
        lines.append(f"  {_describe(r)} - {r.reason}")
    lines.append(f"UNRESOLVED ({len(report.unresolved)})")
    for r in report.unresolved:
        lines.append(f"  {_describe(r)} - {r.reason}")
    return lines
