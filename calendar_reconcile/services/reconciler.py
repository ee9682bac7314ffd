from __future__ import annotations

import calendar
import logging
from collections.abc import Sequence
from datetime import UTC, date, datetime
from pathlib import Path

from calendar_reconcile.excel.reader import RawRow, UploadSheet, read_upload
from calendar_reconcile.excel.schema import ResolvedHeaders, SchemaError, validate_headers
from calendar_reconcile.logging.error_log import ErrorLogBuffer
from calendar_reconcile.models.config_models import ReconcileConfig
from calendar_reconcile.models.error_record import FILE_LEVEL_ROW, ErrorRecord
from calendar_reconcile.models.match_result import MatchResult
from calendar_reconcile.models.normalized_row import NormalizedRow, Priority
from calendar_reconcile.models.reconciled_row import Classification, ReconciledRow
from calendar_reconcile.models.reconciliation_report import ReconciliationReport
from calendar_reconcile.services.client_resolver import ClientResolver
from calendar_reconcile.services.collaborators import ClientRegistry, EntryStore
from calendar_reconcile.services.duplicate_detector import (
    BatchKeys,
    ExistingEntryIndex,
    check_duplicate,
    composite_key,
)
from calendar_reconcile.services.partitioner import partition
from calendar_reconcile.services.progress import RowProgress
from calendar_reconcile.services.row_normalizer import RowParseError, normalize_row

"""Reconciliation run orchestration.

One run takes one upload from schema validation to the partitioned report:

1. read the upload and validate its header row (fatal on failure)
2. normalize every row; rows that fail become Unresolved, the run goes on
3. fetch the client registry and the persisted entries of the target period
   once (fatal on collaborator failure)
4. resolve each row's client, then check its composite key for duplicates
5. partition into Valid / Duplicate / Unresolved

Nothing is written to the calendar here; see services.commit.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ReconciliationError",
    "CollaboratorError",
    "month_period",
    "resolve_period",
    "reconcile_sheet",
    "reconcile_upload",
]


class ReconciliationError(Exception):
    """Base exception for fatal run errors."""
    pass


class CollaboratorError(ReconciliationError):
    """Client registry or existing-entries lookup failed."""
    pass


def month_period(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def resolve_period(
    rows: Sequence[NormalizedRow],
    override: tuple[date, date] | None = None,
    today: date | None = None,
) -> tuple[date, date]:
    """Target period for the existing-entries lookup.

    An explicit override wins; otherwise the span of the upload's dates; with
    no parsed dates at all, the current month.
    """
    if override is not None:
        return override
    if rows:
        dates = [r.date for r in rows]
        return min(dates), max(dates)
    today = today or datetime.now(UTC).date()
    return month_period(today.year, today.month)


def _unresolved(
    raw: RawRow,
    row: NormalizedRow | None,
    match: MatchResult,
    reason: str,
) -> ReconciledRow:
    return ReconciledRow(
        row_number=raw.row_number,
        row=row,
        match=match,
        classification=Classification.UNRESOLVED,
        reason=reason,
        raw_cells=dict(raw.cells) if row is None else {},
    )


def reconcile_sheet(
    sheet: UploadSheet,
    headers: ResolvedHeaders,
    *,
    registry: ClientRegistry,
    entries: EntryStore,
    config: ReconcileConfig,
    period: tuple[date, date] | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ReconciliationReport:
    """Reconcile the rows of an already validated upload.

    Raises:
        CollaboratorError: registry or existing-entries lookup failed
    """
    start_time = datetime.now(UTC)
    file_name = sheet.file_name
    default_priority = Priority.parse(config.default_priority) or Priority.MEDIUM

    def record(row_number: int, error_type: str, message: str) -> None:
        if error_log is not None:
            error_log.append(ErrorRecord.create(file_name, row_number, error_type, message))

    # Normalize first so the target period is known before the lookups
    parsed: list[tuple[RawRow, NormalizedRow | RowParseError]] = []
    for raw in sheet.rows:
        try:
            parsed.append((raw, normalize_row(raw, headers, config.date_formats, default_priority)))
        except RowParseError as e:
            logger.debug("%s: %s", file_name, e)
            parsed.append((raw, e))

    normalized = [p for _, p in parsed if isinstance(p, NormalizedRow)]

    try:
        clients = registry.fetch_active_clients()
    except Exception as e:
        record(FILE_LEVEL_ROW, "CLIENT_REGISTRY_ERROR", str(e))
        raise CollaboratorError(f"client registry lookup failed: {e}") from e
    resolver = ClientResolver(clients, config.matching)

    target_period = resolve_period(normalized, period)
    index = ExistingEntryIndex()
    if normalized:
        try:
            existing = entries.fetch_existing_entries(*target_period)
        except Exception as e:
            record(FILE_LEVEL_ROW, "EXISTING_ENTRIES_ERROR", str(e))
            raise CollaboratorError(f"existing entries lookup failed: {e}") from e
        index = ExistingEntryIndex.from_entries(existing)

    logger.info(
        "file=%s rows=%d clients=%d period=%s..%s existing_entries=%d",
        file_name,
        len(sheet.rows),
        len(clients),
        target_period[0].isoformat(),
        target_period[1].isoformat(),
        len(index),
    )

    reconciled: list[ReconciledRow] = []
    batch = BatchKeys()
    counts = {"valid": 0, "dup": 0, "unresolved": 0}
    with RowProgress(len(parsed)) as progress:
        for raw, outcome in parsed:
            if isinstance(outcome, RowParseError):
                unmatched = MatchResult.unmatched(outcome.reason, resolver.candidate_names)
                reconciled.append(_unresolved(raw, None, unmatched, outcome.reason))
                record(raw.row_number, outcome.kind, outcome.reason)
                counts["unresolved"] += 1
                progress.advance(**counts)
                continue

            match = resolver.resolve(outcome.client_raw_text)
            if match.matched_client is None:
                reconciled.append(_unresolved(raw, outcome, match, match.diagnostic_text))
                record(
                    raw.row_number,
                    "CLIENT_UNRESOLVED",
                    f"{outcome.client_raw_text!r}: {match.diagnostic_text}",
                )
                counts["unresolved"] += 1
                progress.advance(**counts)
                continue

            client_id = match.matched_client.id
            key = composite_key(outcome.date, outcome.post_type, client_id)
            check = check_duplicate(key, raw.row_number, index, batch)
            batch = check.batch
            if check.is_duplicate:
                classification = Classification.DUPLICATE
                record(raw.row_number, "DUPLICATE_ENTRY", check.reason)
                counts["dup"] += 1
            else:
                classification = Classification.VALID
                counts["valid"] += 1
            reconciled.append(
                ReconciledRow(
                    row_number=raw.row_number,
                    row=outcome,
                    match=match,
                    classification=classification,
                    resolved_client_id=client_id,
                    reason=check.reason,
                )
            )
            progress.advance(**counts)

    elapsed = (datetime.now(UTC) - start_time).total_seconds()
    return partition(
        reconciled,
        total_rows=len(sheet.rows),
        file_name=file_name,
        period=target_period,
        elapsed_seconds=elapsed,
    )


def reconcile_upload(
    source: Path | bytes,
    *,
    registry: ClientRegistry,
    entries: EntryStore,
    config: ReconcileConfig | None = None,
    file_name: str | None = None,
    period: tuple[date, date] | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ReconciliationReport:
    """Run one full reconciliation over an uploaded file.

    Args:
        source: path of the upload or its raw bytes
        registry: client registry collaborator
        entries: existing-entries collaborator
        config: run configuration (defaults when None)
        file_name: original file name; required with bytes to pick the parser
        period: explicit target period (start, end), inclusive
        error_log: receives one ErrorRecord per non-Valid row

    Raises:
        UploadReadError: the upload cannot be read
        SchemaError: required column families are missing
        CollaboratorError: a lookup failed
    """
    config = config or ReconcileConfig()
    sheet = read_upload(source, file_name)
    try:
        headers = validate_headers(sheet.columns, config.column_aliases)
    except SchemaError as e:
        if error_log is not None:
            error_log.append(
                ErrorRecord.create(sheet.file_name, FILE_LEVEL_ROW, "SCHEMA_ERROR", str(e))
            )
        raise
    logger.debug("file=%s resolved headers=%s", sheet.file_name, dict(headers.columns))
    return reconcile_sheet(
        sheet,
        headers,
        registry=registry,
        entries=entries,
        config=config,
        period=period,
        error_log=error_log,
    )
