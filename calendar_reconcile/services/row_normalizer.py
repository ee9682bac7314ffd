from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

import pandas as pd

from calendar_reconcile.excel.reader import RawRow
from calendar_reconcile.excel.schema import ResolvedHeaders
from calendar_reconcile.models.normalized_row import NormalizedRow, Priority

"""Row normalization: RawRow cells -> NormalizedRow.

Date cells are tried in order: native date values, the configured strptime
formats (MM/DD/YYYY then DD/MM/YYYY by default), then a generic parse through
pandas. A row that cannot be normalized raises RowParseError carrying its row
number; the reconciler turns it into an Unresolved row.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "RowParseError",
    "parse_flexible_date",
    "normalize_row",
]

CAMPAIGN_TRUE = {"yes", "y", "true", "1", "x"}


class RowParseError(Exception):
    """A single row could not be normalized."""

    EMPTY_CLIENT = "EMPTY_CLIENT"
    UNPARSEABLE_DATE = "UNPARSEABLE_DATE"
    MISSING_POST_TYPE = "MISSING_POST_TYPE"

    def __init__(self, row_number: int, kind: str, reason: str) -> None:
        super().__init__(f"row {row_number}: {reason}")
        self.row_number = row_number
        self.kind = kind
        self.reason = reason


def cell_text(value: Any) -> str:
    """Render a cell as trimmed text ('' for empty cells, 5.0 -> '5')."""
    if value is None:
        return ""
    if isinstance(value, float):
        if pd.isna(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def _is_calendar_text(text: str) -> bool:
    """Guard for the generic parse.

    pandas resolves relative keywords ("now", "today") to the run date and a
    bare year to January 1st; neither names a calendar day. Digit-only text is
    accepted only in the compact YYYYMMDD form.
    """
    if not any(ch.isdigit() for ch in text):
        return False
    if text.isdigit():
        return len(text) == 8
    return True


def parse_flexible_date(value: Any, formats: Sequence[str]) -> date | None:
    """Parse a date cell; the first successful pattern wins. None if nothing parses."""
    if value is None:
        return None
    # pd.Timestamp is a datetime subclass
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = cell_text(value)
    if not text:
        return None

    for fmt in formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    if not _is_calendar_text(text):
        return None
    parsed = pd.to_datetime(text, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def _parse_priority(text: str, default: Priority, row_number: int) -> Priority:
    if not text:
        return default
    priority = Priority.parse(text)
    if priority is None:
        logger.warning("row %d: unknown priority %r, using %s", row_number, text, default.value)
        return default
    return priority


def normalize_row(
    raw: RawRow,
    headers: ResolvedHeaders,
    date_formats: Sequence[str],
    default_priority: Priority = Priority.MEDIUM,
) -> NormalizedRow:
    """Coerce one RawRow into a NormalizedRow.

    Raises:
        RowParseError: empty client text, unparseable date or missing post type
    """
    cells = raw.cells

    client_text = cell_text(headers.cell(cells, "client"))
    if not client_text:
        raise RowParseError(raw.row_number, RowParseError.EMPTY_CLIENT, "client name is empty")

    parsed_date = parse_flexible_date(headers.cell(cells, "date"), date_formats)
    if parsed_date is None:
        raise RowParseError(raw.row_number, RowParseError.UNPARSEABLE_DATE, "unparseable date")

    post_type = cell_text(headers.cell(cells, "post_type"))
    if not post_type:
        raise RowParseError(raw.row_number, RowParseError.MISSING_POST_TYPE, "missing post type")

    hashtags = cell_text(headers.cell(cells, "hashtags")) or None
    priority = _parse_priority(
        cell_text(headers.cell(cells, "priority")), default_priority, raw.row_number
    )
    campaign = cell_text(headers.cell(cells, "campaign")).lower() in CAMPAIGN_TRUE

    return NormalizedRow(
        row_number=raw.row_number,
        date=parsed_date,
        client_raw_text=client_text,
        post_type=post_type,
        hashtags=hashtags,
        priority=priority,
        campaign_flag=campaign,
    )
