from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from calendar_reconcile.db.batch_insert import BatchInsertError, BatchMetrics, batch_insert
from calendar_reconcile.models.client import CanonicalClient, ExistingEntry, NewCalendarEntry

"""PostgreSQL-backed client registry and calendar entry store.

Tables (owned by the portal backend):
    clients(id, company_name, deleted_at, ...)
    calendar_entries(id, date, client, post_type, post_content, hashtags,
                     campaign_priority, user_id, ...)

calendar_entries.client holds the client id, except on legacy entries that
stored the company name. Existing entries are mapped back to ids through the
active registry; values it does not know are kept as stored.
"""

logger = logging.getLogger(__name__)

CLIENTS_SQL = (
    "SELECT id, company_name FROM clients "
    "WHERE deleted_at IS NULL "
    "ORDER BY company_name, id"
)
EXISTING_ENTRIES_SQL = (
    "SELECT date, post_type, client FROM calendar_entries "
    "WHERE date >= %s AND date <= %s"
)
ENTRY_TABLE = "calendar_entries"
ENTRY_COLUMNS = (
    "date",
    "client",
    "post_type",
    "post_content",
    "hashtags",
    "campaign_priority",
    "user_id",
)


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


class CalendarStore:
    """Implements ClientRegistry and EntryStore over one psycopg2 connection."""

    def __init__(self, conn: Any, page_size: int = 1000) -> None:
        self.conn = conn
        self.page_size = page_size
        self._clients: list[CanonicalClient] | None = None

    def fetch_active_clients(self) -> list[CanonicalClient]:
        with self.conn.cursor() as cur:
            cur.execute(CLIENTS_SQL)
            rows = cur.fetchall()
        # registry rows without a name cannot be matched
        self._clients = [CanonicalClient(id=str(r[0]), display_name=r[1]) for r in rows if r[1]]
        return self._clients

    def _client_ids_by_value(self) -> dict[str, str]:
        """Stored client value -> client id: ids, then names, then lowercased names.

        The first client in registry order wins a shared name.
        """
        clients = self._clients if self._clients is not None else self.fetch_active_clients()
        lookup: dict[str, str] = {}
        for c in clients:
            lookup.setdefault(c.id, c.id)
        for c in clients:
            lookup.setdefault(c.display_name.strip(), c.id)
        for c in clients:
            lookup.setdefault(c.display_name.strip().lower(), c.id)
        return lookup

    def fetch_existing_entries(self, start: date, end: date) -> list[ExistingEntry]:
        with self.conn.cursor() as cur:
            cur.execute(EXISTING_ENTRIES_SQL, (start, end))
            rows = cur.fetchall()
        lookup = self._client_ids_by_value()

        def client_id(value: Any) -> str:
            text = str(value).strip()
            found = lookup.get(text) or lookup.get(text.lower())
            if found is None:
                logger.debug("existing entry client %r is not in the active registry", text)
                return text
            return found

        return [
            ExistingEntry(date=_as_date(r[0]), post_type=str(r[1] or ""), client_id=client_id(r[2]))
            for r in rows
            if r[2] is not None
        ]


    def insert_entries(self, entries: Sequence[NewCalendarEntry]) -> None:
        """Insert all entries in one transaction; rollback and raise on failure."""
        rows = [
            (e.date, e.client_id, e.post_type, "", e.hashtags or "", e.priority, e.operator_id)
            for e in entries
        ]

        def on_metrics(m: BatchMetrics) -> None:
            logger.debug("batch insert size=%d elapsed=%.3fs", m.batch_size, m.elapsed_seconds)

        cur = self.conn.cursor()
        try:
            cur.execute("BEGIN")
            batch_insert(
                cur,
                ENTRY_TABLE,
                ENTRY_COLUMNS,
                rows,
                page_size=self.page_size,
                metrics_callback=on_metrics,
            )
            cur.execute("COMMIT")
        except BatchInsertError:
            cur.execute("ROLLBACK")
            raise
        except Exception as e:
            cur.execute("ROLLBACK")
            raise BatchInsertError(str(e)) from e
        finally:
            cur.close()
