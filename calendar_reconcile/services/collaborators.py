from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Protocol

from calendar_reconcile.models.client import CanonicalClient, ExistingEntry, NewCalendarEntry

"""External collaborators consumed by the reconciler and the commit executor.

db.store.CalendarStore implements all three against PostgreSQL; tests pass
small in-memory fakes.
"""


class ClientRegistry(Protocol):
    def fetch_active_clients(self) -> list[CanonicalClient]:
        """Active (not deleted) clients, in registry order."""
        ...


class EntryStore(Protocol):
    def fetch_existing_entries(self, start: date, end: date) -> list[ExistingEntry]:
        """Persisted calendar entries with start <= date <= end."""
        ...

    def insert_entries(self, entries: Sequence[NewCalendarEntry]) -> None:
        """Insert all entries or raise; no partial success."""
        ...
