from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from calendar_reconcile.models.client import ExistingEntry

"""Composite-key duplicate detection.

A calendar entry is identified by (date, post type, resolved client id). The
index of persisted keys is fetched once per run and frozen: inserts made by
other operators while a run is in review are not seen, so such a row can still
come out Valid. Rows of the same upload are checked against the keys claimed
by earlier rows through an immutable BatchKeys value that the caller threads
through the run.
"""

__all__ = [
    "CompositeKey",
    "ExistingEntryIndex",
    "BatchKeys",
    "DuplicateCheck",
    "composite_key",
    "check_duplicate",
]

CompositeKey = tuple[date, str, str]


def composite_key(entry_date: date, post_type: str, client_id: str) -> CompositeKey:
    return (entry_date, post_type.strip(), str(client_id))


@dataclass(frozen=True)
class ExistingEntryIndex:
    """Frozen snapshot of persisted composite keys for the target period."""
    keys: frozenset[CompositeKey] = frozenset()

    @classmethod
    def from_entries(cls, entries: Iterable[ExistingEntry]) -> ExistingEntryIndex:
        return cls(
            frozenset(composite_key(e.date, e.post_type, e.client_id) for e in entries)
        )

    def __contains__(self, key: object) -> bool:
        return key in self.keys

    def __len__(self) -> int:
        return len(self.keys)


@dataclass(frozen=True)
class BatchKeys:
    """Keys claimed so far in this upload, with the row that claimed each.

    claim() returns a new value and never changes what an existing value
    reports. Values claimed one after another share one append-only log
    (key -> (row, sequence)); a value sees only entries below its own size, so
    a run costs O(1) per row. Claiming from an older value copies its visible
    entries first.
    """
    _log: dict[CompositeKey, tuple[int, int]] = field(default_factory=dict, repr=False)
    _size: int = 0

    @property
    def keys(self) -> frozenset[CompositeKey]:
        return frozenset(k for k, (_, seq) in self._log.items() if seq < self._size)

    def __len__(self) -> int:
        return self._size

    def claimed_by(self, key: CompositeKey) -> int | None:
        entry = self._log.get(key)
        if entry is None or entry[1] >= self._size:
            return None
        return entry[0]

    def claim(self, key: CompositeKey, row_number: int) -> BatchKeys:
        if self.claimed_by(key) is not None:
            return self
        log = self._log
        if len(log) != self._size:
            # not the latest value of its log
            log = {k: v for k, v in log.items() if v[1] < self._size}
        log[key] = (row_number, self._size)
        return BatchKeys(log, self._size + 1)


@dataclass(frozen=True)
class DuplicateCheck:
    is_duplicate: bool
    reason: str
    batch: BatchKeys


def check_duplicate(
    key: CompositeKey,
    row_number: int,
    index: ExistingEntryIndex,
    batch: BatchKeys,
) -> DuplicateCheck:
    """Classify one key; the returned batch includes the key when it was new."""
    if key in index:
        return DuplicateCheck(True, "already scheduled in the calendar", batch)
    first_row = batch.claimed_by(key)
    if first_row is not None:
        return DuplicateCheck(True, f"same entry as row {first_row} in this upload", batch)
    return DuplicateCheck(False, "", batch.claim(key, row_number))
