from __future__ import annotations

from dataclasses import dataclass
from datetime import date

"""Records owned by the portal backend and read by the reconciler."""

__all__ = [
    "CanonicalClient",
    "ExistingEntry",
    "NewCalendarEntry",
]


@dataclass(frozen=True)
class CanonicalClient:
    """Authoritative client record from the client registry (read-only here)."""
    id: str
    display_name: str


@dataclass(frozen=True)
class ExistingEntry:
    """Calendar entry already persisted for the target period."""
    date: date
    post_type: str
    client_id: str


@dataclass(frozen=True)
class NewCalendarEntry:
    """Insert payload for one Valid row, tagged with the initiating operator."""
    date: date
    client_id: str
    post_type: str
    hashtags: str | None
    priority: str
    operator_id: str
