from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from calendar_reconcile.models.config_models import REQUIRED_FAMILIES

"""Header validation against the column alias table.

Runs once per upload before any row is touched. The alias table maps each
required field family to its accepted header spellings; the first declared
spelling present in the header wins. The outcome is a ResolvedHeaders value
that row normalization reads from, so header spellings are never looked at
again per row.
"""

__all__ = [
    "SchemaError",
    "ResolvedHeaders",
    "validate_headers",
]


class SchemaError(Exception):
    """Raised when required column families are missing from the header row."""

    def __init__(self, message: str, missing: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)


@dataclass(frozen=True)
class ResolvedHeaders:
    """Field family -> actual header text in this upload."""
    columns: Mapping[str, str]

    def header_for(self, family: str) -> str:
        return self.columns[family]

    def cell(self, cells: Mapping[str, Any], family: str) -> Any:
        return cells.get(self.columns[family])


def validate_headers(
    header: Sequence[str],
    alias_table: Mapping[str, Sequence[str]],
    required: Sequence[str] = REQUIRED_FAMILIES,
) -> ResolvedHeaders:
    """Resolve every required family to a header, or raise SchemaError.

    Header cells are compared after stripping surrounding whitespace.
    """
    if not any(h.strip() for h in header):
        raise SchemaError("upload has no header row", missing=required)

    present = {h.strip() for h in header if h.strip()}
    resolved: dict[str, str] = {}
    missing: list[str] = []
    for family in required:
        spellings = alias_table.get(family, ())
        found = next((s for s in spellings if s in present), None)
        if found is None:
            missing.append(family)
        else:
            resolved[family] = found

    if missing:
        expected = "; ".join(
            f"{family} ({' / '.join(alias_table.get(family, ()))})" for family in missing
        )
        raise SchemaError(f"missing required columns: {expected}", missing=missing)
    return ResolvedHeaders(columns=resolved)
