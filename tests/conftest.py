# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable, Sequence
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from calendar_reconcile.models.client import CanonicalClient, ExistingEntry, NewCalendarEntry

DEFAULT_HEADER = ["Date", "Client", "Post type", "Hastags", "Campaign", "priority"]


class FakeCalendarStore:
    """In-memory ClientRegistry + EntryStore."""

    def __init__(
        self,
        clients: Sequence[CanonicalClient],
        existing: Sequence[ExistingEntry] = (),
        insert_error: Exception | None = None,
        registry_error: Exception | None = None,
    ) -> None:
        self.clients = list(clients)
        self.existing = list(existing)
        self.insert_error = insert_error
        self.registry_error = registry_error
        self.inserted: list[NewCalendarEntry] = []
        self.insert_calls = 0
        self.registry_calls = 0
        self.lookups: list[tuple[date, date]] = []

    def fetch_active_clients(self) -> list[CanonicalClient]:
        self.registry_calls += 1
        if self.registry_error is not None:
            raise self.registry_error
        return list(self.clients)

    def fetch_existing_entries(self, start: date, end: date) -> list[ExistingEntry]:
        self.lookups.append((start, end))
        return [e for e in self.existing if start <= e.date <= end]

    def insert_entries(self, entries: Sequence[NewCalendarEntry]) -> None:
        self.insert_calls += 1
        if self.insert_error is not None:
            raise self.insert_error
        self.inserted.extend(entries)


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def clients() -> list[CanonicalClient]:
    return [
        CanonicalClient(id="c-acme", display_name="Acme Inc."),
        CanonicalClient(id="c-blue", display_name="Blue Bottle Restaurant"),
        CanonicalClient(id="c-star", display_name="Starbucks"),
    ]


@pytest.fixture()
def make_store(clients) -> Callable[..., FakeCalendarStore]:
    def _make(**kwargs: Any) -> FakeCalendarStore:
        kwargs.setdefault("clients", clients)
        return FakeCalendarStore(**kwargs)
    return _make


@pytest.fixture()
def make_upload(temp_workdir: Path) -> Callable[..., Path]:
    """Write a real .xlsx upload (header row 1, data from row 2)."""
    def _make(
        rows: list[list[object]],
        name: str = "upload.xlsx",
        header: list[str] | None = None,
    ) -> Path:
        path = temp_workdir / "data" / name
        df = pd.DataFrame(rows, columns=header or DEFAULT_HEADER)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Calendar Entries", index=False)
        return path
    return _make


@pytest.fixture()
def sample_config_yaml() -> str:
    return """column_aliases:
  client: ["Client", "Customer"]
matching:
  fuzzy_threshold: 0.8
  word_overlap_fraction: 0.5
  business_suffixes: [inc, llc, gmbh]
date_formats: ["%d/%m/%Y", "%m/%d/%Y"]
default_priority: Low
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: portal
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "reconcile.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
