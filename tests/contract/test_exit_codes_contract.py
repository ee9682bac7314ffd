from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import date
from pathlib import Path

import pytest

import calendar_reconcile.cli.__main__ as cli_module
from calendar_reconcile.cli import main as cli_main
from calendar_reconcile.logging.init import reset_logging

"""CLI exit code contract.

0  every row is Valid (and committed with --commit)
1  fatal: config, unreadable upload, missing columns, lookup or commit failure
2  the run completed but some rows are Duplicate or Unresolved
"""

VALID_ROW = ["12/09/2024", "Acme Inc.", "Image", "#a", "Yes", "High"]
UNKNOWN_ROW = ["12/09/2024", "Nonexistent Co", "Image", None, None, None]


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def store(make_store, monkeypatch):
    s = make_store()

    @contextmanager
    def fake_session(cfg):
        yield s

    monkeypatch.setattr(cli_module, "_store_session", fake_session)
    return s


def test_all_valid_exit_zero(make_upload, store, capsys):
    path = make_upload([VALID_ROW])
    code = cli_main(["review", str(path), "--operator", "op-1"])
    out = capsys.readouterr().out
    assert code == 0
    assert "VALID (1)" in out
    assert "SUMMARY file=upload.xlsx rows=1 valid=1 duplicate=0 unresolved=0 elapsed_sec=" in out
    assert store.insert_calls == 0


def test_commit_flag_inserts_valid_rows(make_upload, store, capsys):
    path = make_upload([VALID_ROW])
    code = cli_main(["review", str(path), "--operator", "op-1", "--commit"])
    out = capsys.readouterr().out
    assert code == 0
    assert store.insert_calls == 1
    assert store.inserted[0].operator_id == "op-1"
    assert "SUMMARY committed=1 skipped_duplicates=0 skipped_unresolved=0" in out


def test_rows_needing_review_exit_two(make_upload, store, temp_workdir: Path, capsys):
    path = make_upload([VALID_ROW, VALID_ROW, UNKNOWN_ROW])
    code = cli_main(["review", str(path), "--operator", "op-1", "--commit"])
    out = capsys.readouterr().out
    assert code == 2
    assert "DUPLICATE (1)" in out
    assert "UNRESOLVED (1)" in out
    # valid rows are still committed
    assert len(store.inserted) == 1
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    kinds = [json.loads(line)["error_type"] for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert kinds == ["DUPLICATE_ENTRY", "CLIENT_UNRESOLVED"]


def test_missing_upload_exit_one(temp_workdir: Path, store, capsys):
    code = cli_main(["review", str(temp_workdir / "nope.xlsx"), "--operator", "op-1"])
    assert code == 1
    assert "ERROR upload not found" in capsys.readouterr().out


def test_missing_columns_exit_one(make_upload, store, temp_workdir: Path, capsys):
    path = make_upload([["12/09/2024", "Acme"]], header=["Date", "Client"])
    code = cli_main(["review", str(path), "--operator", "op-1"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR upload: missing required columns:" in out
    assert store.registry_calls == 0
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_unreadable_upload_exit_one(temp_workdir: Path, store, capsys):
    bad = temp_workdir / "data" / "broken.xlsx"
    bad.write_bytes(b"not a workbook")
    assert cli_main(["review", str(bad), "--operator", "op-1"]) == 1
    assert "ERROR upload: cannot read upload" in capsys.readouterr().out


def test_lookup_failure_exit_one(make_upload, make_store, monkeypatch, capsys):
    failing = make_store(registry_error=ConnectionError("registry down"))

    @contextmanager
    def fake_session(cfg):
        yield failing

    monkeypatch.setattr(cli_module, "_store_session", fake_session)
    path = make_upload([VALID_ROW])
    assert cli_main(["review", str(path), "--operator", "op-1"]) == 1
    assert "ERROR lookup: client registry lookup failed: registry down" in capsys.readouterr().out


def test_commit_failure_exit_one(make_upload, make_store, monkeypatch, capsys):
    failing = make_store(insert_error=RuntimeError("disk full"))

    @contextmanager
    def fake_session(cfg):
        yield failing

    monkeypatch.setattr(cli_module, "_store_session", fake_session)
    path = make_upload([VALID_ROW])
    assert cli_main(["review", str(path), "--operator", "op-1", "--commit"]) == 1
    assert "ERROR commit: insert of 1 entries failed: disk full" in capsys.readouterr().out


def test_invalid_config_exit_one(make_upload, store, temp_workdir: Path, capsys):
    cfg = temp_workdir / "config" / "bad.yml"
    cfg.write_text("matching:\n  fuzzy_threshold: 2\n", encoding="utf-8")
    path = make_upload([VALID_ROW])
    code = cli_main(["--config", str(cfg), "review", str(path), "--operator", "op-1"])
    assert code == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_default_config_file_is_picked_up(make_upload, store, write_config, capsys):
    # sample config only accepts Client / Customer for the client column
    path = make_upload([["12/09/2024", "Acme Inc.", "Image", None, None, None]],
                       header=["Date", "Customer", "Post type", "Hastags", "Campaign", "priority"])
    assert cli_main(["review", str(path), "--operator", "op-1"]) == 0


def test_period_option(make_upload, store):
    path = make_upload([VALID_ROW])
    assert cli_main(["review", str(path), "--operator", "op-1", "--period", "2024-12"]) == 0
    assert store.lookups == [(date(2024, 12, 1), date(2024, 12, 31))]


def test_bad_period_is_usage_error(make_upload, store):
    path = make_upload([VALID_ROW])
    with pytest.raises(SystemExit) as ei:
        cli_main(["review", str(path), "--operator", "op-1", "--period", "December"])
    assert ei.value.code == 2


def test_json_payload(make_upload, store, temp_workdir: Path):
    path = make_upload([VALID_ROW, UNKNOWN_ROW])
    out = temp_workdir / "review.json"
    assert cli_main(["review", str(path), "--operator", "op-1", "--json", str(out)]) == 2
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["summary"] == {"total": 2, "valid": 1, "duplicate": 0, "unresolved": 1}
    assert payload["validRows"][0]["client"] == "Acme Inc."
    assert payload["unresolvedRows"][0]["candidates"] == ["Acme Inc.", "Blue Bottle Restaurant", "Starbucks"]


def test_template_and_inspect(temp_workdir: Path, capsys):
    out = temp_workdir / "calendar_template.xlsx"
    assert cli_main(["template", str(out)]) == 0
    assert out.exists()
    assert cli_main(["inspect", str(out)]) == 0
    printed = capsys.readouterr().out
    assert "FILE: calendar_template.xlsx" in printed
    assert "rows=2" in printed
    assert "row 2:" in printed
