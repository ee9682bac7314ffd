from __future__ import annotations

import json

import jsonschema
import pytest

from calendar_reconcile.logging.error_log import ErrorRecord

"""Error log JSON Lines record contract."""

ERROR_LOG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "file", "row", "error_type", "message"],
    "properties": {
        "timestamp": {"type": "string", "pattern": "Z$"},
        "file": {"type": "string"},
        "row": {"type": "integer", "minimum": -1},
        "error_type": {"type": "string", "pattern": "^[A-Z][A-Z_]*$"},
        "message": {"type": "string"},
    },
}


@pytest.mark.parametrize(
    ("row", "error_type"),
    [(2, "CLIENT_UNRESOLVED"), (3, "DUPLICATE_ENTRY"), (4, "UNPARSEABLE_DATE"), (-1, "SCHEMA_ERROR")],
)
def test_error_records_validate(row, error_type):
    record = json.loads(ErrorRecord.create("upload.xlsx", row, error_type, "diagnostic").to_json_line())
    jsonschema.validate(record, ERROR_LOG_SCHEMA)


def test_error_log_schema_rejects_extra_key():
    record = {
        "timestamp": "2024-12-09T10:12:33Z",
        "file": "upload.xlsx",
        "row": 2,
        "error_type": "DUPLICATE_ENTRY",
        "message": "already scheduled in the calendar",
        "extra": "not allowed",
    }
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(record, ERROR_LOG_SCHEMA)
