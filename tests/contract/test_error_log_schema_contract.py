from __future__ import annotations

import json

import jsonschema
import pytest

from campaign_tracker.models.error_record import FILE_LEVEL_ROW, ErrorRecord

"""Error log JSON Lines record contract."""

ERROR_RECORD_SCHEMA = {
    "type": "object",
    "required": ["timestamp", "file", "row", "error_type", "message"],
    "additionalProperties": False,
    "properties": {
        "timestamp": {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$"},
        "file": {"type": "string"},
        "row": {"type": "integer", "minimum": -1},
        "error_type": {
            "type": "string",
            "enum": [
                "INSUFFICIENT_COLUMNS",
                "INVALID_ROW",
                "EMPTY_INPUT",
                "MISSING_COLUMNS",
                "NO_VALID_ROWS",
                "READ_ERROR",
                "DB_ERROR",
            ],
        },
        "message": {"type": "string"},
    },
}


@pytest.mark.parametrize(
    "row,error_type",
    [(3, "INVALID_ROW"), (1, "INSUFFICIENT_COLUMNS"), (FILE_LEVEL_ROW, "MISSING_COLUMNS"), (FILE_LEVEL_ROW, "DB_ERROR")],
)
def test_records_match_schema(row, error_type):
    rec = ErrorRecord.create("march.csv", row, error_type, "detail")
    jsonschema.validate(json.loads(rec.to_json_line()), ERROR_RECORD_SCHEMA)


def test_schema_rejects_extra_key():
    record = json.loads(ErrorRecord.create("march.csv", 1, "INVALID_ROW", "x").to_json_line())
    record["sheet"] = "not allowed"
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(record, ERROR_RECORD_SCHEMA)


def test_parser_error_types_are_in_contract():
    from campaign_tracker.csvimport import parser

    allowed = set(ERROR_RECORD_SCHEMA["properties"]["error_type"]["enum"])
    for cls in (parser.EmptyInputError, parser.MissingColumnsError, parser.NoValidRowsError):
        assert cls.error_type in allowed
    assert {parser.INSUFFICIENT_COLUMNS, parser.INVALID_ROW} <= allowed
