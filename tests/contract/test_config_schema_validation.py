from __future__ import annotations

import json

import jsonschema
import pytest

from campaign_tracker.config.loader import SCHEMA_PATH

"""Bundled config schema contract (config/import.yml)."""


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_schema_is_valid_draft7(schema):
    jsonschema.Draft7Validator.check_schema(schema)


def test_minimal_config_valid(schema):
    jsonschema.validate({"source_directory": "./data"}, schema)


def test_full_config_valid(schema):
    jsonschema.validate(
        {
            "source_directory": "./data",
            "monthly_orders_table": "monthly_orders_2025",
            "encoding": None,
            "page_size": 500,
            "shipping_cost": 5.9,
            "timezone": "Europe/Rome",
            "database": {"dsn": "postgresql://u@h/db", "port": None},
        },
        schema,
    )


@pytest.mark.parametrize(
    "doc",
    [
        {},
        {"source_directory": ""},
        {"source_directory": "./data", "page_size": "10"},
        {"source_directory": "./data", "monthly_orders_table": "1orders"},
        {"source_directory": "./data", "sheet_mappings": {}},
        {"source_directory": "./data", "database": {"port": "5432"}},
    ],
)
def test_invalid_configs_rejected(schema, doc):
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(doc, schema)
