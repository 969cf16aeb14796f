from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml

"""Import configuration (config/import.yml).

    source_directory: ./uploads        # required; scanned when no files are given
    monthly_orders_table: monthly_orders
    encoding: cp1252                   # omit to detect per file
    page_size: 1000                    # execute_values page size
    shipping_cost: 5.9                 # flat per product with sales (margins)
    timezone: Europe/Rome              # default --month, error log file name
    database: {host: ..., port: ..., user: ..., password: ..., database: ..., dsn: ...}

The file is checked against the bundled config_schema.json before any value
is used, so unknown keys and wrong types fail early with every problem listed.
"""

__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "ImportConfig",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Fallback connection settings; DATABASE_URL / PG* variables win."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    source_directory: str
    monthly_orders_table: str = "monthly_orders"
    encoding: str | None = None
    page_size: int = 1000
    shipping_cost: float = 0.0
    timezone: str = "UTC"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    @property
    def source_path(self) -> Path:
        return Path(self.source_directory)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache(maxsize=1)
def _schema_validator() -> jsonschema.Draft7Validator:
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    return jsonschema.Draft7Validator(schema)


def _check(data: dict[str, Any]) -> None:
    """Raise ConfigError listing every schema violation as ``path: message``."""
    errors = sorted(_schema_validator().iter_errors(data), key=lambda e: list(e.absolute_path))
    if not errors:
        return
    problems = []
    for err in errors:
        where = ".".join(str(p) for p in err.absolute_path)
        problems.append(f"{where}: {err.message}" if where else err.message)
    raise ConfigError("config validation failed: " + "; ".join(problems))


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    """Read, validate and materialize the import configuration.

    Raises:
        ConfigError: Missing file, YAML syntax error, or schema violation
    """
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top-level mapping expected")

    _check(data)
    tz_name = data.get("timezone", "UTC")
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"config validation failed: timezone: unknown time zone {tz_name!r}") from e

    values = dict(data)
    database = DatabaseConfig(**(values.pop("database", None) or {}))
    if "shipping_cost" in values:
        values["shipping_cost"] = float(values["shipping_cost"])
    return ImportConfig(**values, database=database)
