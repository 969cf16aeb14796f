from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DatabaseConfig, ImportConfig

"""PostgreSQL connection lifecycle.

There is no module-level connection: connect() opens one connection per
`with` block, yields its cursor to the caller, and closes both on exit. All
repository functions take that cursor explicitly.

DSN resolution order:
    1. DATABASE_URL / PGDSN (environment, .env loaded with override)
    2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. `database` section of config/import.yml (fallback for missing parts)
"""

__all__ = [
    "DatabaseUnavailableError",
    "connect",
    "load_env_file",
    "resolve_dsn",
]


class DatabaseUnavailableError(Exception):
    """Raised when no database connection can be established."""


def load_env_file(path: Path = Path(".env"), override: bool = True) -> bool:
    """Load .env with python-dotenv; its values win over the process environment."""
    if not path.exists():
        return False
    return load_dotenv(dotenv_path=path, override=override)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn

    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def connect(cfg: ImportConfig) -> Iterator[Any]:
    """Open a connection and yield a cursor.

    autocommit is off: callers issue BEGIN/COMMIT/ROLLBACK themselves (the
    importer does so per file). Whatever is still pending on a clean exit is
    committed; on an exception it is rolled back.

    Raises:
        DatabaseUnavailableError: If the connection cannot be opened
    """
    try:
        conn = psycopg2.connect(resolve_dsn(cfg.database))
    except psycopg2.Error as e:
        raise DatabaseUnavailableError(str(e)) from e

    conn.autocommit = False
    cur = conn.cursor()
    try:
        yield cur
        if not conn.closed:
            conn.commit()
    except Exception:
        if not conn.closed:
            conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()
