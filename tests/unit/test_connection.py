from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import psycopg2
import pytest

from campaign_tracker.config.loader import DatabaseConfig, ImportConfig
from campaign_tracker.db import connection
from campaign_tracker.db.connection import DatabaseUnavailableError, connect, load_env_file, resolve_dsn

PG_VARS = ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in PG_VARS:
        monkeypatch.delenv(name, raising=False)


def test_dsn_from_config_section():
    dsn = resolve_dsn(DatabaseConfig(host="db", port=6543, user="u", password="p", database="d"))
    assert dsn == "host=db port=6543 user=u dbname=d password=p"


def test_environment_wins_over_config(monkeypatch):
    monkeypatch.setenv("PGHOST", "envhost")
    monkeypatch.setenv("PGDATABASE", "envdb")
    dsn = resolve_dsn(DatabaseConfig(host="db", database="d"))
    assert "host=envhost" in dsn
    assert "dbname=envdb" in dsn
    assert "password" not in dsn


def test_database_url_first(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://x@y/z")
    assert resolve_dsn(DatabaseConfig(dsn="ignored")) == "postgresql://x@y/z"


def test_config_dsn_used_when_no_env():
    assert resolve_dsn(DatabaseConfig(dsn="postgresql://cfg/db")) == "postgresql://cfg/db"


def test_load_env_file_overrides(tmp_path: Path, monkeypatch):
    env = tmp_path / ".env"
    env.write_text("PGHOST=from-dotenv\n", encoding="utf-8")
    monkeypatch.setenv("PGHOST", "from-shell")
    assert load_env_file(env) is True
    import os

    assert os.environ["PGHOST"] == "from-dotenv"
    assert load_env_file(tmp_path / "missing.env") is False


def test_connect_commits_and_closes(monkeypatch):
    conn = MagicMock()
    conn.closed = 0
    monkeypatch.setattr(connection.psycopg2, "connect", MagicMock(return_value=conn))
    with connect(ImportConfig(source_directory="./data")) as cur:
        assert cur is conn.cursor.return_value
    assert conn.autocommit is False
    conn.commit.assert_called_once()
    conn.close.assert_called_once()
    cur.close.assert_called_once()


def test_connect_rolls_back_on_error(monkeypatch):
    conn = MagicMock()
    conn.closed = 0
    monkeypatch.setattr(connection.psycopg2, "connect", MagicMock(return_value=conn))
    with pytest.raises(RuntimeError):
        with connect(ImportConfig(source_directory="./data")):
            raise RuntimeError("boom")
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    conn.close.assert_called_once()


def test_connect_unavailable(monkeypatch):
    def refuse(dsn):
        raise psycopg2.OperationalError("connection refused")

    monkeypatch.setattr(connection.psycopg2, "connect", refuse)
    with pytest.raises(DatabaseUnavailableError, match="connection refused"):
        with connect(ImportConfig(source_directory="./data")):
            pass
