# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
monthly_orders_table: monthly_orders
page_size: 500
shipping_cost: 5
timezone: UTC
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def italian_csv() -> str:
    return (
        "Prodotto,Pezzi totali,Importo totale (€),IVA (€),Imponibile totale (€)\n"
        '"Crema viso, 50ml",10,"1.220,00","220,00","1.000,00"\n'
        "Siero,4,244,22%,200\n"
    )


@pytest.fixture()
def sample_csv_files(temp_workdir: Path, italian_csv: str) -> list[Path]:
    data_dir = temp_workdir / "data"
    good = data_dir / "2025-03-shop.csv"
    good.write_text(italian_csv, encoding="utf-8")
    bad = data_dir / "broken.csv"
    bad.write_text("Prodotto,Pezzi totali\nSiero,4\n", encoding="utf-8")
    return [good, bad]


@pytest.fixture()
def no_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
