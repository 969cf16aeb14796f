from __future__ import annotations

import json
import re
from pathlib import Path

from campaign_tracker.cli import main as cli_main
from campaign_tracker.logging.init import reset_logging

"""End-to-end CLI run without a database (DISABLE_DB_CONNECT=1).

Uploads in mixed encodings and number formats, one unusable file and some
bad rows: the run must finish, count what would be inserted, exit with 2 and
leave a JSON Lines error log behind.
"""

SUMMARY_RE = re.compile(
    r"^SUMMARY files=(\d+)/\d+ success=(\d+) failed=(\d+) rows=(\d+) skipped_rows=(\d+) gross=([\d.]+) ",
    re.MULTILINE,
)


def test_mixed_uploads(write_config, temp_workdir: Path, no_db, capsys):
    reset_logging()
    data = temp_workdir / "data"
    # Windows export, Italian headers and decimal commas
    (data / "01-shop.csv").write_bytes(
        "Nome prodotto,Pezzi,Importo totale (€),IVA,Imponibile\r\n"
        "Crème viso,2,\"61,00\",22%,\"50,00\"\r\n"
        "Siero,1,\"30,50\",22%,\"25,00\"\r\n".encode("cp1252")
    )
    # UTF-8 with BOM, English headers, US numbers, one bad row
    (data / "02-amazon.csv").write_bytes(
        b"\xef\xbb\xbfProduct,Qty,Gross,Tax,Net\n"
        b"\"Widget, Deluxe\",3,\"1,220.00\",220.00,1000.00\n"
        b",1,10,0,10\n"
    )
    (data / "03-empty.csv").write_text("\n\n", encoding="utf-8")

    code = cli_main(["--month", "2025-03", "--total-orders", "40"])
    out = capsys.readouterr().out

    assert code == 2
    m = SUMMARY_RE.search(out)
    assert m, out
    files, success, failed, rows, skipped, gross = m.groups()
    assert (files, success, failed, rows, skipped) == ("3", "2", "1", "3", "1")
    assert float(gross) == 61.0 + 30.5 + 1220.0
    assert "WARN Row 2: skipped" in out

    [log_file] = list((temp_workdir / "logs").glob("errors-*.log"))
    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert [(r["file"], r["row"], r["error_type"]) for r in records] == [
        ("02-amazon.csv", 2, "INVALID_ROW"),
        ("03-empty.csv", -1, "EMPTY_INPUT"),
    ]
