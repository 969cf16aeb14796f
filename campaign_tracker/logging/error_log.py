from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo
from pathlib import Path
from typing import Protocol

from ..models.error_record import FILE_LEVEL_ROW, ErrorRecord

"""Per-run error log for CSV imports (JSON Lines).

Skipped rows and failed files of one run are collected in memory and written
to ``logs/errors-YYYYMMDD-HHMMSS.log`` (time of the first write, in the
configured time zone), one ErrorRecord per line. Record timestamps stay UTC.
A run without problems leaves no file behind.
"""

__all__ = [
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class _Issue(Protocol):
    row: int
    error_type: str
    message: str


class ErrorLogBuffer:
    """Collects row issues and file failures; flush() appends them as JSON Lines."""

    def __init__(self, logs_dir: Path = LOGS_DIR, tz: tzinfo = UTC) -> None:
        self._logs_dir = logs_dir
        self._tz = tz
        self._pending: list[ErrorRecord] = []
        self._written = 0
        self._types: Counter[str] = Counter()
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        """Log file of this run; the directory is created on first access."""
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(self._tz).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)
        self._types[record.error_type] += 1

    def add_file_error(self, file_name: str, error_type: str, message: str) -> None:
        self.append(ErrorRecord.create(file_name, FILE_LEVEL_ROW, error_type, message))

    def add_issues(self, file_name: str, issues: Iterable[_Issue]) -> None:
        """Record parser row issues (anything with row / error_type / message)."""
        for issue in issues:
            self.append(ErrorRecord.create(file_name, issue.row, issue.error_type, issue.message))

    def counts_by_type(self) -> dict[str, int]:
        """Records per error type over the whole run, flushed or not."""
        return dict(self._types)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Append pending records to the run's file.

        Returns:
            The log file path, or None if the run has not logged anything yet
        """
        if self._pending:
            with self.file_path.open("a", encoding="utf-8") as f:
                f.writelines(r.to_json_line() + "\n" for r in self._pending)
            self._written += len(self._pending)
            self._pending.clear()
        return self._file_path if self._written else None
