from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm

from ..models.processing_result import FileStat

"""Upload progress bar (tqdm, TTY only).

One bar over the files of an import run, with the running totals of the run
(imported rows, skipped rows, failed files, gross) as postfix. When stdout is
not a terminal (CI, cron, piped into a log) no bar is drawn and only the
labeled log lines remain; the totals are still kept.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    def __init__(self, total_files: int, *, description: str = "Importing uploads") -> None:
        self.description = description
        self.files_done = 0
        self.rows = 0
        self.skipped = 0
        self.failed = 0
        self.gross = 0.0

        self.pbar: tqdm[Any] | None = None
        if is_tty_enabled():
            self.pbar = tqdm(total=total_files, desc=description, unit="file", ncols=80, ascii=True)

    def start_file(self, path: Path) -> None:
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({path.name})")

    def finish_file(self, stat: FileStat) -> None:
        """Add one file's outcome to the running totals and advance the bar."""
        self.files_done += 1
        self.rows += stat.inserted_rows
        self.skipped += stat.skipped_rows
        self.gross += stat.gross_amount
        if stat.error is not None:
            self.failed += 1

        if self.pbar is not None:
            self.pbar.set_description(self.description)
            self.pbar.set_postfix(rows=self.rows, skipped=self.skipped, failed=self.failed, gross=f"{self.gross:.2f}")
            self.pbar.update(1)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
