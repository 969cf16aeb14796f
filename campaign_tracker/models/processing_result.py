from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for the CSV import run.

FileStat captures one uploaded file; ProcessingResult aggregates the run and
feeds the SUMMARY line (services/summary.py).
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file import statistics."""
    file_name: str
    status: str  # success/failed
    inserted_rows: int  # rows written (or counted in mock mode)
    skipped_rows: int  # rows rejected by the parser
    gross_amount: float  # sum of gross over inserted rows
    elapsed_seconds: float
    error: str | None = None  # failure reason


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of an import run."""
    success_files: int
    failed_files: int
    total_inserted_rows: int
    skipped_rows: int
    gross_amount: float
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files
