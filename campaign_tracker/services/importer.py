from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import psycopg2

from ..config.loader import ImportConfig
from ..csvimport.parser import CsvParseError, ParseResult, parse_csv_content
from ..csvimport.reader import CsvReadError, read_csv_file
from ..db.repository import RepositoryError, insert_monthly_orders
from ..logging.error_log import ErrorLogBuffer
from ..models.monthly_order import MonthlyOrder, UploadContext
from ..models.processing_result import FileStat, ProcessingResult
from .progress import ProgressTracker

"""Import orchestration for monthly sales CSV uploads.

For every file: read -> parse -> attach the upload context -> insert into
monthly_orders inside one transaction per file (BEGIN/COMMIT, ROLLBACK on a
database error). A failed file never aborts the run; its reason goes to the
log and to the JSON Lines error log together with the skipped rows.

cursor=None runs in mock mode: everything except the INSERT happens, and the
rows that would have been written are counted as inserted.
"""

__all__ = [
    "ProcessingError",
    "STATUS_SUCCESS",
    "STATUS_FAILED",
    "scan_csv_files",
    "preview_file",
    "import_files",
    "import_directory",
]

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


class ProcessingError(Exception):
    """Run-level failure (nothing could be imported)."""


def scan_csv_files(directory: Path) -> list[Path]:
    """List .csv files in `directory` (non-recursive, sorted by name).

    Raises:
        ProcessingError: If the directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    try:
        return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".csv")
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def preview_file(config: ImportConfig, path: Path) -> ParseResult:
    """Read and parse one upload without touching the database.

    Raises:
        CsvReadError: File cannot be read
        CsvParseError: Upload has no usable rows
    """
    return parse_csv_content(read_csv_file(path, encoding=config.encoding))


def _rollback(cursor: Any, file_name: str) -> None:
    try:
        cursor.execute("ROLLBACK")
    except psycopg2.Error as e:
        logger.warning(f"{file_name}: rollback failed: {e}")


def _failed(path: Path, started: datetime, error: str, skipped_rows: int = 0) -> FileStat:
    return FileStat(
        file_name=path.name,
        status=STATUS_FAILED,
        inserted_rows=0,
        skipped_rows=skipped_rows,
        gross_amount=0.0,
        elapsed_seconds=(datetime.now(UTC) - started).total_seconds(),
        error=error,
    )


def _import_single_file(
    path: Path,
    config: ImportConfig,
    context: UploadContext,
    cursor: Any,
    error_log: ErrorLogBuffer,
) -> FileStat:
    started = datetime.now(UTC)

    try:
        result = preview_file(config, path)
    except CsvReadError as e:
        logger.error(f"{path.name}: {e}")
        error_log.add_file_error(path.name, "READ_ERROR", str(e))
        return _failed(path, started, str(e))
    except CsvParseError as e:
        logger.error(f"{path.name}: {e}")
        error_log.add_issues(path.name, e.issues)
        error_log.add_file_error(path.name, e.error_type, str(e))
        return _failed(path, started, str(e), skipped_rows=len(e.issues))

    error_log.add_issues(path.name, result.issues)
    orders = [MonthlyOrder.from_import_row(r, context) for r in result.rows]

    if cursor is not None:
        try:
            cursor.execute("BEGIN")
            insert_monthly_orders(
                cursor, orders, table=config.monthly_orders_table, page_size=config.page_size
            )
            cursor.execute("COMMIT")
        except (RepositoryError, psycopg2.Error) as e:
            _rollback(cursor, path.name)
            logger.error(f"{path.name}: insert failed, transaction rolled back: {e}")
            error_log.add_file_error(path.name, "DB_ERROR", str(e))
            return _failed(path, started, f"database error: {e}", skipped_rows=len(result.issues))

    logger.info(
        f"{path.name}: {len(orders)} rows imported for {context.month:%Y-%m}"
        f"{' (amazon)' if context.is_amazon else ''}, {len(result.issues)} skipped"
    )
    return FileStat(
        file_name=path.name,
        status=STATUS_SUCCESS,
        inserted_rows=len(orders),
        skipped_rows=len(result.issues),
        gross_amount=sum(o.gross_amount for o in orders),
        elapsed_seconds=(datetime.now(UTC) - started).total_seconds(),
    )


def import_files(
    config: ImportConfig,
    paths: list[Path],
    context: UploadContext,
    cursor: Any = None,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Import each upload file in its own transaction.

    Args:
        config: Import configuration
        paths: CSV files to import, in order
        context: Reporting month / channel / total orders attached to every row
        cursor: Database cursor (None = mock mode)
        error_log: Error log buffer (a fresh one per run by default)

    Returns:
        ProcessingResult with per-file stats
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer(tz=config.tzinfo)

    file_stats: list[FileStat] = []
    with ProgressTracker(len(paths)) as progress:
        for path in paths:
            progress.start_file(path)
            stat = _import_single_file(path, config, context, cursor, error_log)
            file_stats.append(stat)
            progress.finish_file(stat)

    if len(error_log):
        logger.debug(f"error log records by type: {error_log.counts_by_type()}")
    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning(f"failed to write error log: {e}")
    else:
        if log_path is not None:
            logger.info(f"error log: {log_path}")

    success = sum(1 for s in file_stats if s.status == STATUS_SUCCESS)
    rows = progress.rows
    end_time = datetime.now(UTC)
    elapsed = (end_time - start_time).total_seconds()
    return ProcessingResult(
        success_files=success,
        failed_files=len(file_stats) - success,
        total_inserted_rows=rows,
        skipped_rows=progress.skipped,
        gross_amount=progress.gross,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=rows / elapsed if elapsed > 0 else 0.0,
        file_stats=file_stats,
    )


def import_directory(config: ImportConfig, context: UploadContext, cursor: Any = None) -> ProcessingResult:
    """Import every .csv file of config.source_directory.

    Raises:
        ProcessingError: If the source directory is missing or unreadable
    """
    paths = scan_csv_files(config.source_path)
    if not paths:
        logger.info(f"no .csv files in {config.source_directory}")
    return import_files(config, paths, context, cursor=cursor)
