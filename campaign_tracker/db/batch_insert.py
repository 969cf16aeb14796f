from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

"""Batched INSERT via psycopg2.extras.execute_values.

The caller owns the cursor and the transaction; this module never commits.
Table and column names are trusted identifiers (fixed in repository.py or
validated by the config schema), values always go through placeholders.
"""

__all__ = [
    "BatchInsertError",
    "InsertResult",
    "batch_insert",
]


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    returned_values: list[tuple[Any, ...]] | None = None


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    returning: Sequence[str] | None = None,
    page_size: int = 1000,
) -> InsertResult:
    """Insert rows in pages of `page_size`.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table
    columns: insert column order (matches each row sequence)
    rows: row value sequences
    returning: columns for a RETURNING clause (e.g. ["id"]); None = no RETURNING
    page_size: execute_values page size
    """
    rows_list = [tuple(r) for r in rows]
    if not rows_list:
        return InsertResult(inserted_rows=0, returned_values=[] if returning else None)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if returning:
        sql += " RETURNING " + ",".join(f'"{c}"' for c in returning)

    try:
        # fetch=True collects RETURNING rows across all pages
        returned = execute_values(cursor, sql, rows_list, page_size=page_size, fetch=bool(returning))
    except psycopg2.Error as e:
        raise BatchInsertError(str(e)) from e

    return InsertResult(
        inserted_rows=len(rows_list),
        returned_values=[tuple(r) for r in returned] if returning else None,
    )
