from __future__ import annotations

import psycopg2
import pytest

from campaign_tracker.db.batch_insert import BatchInsertError, InsertResult, batch_insert


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.pages: list[int] = []
        self.fetched: list[tuple] = [("id-1",), ("id-2",)]


# execute_values is patched inside the module so no database is needed
@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import campaign_tracker.db.batch_insert as bi

    def fake_execute_values(cursor, sql, rows, page_size=100, fetch=False):
        cursor.queries.append(sql)
        cursor.pages.append(page_size)
        return cursor.fetched if fetch else None

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return fake_execute_values


def test_batch_insert_basic():
    cur = DummyCursor()
    res = batch_insert(cur, table="monthly_orders", columns=["month", "product_name"], rows=[["2025-03-01", "A"], ["2025-03-01", "B"]])
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 2
    assert res.returned_values is None
    assert cur.queries == ['INSERT INTO monthly_orders ("month","product_name") VALUES %s']


def test_batch_insert_returning():
    cur = DummyCursor()
    res = batch_insert(cur, table="monthly_orders", columns=["product_name"], rows=[["A"], ["B"]], returning=["id"])
    assert res.returned_values == [("id-1",), ("id-2",)]
    assert cur.queries[0].endswith('VALUES %s RETURNING "id"')


def test_batch_insert_page_size_forwarded():
    cur = DummyCursor()
    batch_insert(cur, table="t", columns=["c"], rows=[[1]], page_size=250)
    assert cur.pages == [250]


def test_batch_insert_empty_rows():
    cur = DummyCursor()
    res = batch_insert(cur, table="t", columns=["c"], rows=[])
    assert res.inserted_rows == 0
    assert res.returned_values is None
    assert cur.queries == []


def test_batch_insert_empty_rows_returning():
    res = batch_insert(DummyCursor(), table="t", columns=["c"], rows=[], returning=["id"])
    assert res.returned_values == []


def test_batch_insert_driver_error_wrapped(monkeypatch):
    import campaign_tracker.db.batch_insert as bi

    def boom(*args, **kwargs):
        raise psycopg2.IntegrityError("duplicate key value violates unique constraint")

    monkeypatch.setattr(bi, "execute_values", boom)
    with pytest.raises(BatchInsertError, match="duplicate key"):
        batch_insert(DummyCursor(), table="t", columns=["c"], rows=[[1]])
