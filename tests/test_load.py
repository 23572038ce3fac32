"""Tests for the bulk loaders."""

from __future__ import annotations

from datetime import datetime

import pytest

import pipeline.load as load
from contracts.schema import get_table
from pipeline.generate import generate_dataset
from tests.factories import FakeConn


def _dataset():
    return generate_dataset(3, generated_customers=2, extra_feedback=4, generated_transactions=5,
                            reference_time=datetime(2024, 5, 1, 12, 0))


def test_insert_sql_uses_insert_columns() -> None:
    sql = load.insert_sql(get_table("merchants"))
    assert sql == (
        "INSERT INTO merchants (merchant_name, merchant_category, risk_rating, "
        "location_country, location_city, merchant_description) VALUES %s"
    )


def test_truncate_sql_restarts_identity() -> None:
    assert load.truncate_sql("customer") == (
        "TRUNCATE customers, customer_feedback, customer_behavior RESTART IDENTITY CASCADE"
    )


def test_seed_customer_db_inserts_in_load_order(monkeypatch) -> None:
    conn = FakeConn("customerdb")
    calls: list[tuple[str, int]] = []
    monkeypatch.setattr(load, "execute_values_conn", lambda c, sql, rows, **kw: calls.append((sql, len(rows))))

    counts = load.seed_customer_db(conn, _dataset())

    assert counts == {"customers": 42, "customer_feedback": 24, "customer_behavior": 42}
    assert [sql.split(" (")[0] for sql, _ in calls] == [
        "INSERT INTO customers",
        "INSERT INTO customer_feedback",
        "INSERT INTO customer_behavior",
    ]
    assert conn.statements[0].startswith("TRUNCATE customers")
    assert conn.commits == 1


def test_seed_transaction_db_rolls_back_on_failure(monkeypatch) -> None:
    conn = FakeConn("transactiondb")

    def _boom(c, sql, rows, **kw):
        if "transactions" in sql:
            raise RuntimeError("insert failed")

    monkeypatch.setattr(load, "execute_values_conn", _boom)

    with pytest.raises(RuntimeError, match="insert failed"):
        load.seed_transaction_db(conn, _dataset())
    assert conn.commits == 0
    assert conn.rollbacks == 1


def test_table_counts() -> None:
    conn = FakeConn("transactiondb")
    conn.add_result("FROM merchants", ["count"], [(10,)])
    conn.add_result("FROM transactions", ["count"], [(152,)])

    assert load.table_counts(conn, "transaction") == {"merchants": 10, "transactions": 152, "fraud_patterns": 0}
