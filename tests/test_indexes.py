"""Tests for index DDL and creation."""

from __future__ import annotations

import pytest

import services.indexes as ix
from tests.factories import FakeConnContext, make_settings


def test_vector_indexes_use_l2_opclass() -> None:
    stmts = ix.index_statements("customer", lists=50)

    assert stmts == [
        "CREATE INDEX IF NOT EXISTS idx_feedback_embedding_ivfflat\n"
        "ON customer_feedback USING ivfflat (feedback_embedding vector_l2_ops)\n"
        "WITH (lists = 50)",
        "CREATE INDEX IF NOT EXISTS idx_behavior_embedding_ivfflat\n"
        "ON customer_behavior USING ivfflat (behavior_embedding vector_l2_ops)\n"
        "WITH (lists = 50)",
    ]


def test_transaction_indexes_include_btrees() -> None:
    stmts = ix.index_statements("transaction")

    assert len(stmts) == 6
    assert "CREATE INDEX IF NOT EXISTS idx_transactions_fraud_score ON transactions(fraud_score DESC)" in stmts


def test_lists_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ix.index_statements("customer", lists=0)


def test_create_indexes_uses_configured_lists(monkeypatch) -> None:
    ctx = FakeConnContext()
    monkeypatch.setattr(ix, "db_conn", ctx)

    count = ix.create_indexes("transaction", settings=make_settings(IVFFLAT_LISTS="10"))

    assert count == 6
    conn = ctx.conn("transactiondb")
    assert "WITH (lists = 10)" in conn.statements[0]
    assert conn.commits == 1
