"""Tests for postgres_fdw statement generation and setup."""

from __future__ import annotations

import pytest
from psycopg2 import sql as pg_sql

import services.federation as fed
from contracts.schema import mirrors_for_role
from tests.factories import FakeConnContext, make_settings


def test_transaction_side_reaches_customer_database() -> None:
    settings = make_settings(FDW_HOST="db.internal", FDW_PORT="6543", FDW_PASSWORD="s3cr'et")
    stmts = fed.federation_statements("transaction", settings)

    assert stmts[0] == (
        'CREATE SERVER IF NOT EXISTS "customerdb_server"\n'
        "    FOREIGN DATA WRAPPER postgres_fdw\n"
        "    OPTIONS (host 'db.internal', port '6543', dbname 'customerdb')"
    )
    assert "CREATE USER MAPPING IF NOT EXISTS FOR current_user" in stmts[1]
    assert "password 's3cr''et'" in stmts[1]
    assert len(stmts) == 2 + len(mirrors_for_role("transaction"))
    assert stmts[2].startswith('CREATE FOREIGN TABLE IF NOT EXISTS "foreign_customers" (')
    assert "    customer_id INTEGER,\n" in stmts[2]
    assert "OPTIONS (schema_name 'public', table_name 'customers')" in stmts[2]


def test_customer_side_mirrors_transactions() -> None:
    stmts = fed.federation_statements("customer", make_settings())

    assert '"transactiondb_server"' in stmts[0]
    assert stmts[-1].startswith('CREATE FOREIGN TABLE IF NOT EXISTS "foreign_transactions" (')
    assert "transaction_embedding vector(384)" in stmts[-1]


def test_foreign_table_columns_have_no_constraints() -> None:
    for stmt in fed.federation_statements("transaction", make_settings())[2:]:
        assert "PRIMARY KEY" not in stmt
        assert "REFERENCES" not in stmt
        assert "SERIAL" not in stmt


def test_setup_and_teardown_run_in_both_databases(monkeypatch) -> None:
    ctx = FakeConnContext()
    monkeypatch.setattr(fed, "db_conn", ctx)
    settings = make_settings()

    counts = fed.setup_federation(settings)

    assert counts == {"customerdb": 3, "transactiondb": 5}
    assert ctx.conn("customerdb").commits == 1
    assert ctx.conn("transactiondb").commits == 1

    assert all(isinstance(stmt, pg_sql.Composed) for stmt in ctx.conn("customerdb").raw)

    assert fed.teardown_federation(settings) == {"customerdb": 1, "transactiondb": 1}
    assert ctx.conn("customerdb").statements[-1] == 'DROP SERVER IF EXISTS "transactiondb_server" CASCADE'


def test_setup_rolls_back_failed_database(monkeypatch) -> None:
    ctx = FakeConnContext()
    ctx.conn("transactiondb").fail_on = "foreign_customer_behavior"
    monkeypatch.setattr(fed, "db_conn", ctx)

    with pytest.raises(RuntimeError):
        fed.setup_federation(make_settings())

    assert ctx.conn("transactiondb").rollbacks == 1
    assert ctx.conn("transactiondb").commits == 0
