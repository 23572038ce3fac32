"""Table specs must stay in sync with the migration DDL."""

from __future__ import annotations

import re
from dataclasses import fields
from pathlib import Path

import pytest

from apps.backend.db_migrate import DEFAULT_MIGRATIONS_DIR, migration_sql
from contracts.records import Customer, CustomerFeedback, CustomerBehavior, FraudPattern, Merchant, Transaction
from contracts.schema import (
    EMBEDDING_DIM,
    FOREIGN_TABLE_MIRRORS,
    TABLES,
    TableSpec,
    get_table,
    mirrors_for_role,
    other_role,
    tables_for_role,
)

_CREATE_RE = re.compile(r"CREATE TABLE IF NOT EXISTS (?P<name>\w+) \((?P<body>.*?)\n\);", re.DOTALL)


def _ddl_columns(role: str) -> dict[str, list[str]]:
    sql = migration_sql(role, migrations_dir=DEFAULT_MIGRATIONS_DIR)
    out: dict[str, list[str]] = {}
    for m in _CREATE_RE.finditer(sql):
        lines = [line.strip().rstrip(",") for line in m.group("body").splitlines() if line.strip()]
        out[m.group("name")] = lines
    return out


def _spec_lines(table: TableSpec) -> list[str]:
    return [" ".join(p for p in (c.name, c.sql_type, c.constraints) if p) for c in table.columns]


@pytest.mark.parametrize("table", TABLES, ids=lambda t: t.name)
def test_table_spec_matches_migration_ddl(table: TableSpec) -> None:
    ddl = _ddl_columns(table.role)
    assert table.name in ddl
    assert ddl[table.name] == _spec_lines(table)


def test_each_database_owns_three_tables() -> None:
    assert [t.name for t in tables_for_role("customer")] == ["customers", "customer_feedback", "customer_behavior"]
    assert [t.name for t in tables_for_role("transaction")] == ["merchants", "transactions", "fraud_patterns"]


def test_every_table_but_customers_and_merchants_has_a_vector_column() -> None:
    with_vectors = {t.name for t in TABLES if any(c.sql_type == f"vector({EMBEDDING_DIM})" for c in t.columns)}
    assert with_vectors == {"customer_feedback", "customer_behavior", "transactions", "fraud_patterns"}


def test_insert_columns_match_record_fields() -> None:
    pairs = [
        (Customer, "customers"),
        (CustomerFeedback, "customer_feedback"),
        (CustomerBehavior, "customer_behavior"),
        (Merchant, "merchants"),
        (Transaction, "transactions"),
        (FraudPattern, "fraud_patterns"),
    ]
    for record_type, table_name in pairs:
        names = tuple(f.name for f in fields(record_type))
        assert names == get_table(table_name).insert_columns, table_name


def test_foreign_mirrors_live_in_the_other_database() -> None:
    for mirror in FOREIGN_TABLE_MIRRORS:
        assert mirror.local_role == other_role(mirror.source.role)
        assert mirror.foreign_name == f"foreign_{mirror.source.name}"

    assert [m.foreign_name for m in mirrors_for_role("transaction")] == [
        "foreign_customers",
        "foreign_customer_feedback",
        "foreign_customer_behavior",
    ]
    assert [m.foreign_name for m in mirrors_for_role("customer")] == ["foreign_transactions"]


def test_foreign_columns_drop_serial() -> None:
    cols = dict(get_table("customers").foreign_columns())
    assert cols["customer_id"] == "INTEGER"
    assert cols["risk_score"] == "DECIMAL(3,2)"


def test_get_table_unknown_raises() -> None:
    with pytest.raises(KeyError):
        get_table("accounts")


def test_migration_directories_exist() -> None:
    for group in ("common", "customer", "transaction"):
        assert (Path(DEFAULT_MIGRATIONS_DIR) / group).is_dir()
