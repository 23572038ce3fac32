"""Bulk loaders for the two demo databases.

Each loader empties its tables (``RESTART IDENTITY`` so serial keys start at
1 again) and inserts the dataset in one transaction.
"""

from __future__ import annotations

from typing import Any

from apps.backend.db import execute_conn, execute_values_conn, fetch_one_conn
from contracts.records import Dataset
from contracts.schema import DatabaseRole, TableSpec, tables_for_role
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)


def insert_sql(table: TableSpec) -> str:
    cols = ", ".join(table.insert_columns)
    return f"INSERT INTO {table.name} ({cols}) VALUES %s"


def truncate_sql(role: DatabaseRole) -> str:
    names = ", ".join(t.name for t in tables_for_role(role))
    return f"TRUNCATE {names} RESTART IDENTITY CASCADE"


def _seed(conn: Any, role: DatabaseRole, dataset: Dataset) -> dict[str, int]:
    counts: dict[str, int] = {}
    try:
        execute_conn(conn, truncate_sql(role))
        for table in tables_for_role(role):
            rows = [record.as_row() for record in dataset.records_for(table)]
            execute_values_conn(conn, insert_sql(table), rows)
            counts[table.name] = len(rows)
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    _LOG.info("seed_done", role=role, rows=counts)
    return counts


def seed_customer_db(conn: Any, dataset: Dataset) -> dict[str, int]:
    """Load customers, feedback and behavior rows."""
    return _seed(conn, "customer", dataset)


def seed_transaction_db(conn: Any, dataset: Dataset) -> dict[str, int]:
    """Load merchants, transactions and fraud patterns."""
    return _seed(conn, "transaction", dataset)


def table_counts(conn: Any, role: DatabaseRole) -> dict[str, int]:
    out: dict[str, int] = {}
    for table in tables_for_role(role):
        row = fetch_one_conn(conn, f"SELECT COUNT(*) FROM {table.name}")
        out[table.name] = int(row[0]) if row else 0
    return out
