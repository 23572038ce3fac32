"""Render the whole demo as one stand-alone psql script.

The script is built from the same pieces the Python pipeline executes
(migrations, dataset rows, embedding updates, FDW statements, analysis
queries, dashboard and index DDL), so ``psql -f`` on the output and
``aidb-demo run-all`` leave the databases in the same shape.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from pathlib import Path

from apps.backend.db_migrate import migration_sql
from apps.backend.sql_script import quote_literal
from contracts.records import Dataset
from contracts.schema import DatabaseRole, TableSpec, tables_for_role
from infra.config import Settings
from pipeline.embeddings import embedding_update_statements
from services.analysis import build_queries, render_query
from services.databases import setup_statements
from services.federation import federation_statements
from services.indexes import index_statements
from services.monitoring import ALERT_LEVELS, VIEW_NAME, create_dashboard_sql
from version import ENGINE_NAME, ENGINE_VERSION

INSERT_BATCH_SIZE = 50
_RULE = "-- " + "=" * 76

# Analysis query sections, in script order.
QUERY_SECTIONS: tuple[str, ...] = (
    "SAMPLE QUERIES",
    "VECTOR SIMILARITY SEARCH",
    "FRAUD DETECTION QUERIES",
    "CUSTOMER INSIGHTS",
)


class _ScriptBuilder:
    def __init__(self) -> None:
        self._lines: list[str] = []
        self._section = 0
        self._database: str | None = None

    def banner(self, title: str) -> None:
        self._section += 1
        self._lines += ["", _RULE, f"-- SECTION {self._section}: {title}", _RULE, ""]

    def comment(self, text: str) -> None:
        self._lines += [f"-- {line}".rstrip() for line in text.splitlines()]

    def connect(self, database: str) -> None:
        if database == self._database:
            return
        self._lines += [f"\\c {database}", ""]
        self._database = database

    def statement(self, sql: str) -> None:
        self._lines += [sql.strip().rstrip(";") + ";", ""]

    def statements(self, sqls: Iterable[str]) -> None:
        for sql in sqls:
            self.statement(sql)

    def raw(self, text: str) -> None:
        self._lines += text.rstrip().splitlines() + [""]

    def text(self) -> str:
        return "\n".join(self._lines).strip() + "\n"


def _value_sql(value: object, reference_time: datetime | None) -> str:
    if reference_time is not None and isinstance(value, datetime):
        seconds = int((reference_time - value).total_seconds())
        return f"CURRENT_TIMESTAMP - INTERVAL '{seconds} seconds'"
    return quote_literal(value)


def insert_statements(
    table: TableSpec,
    rows: Sequence[Sequence[object]],
    batch_size: int = INSERT_BATCH_SIZE,
    *,
    reference_time: datetime | None = None,
) -> list[str]:
    """Multi-row ``INSERT ... VALUES`` statements with literal values.

    With *reference_time* set, timestamps become offsets from
    ``CURRENT_TIMESTAMP`` so the rows stay recent whenever the script runs.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    cols = ", ".join(table.insert_columns)
    out: list[str] = []
    for start in range(0, len(rows), batch_size):
        chunk = rows[start : start + batch_size]
        values = ",\n".join("(" + ", ".join(_value_sql(v, reference_time) for v in row) + ")" for row in chunk)
        out.append(f"INSERT INTO {table.name} ({cols}) VALUES\n{values}")
    return out


def _populate(builder: _ScriptBuilder, role: DatabaseRole, dataset: Dataset) -> None:
    for table in tables_for_role(role):
        rows = [record.as_row() for record in dataset.records_for(table)]
        builder.comment(f"{table.name}: {len(rows)} rows")
        builder.statements(insert_statements(table, rows, reference_time=dataset.reference_time))


def _header(settings: Settings, provider: str) -> str:
    return "\n".join(
        [
            _RULE,
            f"-- {ENGINE_NAME} {ENGINE_VERSION}: multi-database fraud detection demo",
            _RULE,
            f"-- Databases: {settings.db.customer_db} (customers, feedback, behavior)",
            f"--            {settings.db.transaction_db} (transactions, merchants, fraud patterns)",
            "--",
            "-- Requires PostgreSQL with the pgvector extension (installed as \"vector\")",
            "-- and postgres_fdw. Run with: psql -f <this file>",
            f"-- Embedding provider: {provider}",
            _RULE,
        ]
    )


def render_demo_script(settings: Settings, dataset: Dataset, *, provider: str | None = None) -> str:
    """Return the full demo as psql script text."""
    provider = provider or settings.demo.embedding_provider
    customer_db = settings.db.customer_db
    transaction_db = settings.db.transaction_db
    db_for = settings.database_for_role

    b = _ScriptBuilder()
    b.raw(_header(settings, provider))

    b.banner("DATABASE SETUP")
    b.statements(setup_statements(settings))

    b.banner("CUSTOMERDB SETUP")
    b.connect(customer_db)
    b.comment("pgvector supplies vector(384) columns, postgres_fdw the foreign tables.")
    b.raw(migration_sql("customer"))

    b.banner("POPULATE CUSTOMERDB")
    _populate(b, "customer", dataset)

    b.banner("TRANSACTIONDB SETUP")
    b.connect(transaction_db)
    b.raw(migration_sql("transaction"))

    b.banner("POPULATE TRANSACTIONDB")
    _populate(b, "transaction", dataset)

    b.banner("AIDB EMBEDDING GENERATION")
    if provider == "python":
        b.comment("Client-side vectors need the Python pipeline; the script uses simulate_aidb_embedding().")
    elif provider == "sql":
        b.comment("simulate_aidb_embedding() is a placeholder; use --provider aidb for aidb_generate_embedding().")
    for role in ("customer", "transaction"):
        b.connect(db_for(role))
        b.statements(embedding_update_statements(role, provider, settings.demo.aidb_model))

    b.banner("FOREIGN DATA WRAPPER SETUP")
    for role in ("transaction", "customer"):
        b.connect(db_for(role))
        b.comment(f"postgres_fdw: {db_for(role)} -> {db_for('customer' if role == 'transaction' else 'transaction')}")
        b.statements(federation_statements(role, settings))

    queries = build_queries()
    number = 0
    for section in QUERY_SECTIONS:
        b.banner(section)
        for query in (q for q in queries if q.section == section):
            number += 1
            b.comment(f"Query {number}: {query.name}")
            b.connect(db_for(query.role))
            b.statement(render_query(query))

    b.banner("REAL-TIME FRAUD MONITORING")
    b.connect(transaction_db)
    b.statement(create_dashboard_sql(settings.demo.monitoring_window_hours))
    b.comment("Refresh manually to pick up new transactions.")
    levels = ", ".join(quote_literal(lvl) for lvl in ALERT_LEVELS[:3])
    b.statement(f"SELECT * FROM {VIEW_NAME}\nWHERE alert_level IN ({levels})\nLIMIT 10")

    b.banner("PERFORMANCE INDEXES")
    for role in ("customer", "transaction"):
        b.connect(db_for(role))
        b.statements(index_statements(role, settings.demo.ivfflat_lists))

    return b.text()


def write_demo_script(path: str | Path, settings: Settings, dataset: Dataset, *, provider: str | None = None) -> Path:
    """Render and write the script (atomically best-effort)."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    tmp = out.with_suffix(out.suffix + ".tmp")
    tmp.write_text(render_demo_script(settings, dataset, provider=provider), encoding="utf-8")
    tmp.replace(out)
    return out
