"""Shared lightweight factories for tests.

These helpers replace psycopg2 connections and settings objects without
introducing runtime dependencies on a live PostgreSQL server.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from psycopg2 import sql as pg_sql

from apps.backend.sql_script import quote_ident, quote_literal
from infra.config import Settings


def make_settings(**env_overrides: str) -> Settings:
    """Build Settings from a deterministic env map (never reads `.env`)."""
    env: dict[str, str] = {
        "DB_URL": "postgresql://postgres@localhost:5432/postgres",
        "CUSTOMER_DB": "customerdb",
        "TRANSACTION_DB": "transactiondb",
        "FDW_HOST": "localhost",
        "FDW_USER": "postgres",
        "FDW_PASSWORD": "postgres",
    }
    env.update(env_overrides)
    return Settings.from_env(env=env, env_file=".missing.env")


def sql_text(sql: Any) -> str:
    """Readable text for plain strings and psycopg2.sql compositions."""
    if isinstance(sql, pg_sql.Composed):
        return "".join(sql_text(part) for part in sql.seq)
    if isinstance(sql, pg_sql.SQL):
        return sql.string
    if isinstance(sql, pg_sql.Identifier):
        return ".".join(quote_ident(s) for s in sql.strings)
    if isinstance(sql, pg_sql.Literal):
        return quote_literal(sql.wrapped)
    return str(sql)


class FakeCursor:
    """Cursor that records statements and replays canned results."""

    def __init__(self, conn: FakeConn) -> None:
        self._conn = conn
        self.description: list[tuple[Any, ...]] | None = None
        self.rowcount = 0
        self._rows: list[tuple[Any, ...]] = []

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:  # type: ignore[no-untyped-def]
        return False

    def execute(self, sql: Any, params: Any = None) -> None:
        text = sql_text(sql)
        self._conn.executed.append((text, params))
        self._conn.raw.append(sql)
        if self._conn.fail_on and self._conn.fail_on in text:
            raise self._conn.error_type(f"failed: {self._conn.fail_on}")
        columns, rows, rowcount = self._conn.result_for(text)
        self.description = [(c, None, None, None, None, None, None) for c in columns] if columns else None
        self._rows = list(rows)
        self.rowcount = rowcount

    def fetchone(self) -> tuple[Any, ...] | None:
        return self._rows[0] if self._rows else None

    def fetchall(self) -> list[tuple[Any, ...]]:
        return list(self._rows)


class FakeConn:
    """psycopg2-like connection with scripted results keyed by SQL substring."""

    def __init__(self, database: str | None = None) -> None:
        self.database = database
        self.executed: list[tuple[str, Any]] = []
        self.raw: list[Any] = []
        self.results: list[tuple[str, Sequence[str], Sequence[tuple[Any, ...]], int]] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.autocommit = False
        self.fail_on: str | None = None
        self.error_type: type[Exception] = RuntimeError

    def add_result(
        self,
        sql_contains: str,
        columns: Sequence[str] = (),
        rows: Sequence[tuple[Any, ...]] = (),
        rowcount: int | None = None,
    ) -> None:
        count = len(rows) if rowcount is None else rowcount
        self.results.append((sql_contains, tuple(columns), list(rows), count))

    def result_for(self, sql: str) -> tuple[Sequence[str], Sequence[tuple[Any, ...]], int]:
        for needle, columns, rows, rowcount in self.results:
            if needle in sql:
                return columns, rows, rowcount
        return (), [], 0

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]


class FakeConnContext:
    """Context manager handing out a FakeConn per database name."""

    def __init__(self) -> None:
        self.conns: dict[str | None, FakeConn] = {}
        self.opened: list[str | None] = []

    def conn(self, database: str | None) -> FakeConn:
        if database not in self.conns:
            self.conns[database] = FakeConn(database)
        return self.conns[database]

    def __call__(self, database: str | None = None, **_kwargs: Any) -> _Ctx:
        self.opened.append(database)
        return _Ctx(self.conn(database))


class _Ctx:
    def __init__(self, conn: FakeConn) -> None:
        self._conn = conn

    def __enter__(self) -> FakeConn:
        return self._conn

    def __exit__(self, exc_type, exc, tb) -> bool:  # type: ignore[no-untyped-def]
        return False
