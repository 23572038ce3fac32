"""
db.py

Tiny DB helper module for PostgreSQL (psycopg2) with connection pooling.

The demo talks to three databases on the same server:
- the maintenance database from ``DB_URL`` (CREATE/DROP DATABASE),
- the customer database,
- the transaction database.

Each demo database gets its own process-global SimpleConnectionPool, created
lazily on first use and keyed by database name. ``*_conn`` variants let a step
reuse one checked-out connection for many statements.
"""

from __future__ import annotations

import atexit
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any, Optional, Tuple, Union

from apps.backend.db_metrics import measure_query
from infra.config import get_settings

Params = Optional[Union[Sequence[Any], Mapping[str, Any]]]


def _db_url() -> str:
    url = str(get_settings().db.url or "").strip()
    if not url:
        raise RuntimeError("DB_URL is not set")
    return url


def dsn_for(database: str | None = None) -> str:
    """Return a DSN for *database*, derived from ``DB_URL`` (maintenance DSN when None)."""
    url = _db_url()
    if not database:
        return url
    from psycopg2.extensions import make_dsn  # type: ignore

    return make_dsn(url, dbname=database)


# One pool per database name.
_POOLS: dict[str, Any] = {}


def _get_pool(database: str):
    """Return the pool for *database*, creating it on first use."""
    pool = _POOLS.get(database)
    if pool is not None:
        return pool

    from psycopg2.pool import SimpleConnectionPool  # type: ignore

    settings = get_settings()
    pool = SimpleConnectionPool(
        minconn=1,
        maxconn=settings.db.pool_maxconn,
        dsn=dsn_for(database),
        connect_timeout=settings.db.connect_timeout,
    )
    _POOLS[database] = pool
    return pool


def close_pools(databases: Iterable[str] | None = None) -> None:
    """Close pools for *databases* (all pools when None).

    ``DROP DATABASE`` fails while pooled sessions are still attached, so
    database setup closes the demo pools first.
    """
    names = list(_POOLS) if databases is None else [d for d in databases if d in _POOLS]
    for name in names:
        pool = _POOLS.pop(name)
        try:
            pool.closeall()
        except Exception:
            pass


atexit.register(close_pools)


@contextmanager
def db_conn(database: str) -> Iterator[Any]:
    """Yield a pooled psycopg2 connection to *database*.

    Callers should NOT close the connection; it is returned to the pool.
    Any open transaction is rolled back before the connection goes back.
    """
    pool = _get_pool(database)
    conn = pool.getconn()
    try:
        yield conn
    finally:
        try:
            conn.rollback()
        except Exception:
            pass
        try:
            pool.putconn(conn)
        except Exception:
            try:
                conn.close()
            except Exception:
                pass


@contextmanager
def direct_conn(database: str | None = None, *, autocommit: bool = False) -> Iterator[Any]:
    """Create a direct psycopg2 connection (outside any pool)."""
    import psycopg2  # type: ignore

    conn = psycopg2.connect(dsn=dsn_for(database), connect_timeout=get_settings().db.connect_timeout)
    conn.autocommit = autocommit
    try:
        yield conn
    finally:
        try:
            conn.close()
        except Exception:
            pass


@contextmanager
def admin_conn() -> Iterator[Any]:
    """Autocommit connection to the maintenance database.

    CREATE DATABASE and DROP DATABASE cannot run inside a transaction block.
    """
    with direct_conn(None, autocommit=True) as conn:
        yield conn


# ---------------------------
# Low-level *_conn primitives
# ---------------------------

def _query_name(sql: Any, *, operation: str) -> str:
    """Return a stable query operation label for metrics/logging."""
    from psycopg2 import sql as pg_sql  # type: ignore

    while isinstance(sql, pg_sql.Composed) and sql.seq:
        sql = sql.seq[0]
    if isinstance(sql, pg_sql.SQL):
        sql = sql.string
    text = " ".join(str(sql or "").strip().split())
    if not text:
        return operation
    first_token = text.split(" ", 1)[0].lower()
    return f"{operation}:{first_token}"


def _conn_database(conn: Any) -> str | None:
    info = getattr(conn, "info", None)
    return getattr(info, "dbname", None)


def fetch_one_conn(conn: Any, sql: str, params: Params = None) -> Optional[Tuple[Any, ...]]:
    """Execute a query on an existing connection and return one row (or None)."""
    with conn.cursor() as cur:
        with measure_query(_query_name(sql, operation="fetch_one_conn"), database=_conn_database(conn)):
            cur.execute(sql, params or ())
        return cur.fetchone()


def fetch_all_conn(conn: Any, sql: str, params: Params = None) -> list[Tuple[Any, ...]]:
    """Execute a query on an existing connection and return all rows."""
    with conn.cursor() as cur:
        with measure_query(_query_name(sql, operation="fetch_all_conn"), database=_conn_database(conn)):
            cur.execute(sql, params or ())
        return cur.fetchall()


def execute_conn(conn: Any, sql: str, params: Params = None) -> int:
    """Execute a statement on an existing connection and return its rowcount."""
    with conn.cursor() as cur:
        with measure_query(_query_name(sql, operation="execute_conn"), database=_conn_database(conn)):
            cur.execute(sql, params or ())
        return int(getattr(cur, "rowcount", -1) or 0)


def execute_values_conn(
    conn: Any,
    sql: str,
    rows: Sequence[Sequence[Any]],
    *,
    template: str | None = None,
    page_size: int = 500,
    fetch: bool = False,
) -> list[Tuple[Any, ...]]:
    """Bulk ``INSERT ... VALUES %s`` / ``UPDATE ... FROM (VALUES %s)`` helper.

    Wraps ``psycopg2.extras.execute_values``; returns RETURNING rows when *fetch*.
    """
    if not rows:
        return []
    from psycopg2.extras import execute_values  # type: ignore

    with conn.cursor() as cur:
        with measure_query(_query_name(sql, operation="execute_values_conn"), database=_conn_database(conn)):
            result = execute_values(cur, sql, list(rows), template=template, page_size=page_size, fetch=fetch)
    return list(result or [])


# ---------------------------
# Dict row helpers
# ---------------------------

def _cols_from_description(desc: Any) -> list[str]:
    """Extract column names from cursor.description safely."""
    if not desc:
        return []
    cols: list[str] = []
    for i, d in enumerate(desc):
        name = None
        try:
            name = d[0]
        except (IndexError, KeyError, TypeError):
            name = None
        cols.append(str(name) if name else f"col_{i}")
    return cols


def fetch_all_dict_conn(conn: Any, sql: str, params: Params = None) -> list[dict[str, Any]]:
    """Execute a query and return all rows as dicts."""
    with conn.cursor() as cur:
        with measure_query(_query_name(sql, operation="fetch_all_dict_conn"), database=_conn_database(conn)):
            cur.execute(sql, params or ())
        rows = cur.fetchall()
        cols = _cols_from_description(getattr(cur, "description", None))
        if not cols:
            return []
        return [dict(zip(cols, r, strict=False)) for r in rows]


def fetch_columns_and_rows_conn(
    conn: Any, sql: str, params: Params = None
) -> tuple[list[str], list[Tuple[Any, ...]]]:
    """Execute a query and return ``(column_names, rows)``; keeps column order for exports."""
    with conn.cursor() as cur:
        with measure_query(
            _query_name(sql, operation="fetch_columns_and_rows_conn"), database=_conn_database(conn)
        ):
            cur.execute(sql, params or ())
        cols = _cols_from_description(getattr(cur, "description", None))
        rows = cur.fetchall() if cols else []
        return cols, list(rows)

