"""Tests for pooled DB connection lifecycle behavior."""

from __future__ import annotations

from typing import Any

import apps.backend.db as db_mod


class _FakeConn:
    """Minimal fake psycopg2 connection."""

    def __init__(self, *, rollback_raises: bool = False) -> None:
        self.rollback_calls = 0
        self.close_calls = 0
        self._rollback_raises = rollback_raises

    def rollback(self) -> None:
        """Record rollback and optionally raise."""
        self.rollback_calls += 1
        if self._rollback_raises:
            raise RuntimeError("rollback failed")

    def close(self) -> None:
        """Record close call."""
        self.close_calls += 1


class _FakePool:
    """Minimal fake pool exposing getconn/putconn."""

    def __init__(self, conn: _FakeConn, *, put_raises: bool = False) -> None:
        self._conn = conn
        self.put_calls = 0
        self.closeall_calls = 0
        self._put_raises = put_raises

    def getconn(self) -> _FakeConn:
        """Return the managed fake connection."""
        return self._conn

    def putconn(self, conn: _FakeConn) -> None:
        """Record putconn call and optionally raise."""
        assert conn is self._conn
        self.put_calls += 1
        if self._put_raises:
            raise RuntimeError("putconn failed")

    def closeall(self) -> None:
        self.closeall_calls += 1


def test_db_conn_rolls_back_before_return(monkeypatch: Any) -> None:
    """db_conn should rollback before returning a connection to pool."""
    conn = _FakeConn()
    pool = _FakePool(conn)
    seen: list[str] = []

    def _pool_for(database: str) -> _FakePool:
        seen.append(database)
        return pool

    monkeypatch.setattr(db_mod, "_get_pool", _pool_for)

    with db_mod.db_conn("customerdb") as acquired:
        assert acquired is conn

    assert seen == ["customerdb"]
    assert conn.rollback_calls == 1
    assert pool.put_calls == 1
    assert conn.close_calls == 0


def test_db_conn_still_returns_connection_when_rollback_fails(monkeypatch: Any) -> None:
    """Rollback failures should not prevent returning the connection to pool."""
    conn = _FakeConn(rollback_raises=True)
    pool = _FakePool(conn)
    monkeypatch.setattr(db_mod, "_get_pool", lambda database: pool)

    with db_mod.db_conn("transactiondb"):
        pass

    assert conn.rollback_calls == 1
    assert pool.put_calls == 1
    assert conn.close_calls == 0


def test_db_conn_closes_when_putconn_fails(monkeypatch: Any) -> None:
    """If putconn fails, db_conn should close the connection."""
    conn = _FakeConn()
    pool = _FakePool(conn, put_raises=True)
    monkeypatch.setattr(db_mod, "_get_pool", lambda database: pool)

    with db_mod.db_conn("customerdb"):
        pass

    assert conn.rollback_calls == 1
    assert pool.put_calls == 1
    assert conn.close_calls == 1


def test_close_pools_only_touches_named_databases(monkeypatch: Any) -> None:
    customer_pool = _FakePool(_FakeConn())
    transaction_pool = _FakePool(_FakeConn())
    monkeypatch.setattr(db_mod, "_POOLS", {"customerdb": customer_pool, "transactiondb": transaction_pool})

    db_mod.close_pools(["customerdb", "missingdb"])

    assert customer_pool.closeall_calls == 1
    assert transaction_pool.closeall_calls == 0
    assert list(db_mod._POOLS) == ["transactiondb"]


def test_dsn_for_swaps_database_name(monkeypatch: Any) -> None:
    monkeypatch.setattr(db_mod, "_db_url", lambda: "postgresql://demo@localhost:5432/postgres")

    assert db_mod.dsn_for(None) == "postgresql://demo@localhost:5432/postgres"
    assert "dbname=customerdb" in db_mod.dsn_for("customerdb")
