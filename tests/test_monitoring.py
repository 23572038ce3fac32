"""Tests for the fraud monitoring materialized view."""

from __future__ import annotations

import pytest

import services.monitoring as monitoring
from tests.factories import FakeConnContext, make_settings


def test_create_sql_inlines_window() -> None:
    sql = monitoring.create_dashboard_sql(24)

    assert sql.startswith("CREATE MATERIALIZED VIEW IF NOT EXISTS fraud_monitoring_dashboard AS")
    assert "INTERVAL '1 hour' * 24" in sql
    assert "JOIN foreign_customers fc" in sql
    assert "WHERE alert_level != 'LOW RISK'" in sql


def test_create_sql_rejects_empty_window() -> None:
    with pytest.raises(ValueError):
        monitoring.create_dashboard_sql(0)


def test_alert_levels_in_severity_order() -> None:
    assert monitoring.ALERT_LEVELS == ("CONFIRMED FRAUD", "CRITICAL ALERT", "HIGH ALERT", "MEDIUM ALERT")


def test_create_dashboard_replace_drops_first(monkeypatch) -> None:
    ctx = FakeConnContext()
    monkeypatch.setattr(monitoring, "db_conn", ctx)

    monitoring.create_dashboard(make_settings(MONITORING_WINDOW_HOURS="6"), replace=True)

    conn = ctx.conn("transactiondb")
    assert conn.statements[0] == "DROP MATERIALIZED VIEW IF EXISTS fraud_monitoring_dashboard"
    assert "INTERVAL '1 hour' * 6" in conn.statements[1]
    assert conn.commits == 1


def test_refresh_dashboard(monkeypatch) -> None:
    ctx = FakeConnContext()
    monkeypatch.setattr(monitoring, "db_conn", ctx)

    monitoring.refresh_dashboard(make_settings())

    assert ctx.conn("transactiondb").statements == ["REFRESH MATERIALIZED VIEW fraud_monitoring_dashboard"]


def test_fetch_alerts_filters_levels(monkeypatch) -> None:
    ctx = FakeConnContext()
    ctx.conn("transactiondb").add_result(
        "FROM fraud_monitoring_dashboard",
        ["transaction_id", "alert_level"],
        [(6, "CONFIRMED FRAUD")],
    )
    monkeypatch.setattr(monitoring, "db_conn", ctx)

    alerts = monitoring.fetch_alerts(["CONFIRMED FRAUD"], limit=5, settings=make_settings())

    assert alerts == [{"transaction_id": 6, "alert_level": "CONFIRMED FRAUD"}]
    sql, params = ctx.conn("transactiondb").executed[0]
    assert params == (["CONFIRMED FRAUD"], 5)
    assert "ORDER BY\n    CASE alert_level\n        WHEN 'CONFIRMED FRAUD' THEN 1" in sql
    assert sql.index("ORDER BY") < sql.index("LIMIT %s")
    assert "fraud_score DESC,\n    transaction_date DESC, transaction_id" in sql


def test_fetch_alerts_validates_input() -> None:
    with pytest.raises(ValueError, match="Unknown alert level"):
        monitoring.fetch_alerts(["LOW RISK"], settings=make_settings())
    with pytest.raises(ValueError, match="limit"):
        monitoring.fetch_alerts(limit=0, settings=make_settings())


def test_drop_dashboard(monkeypatch) -> None:
    ctx = FakeConnContext()
    monkeypatch.setattr(monitoring, "db_conn", ctx)

    monitoring.drop_dashboard(make_settings())

    conn = ctx.conn("transactiondb")
    assert conn.statements == ["DROP MATERIALIZED VIEW IF EXISTS fraud_monitoring_dashboard"]
    assert conn.commits == 1
