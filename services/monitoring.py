"""Fraud monitoring dashboard (materialized view in the transaction database).

The view snapshots recent transactions joined to ``foreign_customers`` and
labels each with an alert level. It is only as fresh as its last
``refresh_dashboard`` call.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from apps.backend.db import db_conn, execute_conn, fetch_all_dict_conn
from apps.backend.sql_script import render_params
from infra.config import Settings, get_settings
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)

VIEW_NAME = "fraud_monitoring_dashboard"

# Severity order; LOW RISK rows never enter the view.
ALERT_LEVELS: tuple[str, ...] = ("CONFIRMED FRAUD", "CRITICAL ALERT", "HIGH ALERT", "MEDIUM ALERT")

# Most severe first, then highest score, then newest.
_SEVERITY_ORDER = """
ORDER BY
    CASE alert_level
        WHEN 'CONFIRMED FRAUD' THEN 1
        WHEN 'CRITICAL ALERT' THEN 2
        WHEN 'HIGH ALERT' THEN 3
        WHEN 'MEDIUM ALERT' THEN 4
        ELSE 5
    END,
    fraud_score DESC,
    transaction_date DESC
""".strip()

_CREATE_SQL = """
CREATE MATERIALIZED VIEW IF NOT EXISTS fraud_monitoring_dashboard AS
WITH recent_transactions AS (
    SELECT
        t.*,
        fc.first_name,
        fc.last_name,
        fc.risk_score AS customer_risk_score,
        fc.is_verified
    FROM transactions t
    JOIN foreign_customers fc ON t.customer_id = fc.customer_id
    WHERE t.transaction_date >= CURRENT_TIMESTAMP - INTERVAL '1 hour' * %(window_hours)s
),
fraud_alerts AS (
    SELECT
        *,
        CASE
            WHEN is_fraudulent THEN 'CONFIRMED FRAUD'
            WHEN fraud_score > 0.8 THEN 'CRITICAL ALERT'
            WHEN fraud_score > 0.6 THEN 'HIGH ALERT'
            WHEN fraud_score > 0.4 THEN 'MEDIUM ALERT'
            ELSE 'LOW RISK'
        END AS alert_level
    FROM recent_transactions
)
SELECT
    transaction_id,
    customer_id,
    first_name,
    last_name,
    amount,
    merchant_name,
    merchant_category,
    fraud_score,
    customer_risk_score,
    alert_level,
    transaction_date,
    is_verified,
    CASE
        WHEN alert_level IN ('CONFIRMED FRAUD', 'CRITICAL ALERT') THEN 'IMMEDIATE ACTION REQUIRED'
        WHEN alert_level = 'HIGH ALERT' THEN 'REVIEW RECOMMENDED'
        ELSE 'MONITOR'
    END AS recommended_action
FROM fraud_alerts
WHERE alert_level != 'LOW RISK'
""".lstrip() + _SEVERITY_ORDER


def create_dashboard_sql(window_hours: int) -> str:
    if int(window_hours) <= 0:
        raise ValueError("window_hours must be > 0")
    return render_params(_CREATE_SQL, {"window_hours": int(window_hours)})


def refresh_dashboard_sql() -> str:
    return f"REFRESH MATERIALIZED VIEW {VIEW_NAME}"


def drop_dashboard_sql() -> str:
    return f"DROP MATERIALIZED VIEW IF EXISTS {VIEW_NAME}"


def _run(settings: Settings, statements: Sequence[str]) -> None:
    with db_conn(settings.db.transaction_db) as conn:
        try:
            for stmt in statements:
                execute_conn(conn, stmt)
            conn.commit()
        except Exception:
            conn.rollback()
            raise


def create_dashboard(settings: Settings | None = None, *, replace: bool = False) -> None:
    """Create the view; with *replace*, drop any previous definition first."""
    settings = settings or get_settings()
    window = settings.demo.monitoring_window_hours
    statements = [create_dashboard_sql(window)]
    if replace:
        statements.insert(0, drop_dashboard_sql())
    _run(settings, statements)
    _LOG.info("dashboard_created", view=VIEW_NAME, window_hours=window)


def refresh_dashboard(settings: Settings | None = None) -> None:
    _run(settings or get_settings(), [refresh_dashboard_sql()])
    _LOG.info("dashboard_refreshed", view=VIEW_NAME)


def drop_dashboard(settings: Settings | None = None) -> None:
    _run(settings or get_settings(), [drop_dashboard_sql()])


def fetch_alerts(
    levels: Sequence[str] | None = None,
    limit: int = 10,
    *,
    settings: Settings | None = None,
) -> list[dict[str, Any]]:
    """Read alerts from the view, optionally restricted to *levels*."""
    settings = settings or get_settings()
    wanted = list(levels or ALERT_LEVELS)
    unknown = [lvl for lvl in wanted if lvl not in ALERT_LEVELS]
    if unknown:
        raise ValueError(f"Unknown alert level(s): {', '.join(unknown)}")
    if limit <= 0:
        raise ValueError("limit must be > 0")

    sql = f"SELECT * FROM {VIEW_NAME}\nWHERE alert_level = ANY(%s)\n{_SEVERITY_ORDER}, transaction_id\nLIMIT %s"
    with db_conn(settings.db.transaction_db) as conn:
        return fetch_all_dict_conn(conn, sql, (wanted, int(limit)))
