"""
Canned analysis queries over both demo databases.

Each query lives in ``services/queries/<query_id>.sql`` with a header block:

  -- query_id: similar_feedback
  -- name: Feedback similar to ...
  -- database: customer
  -- section: VECTOR SIMILARITY SEARCH

Parameters use psycopg2 pyformat (``%(limit)s``); their defaults are declared
in ``QUERY_SPECS`` so thresholds stay visible next to the query list.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from apps.backend.db import db_conn, fetch_columns_and_rows_conn
from apps.backend.sql_script import param_names, render_params
from contracts.schema import DATABASE_ROLES, DatabaseRole
from infra.config import Settings, get_settings
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)

QUERIES_DIR = Path(__file__).resolve().parent / "queries"


class UnknownQueryError(KeyError):
    """Raised when a query id is not registered."""


class QueryParameterError(ValueError):
    """Raised for unknown, missing or malformed query parameters."""


@dataclass(frozen=True)
class QuerySpec:
    """Registry entry for one SQL file."""

    filename: str
    query_id: str
    defaults: Mapping[str, Any] = field(default_factory=dict)


# Keep ordering deterministic: this is also the order queries run and render in.
QUERY_SPECS: tuple[QuerySpec, ...] = (
    QuerySpec("customer_transaction_summary.sql", "customer_transaction_summary", {"limit": 20}),
    QuerySpec(
        "high_risk_sentiment.sql",
        "high_risk_sentiment",
        {"min_risk": 0.5, "negative_sentiment": -0.3, "max_avg_sentiment": -0.2},
    ),
    QuerySpec("similar_feedback.sql", "similar_feedback", {"keyword": "fraud", "max_distance": 0.5, "limit": 10}),
    QuerySpec("similar_transactions.sql", "similar_transactions", {"max_distance": 0.3, "limit": 15}),
    QuerySpec("similar_behavior.sql", "similar_behavior", {"min_risk": 0.7, "max_distance": 0.4, "limit": 10}),
    QuerySpec("fraud_neighbors.sql", "fraud_neighbors", {"max_distance": 0.3, "limit": 20}),
    QuerySpec("multi_factor_risk.sql", "multi_factor_risk", {"limit": 25}),
    QuerySpec("pattern_matches.sql", "pattern_matches", {"max_distance": 0.6, "min_avg_risk": 0.6, "limit": 20}),
    QuerySpec("customer_segments.sql", "customer_segments"),
    QuerySpec("sentiment_vs_fraud.sql", "sentiment_vs_fraud"),
)


@dataclass(frozen=True)
class AnalysisQuery:
    query_id: str
    name: str
    role: DatabaseRole
    section: str
    sql: str
    defaults: Mapping[str, Any]

    @property
    def params(self) -> list[str]:
        return param_names(self.sql)


@dataclass(frozen=True)
class QueryResult:
    query_id: str
    database: str
    columns: list[str]
    rows: list[tuple[Any, ...]]

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row, strict=False)) for row in self.rows]


_META_LINE_RE = re.compile(r"^--\s*(?P<key>[a-zA-Z_][a-zA-Z0-9_\- ]*)\s*:\s*(?P<value>.+?)\s*$")


def _parse_header(sql_text: str) -> dict[str, str]:
    meta: dict[str, str] = {}
    for line in sql_text.splitlines()[:20]:
        m = _META_LINE_RE.match(line.strip())
        if not m:
            continue
        meta[m.group("key").strip().lower()] = m.group("value").strip()
    return meta


def _strip_header(sql_text: str) -> str:
    lines = sql_text.splitlines()
    while lines and (not lines[0].strip() or _META_LINE_RE.match(lines[0].strip())):
        lines.pop(0)
    return "\n".join(lines).strip().rstrip(";").strip()


def load_query(spec: QuerySpec, queries_dir: Path = QUERIES_DIR) -> AnalysisQuery:
    text = (queries_dir / spec.filename).read_text(encoding="utf-8")
    meta = _parse_header(text)

    query_id = meta.get("query_id") or spec.query_id
    if query_id != spec.query_id:
        raise ValueError(f"{spec.filename}: header query_id {query_id!r} != registered {spec.query_id!r}")
    role = meta.get("database", "")
    if role not in DATABASE_ROLES:
        raise ValueError(f"{spec.filename}: database header must be one of {DATABASE_ROLES}, got {role!r}")

    return AnalysisQuery(
        query_id=query_id,
        name=meta.get("name") or query_id,
        role=role,  # type: ignore[arg-type]
        section=meta.get("section", ""),
        sql=_strip_header(text),
        defaults=dict(spec.defaults),
    )


def build_queries(queries_dir: Path = QUERIES_DIR) -> list[AnalysisQuery]:
    """Load every registered query in registry order."""
    return [load_query(spec, queries_dir) for spec in QUERY_SPECS]


def get_query(query_id: str, queries_dir: Path = QUERIES_DIR) -> AnalysisQuery:
    for spec in QUERY_SPECS:
        if spec.query_id == query_id:
            return load_query(spec, queries_dir)
    raise UnknownQueryError(query_id)


def _coerce(name: str, raw: Any, default: Any) -> Any:
    if not isinstance(raw, str) or default is None or isinstance(default, str):
        return raw
    try:
        if isinstance(default, bool):
            return raw.strip().lower() in {"1", "true", "yes", "on"}
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
    except ValueError as exc:
        raise QueryParameterError(f"Parameter {name!r} expects {type(default).__name__}, got {raw!r}") from exc
    return raw


def resolve_params(query: AnalysisQuery, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
    """Merge *overrides* over the query defaults.

    String overrides (from the CLI) are coerced to the default's type.
    """
    overrides = dict(overrides or {})
    expected = query.params
    unknown = sorted(set(overrides) - set(expected))
    if unknown:
        raise QueryParameterError(
            f"Unknown parameter(s) for {query.query_id}: {', '.join(unknown)} "
            f"(accepted: {', '.join(expected) or 'none'})"
        )

    params: dict[str, Any] = {}
    for name in expected:
        default = query.defaults.get(name)
        if name in overrides:
            params[name] = _coerce(name, overrides[name], default)
        elif name in query.defaults:
            params[name] = default
        else:
            raise QueryParameterError(f"Missing value for {query.query_id} parameter {name!r}")
    return params


def render_query(query: AnalysisQuery, overrides: Mapping[str, Any] | None = None) -> str:
    """Query text with parameters inlined as SQL literals."""
    return render_params(query.sql, resolve_params(query, overrides))


def run_query(
    query_id: str,
    overrides: Mapping[str, Any] | None = None,
    *,
    settings: Settings | None = None,
) -> QueryResult:
    settings = settings or get_settings()
    query = get_query(query_id)
    params = resolve_params(query, overrides)
    database = settings.database_for_role(query.role)
    with db_conn(database) as conn:
        columns, rows = fetch_columns_and_rows_conn(conn, query.sql, params)
    _LOG.info("query_done", query_id=query_id, database=database, rows=len(rows))
    return QueryResult(query_id=query_id, database=database, columns=columns, rows=list(rows))


def run_all_queries(*, settings: Settings | None = None) -> list[QueryResult]:
    settings = settings or get_settings()
    return [run_query(spec.query_id, settings=settings) for spec in QUERY_SPECS]
