"""
db_metrics.py

Query-timing helpers for the PostgreSQL layer.

Every statement issued through ``apps.backend.db`` is wrapped in
``measure_query`` so slow statements (vector scans without an index, foreign
table joins that pull whole remote tables) show up in the logs with the
database they ran against.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager

_LOGGER = logging.getLogger(__name__)
_HISTOGRAM_NAME = "db_query_duration_ms"
_METRIC_EMITTER: Callable[[str, float, Sequence[str]], None] | None = None


def _env_flag(name: str, default: bool) -> bool:
    """Parse a boolean environment flag with a safe default."""
    raw = (os.getenv(name) or "").strip().lower()
    if raw == "":
        return default
    return raw in {"1", "true", "yes", "on"}


def query_metrics_enabled() -> bool:
    """Return whether DB query instrumentation is enabled."""
    return _env_flag("DB_QUERY_METRICS_ENABLED", True)


def slow_query_threshold_ms() -> float:
    """Return the slow-query warning threshold in milliseconds."""
    raw = (os.getenv("DB_SLOW_QUERY_THRESHOLD_MS") or "").strip()
    if not raw:
        return 1000.0
    try:
        value = float(raw)
    except ValueError:
        return 1000.0
    return max(0.0, value)


def register_histogram_emitter(emitter: Callable[[str, float, Sequence[str]], None] | None) -> None:
    """Register a histogram emitter callback.

    The callback receives the metric name, the observed value in milliseconds
    and tags such as ``["query:execute_conn:update", "database:customerdb"]``.
    """
    global _METRIC_EMITTER
    _METRIC_EMITTER = emitter


def _emit_histogram(name: str, value: float, tags: Sequence[str]) -> None:
    if _METRIC_EMITTER is None:
        return
    try:
        _METRIC_EMITTER(name, value, tags)
    except (TypeError, ValueError, RuntimeError) as exc:
        _LOGGER.debug("db metric emitter failed: %s", exc)


def _tags(name: str, database: str | None) -> list[str]:
    tags = [f"query:{name}"]
    if database:
        tags.append(f"database:{database}")
    return tags


@contextmanager
def measure_query(name: str, *, database: str | None = None) -> Iterator[None]:
    """Measure statement duration, warn on slow statements and emit histogram data."""
    if not query_metrics_enabled():
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000.0
        rounded_ms = round(duration_ms, 2)
        if duration_ms >= slow_query_threshold_ms():
            _LOGGER.warning(
                "slow_query query_name=%s database=%s duration_ms=%.2f",
                str(name),
                database or "-",
                rounded_ms,
            )
        _emit_histogram(_HISTOGRAM_NAME, rounded_ms, _tags(name, database))
