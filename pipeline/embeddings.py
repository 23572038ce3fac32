"""Embedding backfill for the text columns of both databases.

Three providers fill ``vector(384)`` columns that are still NULL:

- ``sql``: the server-side placeholder ``simulate_aidb_embedding(text)``
  installed by ``migrations/common/002_embedding_function.sql``.
- ``aidb``: ``aidb_generate_embedding(text, model)`` on an AIDB-enabled server.
- ``python``: vectors computed here with ``simulate_embedding`` and written
  through the pgvector psycopg2 adapter.

The placeholder derives every dimension from a hash of ``text || i``. Python
uses md5 rather than PostgreSQL's internal ``hashtext``, so the two providers
produce different (but each deterministic) vectors for the same text.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any

import numpy as np

from apps.backend.db import execute_conn, execute_values_conn, fetch_all_conn
from apps.backend.sql_script import quote_literal
from contracts.schema import (
    CUSTOMER_BEHAVIOR,
    CUSTOMER_FEEDBACK,
    EMBEDDING_DIM,
    FRAUD_PATTERNS,
    TRANSACTIONS,
    DatabaseRole,
    TableSpec,
)
from infra.config import EMBEDDING_PROVIDERS
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)

SQL_EMBEDDING_FUNCTION = "simulate_aidb_embedding"
AIDB_EMBEDDING_FUNCTION = "aidb_generate_embedding"
DEFAULT_AIDB_MODEL = "text-embedding-model"


def _signed_hash32(text: str) -> int:
    return int.from_bytes(hashlib.md5(text.encode("utf-8")).digest()[:4], "big", signed=True)


def simulate_embedding(text: str, dim: int = EMBEDDING_DIM) -> np.ndarray:
    """Deterministic pseudo-embedding of *text*, one hashed value per dimension.

    Values follow ``(hash % 2000 - 1000) / 1000`` with a truncating modulo,
    so they fall in ``(-3, 1)``.
    """
    if dim <= 0:
        raise ValueError("dim must be > 0")
    hashes = np.array([_signed_hash32(f"{text}{i}") for i in range(1, dim + 1)], dtype=np.int64)
    return ((np.fmod(hashes, 2000) - 1000) / 1000.0).astype(np.float32)


@dataclass(frozen=True)
class EmbeddingTarget:
    """An embedding column and the SQL expression that yields its source text."""

    table: TableSpec
    column: str
    source_sql: str

    @property
    def role(self) -> DatabaseRole:
        return self.table.role


EMBEDDING_TARGETS: tuple[EmbeddingTarget, ...] = (
    EmbeddingTarget(CUSTOMER_FEEDBACK, "feedback_embedding", "feedback_text"),
    EmbeddingTarget(CUSTOMER_BEHAVIOR, "behavior_embedding", "behavior_notes"),
    EmbeddingTarget(
        TRANSACTIONS,
        "transaction_embedding",
        "COALESCE(transaction_notes, '') || ' ' || COALESCE(merchant_name, '') || ' ' || "
        "COALESCE(merchant_category, '') || ' ' || amount::text",
    ),
    EmbeddingTarget(FRAUD_PATTERNS, "pattern_embedding", "pattern_description || ' ' || detection_rules"),
)


def targets_for_role(role: DatabaseRole) -> tuple[EmbeddingTarget, ...]:
    return tuple(t for t in EMBEDDING_TARGETS if t.role == role)


def _check_provider(provider: str) -> str:
    text = str(provider or "").strip().lower()
    if text not in EMBEDDING_PROVIDERS:
        raise ValueError(f"Unknown embedding provider: {provider!r} (expected one of {', '.join(EMBEDDING_PROVIDERS)})")
    return text


def embedding_expression(target: EmbeddingTarget, provider: str, model: str = DEFAULT_AIDB_MODEL) -> str:
    """Server-side expression computing *target*'s embedding."""
    if _check_provider(provider) == "aidb":
        return f"{AIDB_EMBEDDING_FUNCTION}({target.source_sql}, {quote_literal(model)})"
    return f"{SQL_EMBEDDING_FUNCTION}({target.source_sql})"


def update_statement(target: EmbeddingTarget, provider: str, model: str = DEFAULT_AIDB_MODEL) -> str:
    return (
        f"UPDATE {target.table.name}\n"
        f"SET {target.column} = {embedding_expression(target, provider, model)}\n"
        f"WHERE {target.column} IS NULL"
    )


def embedding_update_statements(
    role: DatabaseRole, provider: str = "sql", model: str = DEFAULT_AIDB_MODEL
) -> list[str]:
    """UPDATE statements for a SQL script.

    A script has no Python side, so the ``python`` provider renders with the
    SQL placeholder function.
    """
    server_provider = "sql" if _check_provider(provider) == "python" else provider
    return [update_statement(t, server_provider, model) for t in targets_for_role(role)]


def _backfill_python(conn: Any, target: EmbeddingTarget) -> int:
    from pgvector.psycopg2 import register_vector  # type: ignore

    register_vector(conn)
    key = target.table.primary_key
    rows = fetch_all_conn(
        conn,
        f"SELECT {key}, {target.source_sql} FROM {target.table.name} "
        f"WHERE {target.column} IS NULL ORDER BY {key}",
    )
    values = [(row[0], simulate_embedding(str(row[1] or ""))) for row in rows]
    execute_values_conn(
        conn,
        f"UPDATE {target.table.name} AS t SET {target.column} = data.v "
        f"FROM (VALUES %s) AS data(id, v) WHERE t.{key} = data.id",
        values,
        template="(%s, %s::vector)",
    )
    return len(values)


def backfill_embeddings(
    conn: Any,
    role: DatabaseRole,
    *,
    provider: str = "sql",
    model: str = DEFAULT_AIDB_MODEL,
) -> dict[str, int]:
    """Fill NULL embeddings of *role*'s tables; returns rows updated per table."""
    provider = _check_provider(provider)
    counts: dict[str, int] = {}
    try:
        for target in targets_for_role(role):
            if provider == "python":
                counts[target.table.name] = _backfill_python(conn, target)
            else:
                counts[target.table.name] = execute_conn(conn, update_statement(target, provider, model))
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    _LOG.info("embeddings_backfilled", role=role, provider=provider, rows=counts)
    return counts
