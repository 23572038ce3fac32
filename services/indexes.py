"""Vector and B-tree indexes for the demo queries.

The similarity queries order by ``<->`` (Euclidean distance), so the ivfflat
indexes use ``vector_l2_ops``; an index built with another operator class
would never be picked for them.
"""

from __future__ import annotations

from dataclasses import dataclass

from apps.backend.db import db_conn, execute_conn
from contracts.schema import DatabaseRole
from infra.config import Settings, get_settings
from infra.logging_config import StructuredLogger

_LOG = StructuredLogger(__name__)

VECTOR_OPCLASS = "vector_l2_ops"


@dataclass(frozen=True)
class VectorIndex:
    name: str
    role: DatabaseRole
    table: str
    column: str


@dataclass(frozen=True)
class BTreeIndex:
    name: str
    role: DatabaseRole
    table: str
    expression: str


VECTOR_INDEXES: tuple[VectorIndex, ...] = (
    VectorIndex("idx_feedback_embedding_ivfflat", "customer", "customer_feedback", "feedback_embedding"),
    VectorIndex("idx_behavior_embedding_ivfflat", "customer", "customer_behavior", "behavior_embedding"),
    VectorIndex("idx_transaction_embedding_ivfflat", "transaction", "transactions", "transaction_embedding"),
    VectorIndex("idx_pattern_embedding_ivfflat", "transaction", "fraud_patterns", "pattern_embedding"),
)

BTREE_INDEXES: tuple[BTreeIndex, ...] = (
    BTreeIndex("idx_transactions_customer_id", "transaction", "transactions", "customer_id"),
    BTreeIndex("idx_transactions_fraud_score", "transaction", "transactions", "fraud_score DESC"),
    BTreeIndex("idx_transactions_date", "transaction", "transactions", "transaction_date DESC"),
    BTreeIndex("idx_transactions_amount", "transaction", "transactions", "amount DESC"),
)


def index_statements(role: DatabaseRole, lists: int = 100) -> list[str]:
    if lists < 1:
        raise ValueError("lists must be >= 1")
    out = [
        f"CREATE INDEX IF NOT EXISTS {ix.name}\n"
        f"ON {ix.table} USING ivfflat ({ix.column} {VECTOR_OPCLASS})\n"
        f"WITH (lists = {int(lists)})"
        for ix in VECTOR_INDEXES
        if ix.role == role
    ]
    out.extend(
        f"CREATE INDEX IF NOT EXISTS {ix.name} ON {ix.table}({ix.expression})"
        for ix in BTREE_INDEXES
        if ix.role == role
    )
    return out


def create_indexes(role: DatabaseRole, lists: int | None = None, *, settings: Settings | None = None) -> int:
    """Create *role*'s indexes; returns the number of statements executed."""
    settings = settings or get_settings()
    lists = settings.demo.ivfflat_lists if lists is None else lists
    statements = index_statements(role, lists)
    database = settings.database_for_role(role)
    with db_conn(database) as conn:
        try:
            for stmt in statements:
                execute_conn(conn, stmt)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
    _LOG.info("indexes_created", database=database, count=len(statements), lists=lists)
    return len(statements)
