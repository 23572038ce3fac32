"""Canonical table definitions for the two demo databases.

These specs are the single Python-side description of the relational schema.
The DDL itself lives in ``migrations/``; the specs drive everything that must
agree with it:

- the column order used by the bulk loaders,
- the foreign tables that mirror a table of the *other* database,
- the embedding columns backfilled by ``pipeline.embeddings``.

``tests/test_schema_contracts.py`` checks the specs against the migration SQL.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

EMBEDDING_DIM: int = 384

DatabaseRole = Literal["customer", "transaction"]
DATABASE_ROLES: tuple[DatabaseRole, ...] = ("customer", "transaction")

VECTOR_TYPE = f"vector({EMBEDDING_DIM})"


@dataclass(frozen=True)
class ColumnSpec:
    """One column: name, SQL type and the constraint/default clause (if any)."""

    name: str
    sql_type: str
    constraints: str = ""

    @property
    def is_serial(self) -> bool:
        return self.sql_type.upper() == "SERIAL"

    @property
    def bare_type(self) -> str:
        """Type usable in a foreign table definition (SERIAL becomes INTEGER)."""
        return "INTEGER" if self.is_serial else self.sql_type


@dataclass(frozen=True)
class TableSpec:
    """A table of one demo database."""

    name: str
    role: DatabaseRole
    columns: tuple[ColumnSpec, ...]
    # Columns filled by the database (serial key, timestamps, embeddings).
    generated: tuple[str, ...] = ()

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    @property
    def insert_columns(self) -> tuple[str, ...]:
        """Columns supplied by the loaders, in declaration order."""
        return tuple(c.name for c in self.columns if not c.is_serial and c.name not in self.generated)

    @property
    def primary_key(self) -> str:
        return self.columns[0].name

    def column(self, name: str) -> ColumnSpec:
        for col in self.columns:
            if col.name == name:
                return col
        raise KeyError(f"{self.name} has no column {name!r}")

    def foreign_columns(self) -> tuple[tuple[str, str], ...]:
        """``(name, type)`` pairs for a foreign-table mirror of this table."""
        return tuple((c.name, c.bare_type) for c in self.columns)


CUSTOMERS = TableSpec(
    name="customers",
    role="customer",
    columns=(
        ColumnSpec("customer_id", "SERIAL", "PRIMARY KEY"),
        ColumnSpec("first_name", "VARCHAR(50)", "NOT NULL"),
        ColumnSpec("last_name", "VARCHAR(50)", "NOT NULL"),
        ColumnSpec("email", "VARCHAR(100)", "UNIQUE NOT NULL"),
        ColumnSpec("phone", "VARCHAR(20)"),
        ColumnSpec("address", "TEXT"),
        ColumnSpec("city", "VARCHAR(50)"),
        ColumnSpec("state", "VARCHAR(50)"),
        ColumnSpec("zip_code", "VARCHAR(10)"),
        ColumnSpec("country", "VARCHAR(50)", "DEFAULT 'USA'"),
        ColumnSpec("date_of_birth", "DATE"),
        ColumnSpec("account_created", "TIMESTAMP", "DEFAULT CURRENT_TIMESTAMP"),
        ColumnSpec("risk_score", "DECIMAL(3,2)", "DEFAULT 0.00"),
        ColumnSpec("is_verified", "BOOLEAN", "DEFAULT FALSE"),
        ColumnSpec("account_status", "VARCHAR(20)", "DEFAULT 'active'"),
    ),
    generated=("country", "account_created", "account_status"),
)

CUSTOMER_FEEDBACK = TableSpec(
    name="customer_feedback",
    role="customer",
    columns=(
        ColumnSpec("feedback_id", "SERIAL", "PRIMARY KEY"),
        ColumnSpec("customer_id", "INTEGER", "REFERENCES customers(customer_id)"),
        ColumnSpec("feedback_text", "TEXT", "NOT NULL"),
        ColumnSpec("sentiment_score", "DECIMAL(3,2)"),
        ColumnSpec("feedback_date", "TIMESTAMP", "DEFAULT CURRENT_TIMESTAMP"),
        ColumnSpec("channel", "VARCHAR(20)", "DEFAULT 'web'"),
        ColumnSpec("feedback_embedding", VECTOR_TYPE),
    ),
    generated=("feedback_date", "feedback_embedding"),
)

CUSTOMER_BEHAVIOR = TableSpec(
    name="customer_behavior",
    role="customer",
    columns=(
        ColumnSpec("behavior_id", "SERIAL", "PRIMARY KEY"),
        ColumnSpec("customer_id", "INTEGER", "REFERENCES customers(customer_id)"),
        ColumnSpec("login_frequency", "INTEGER", "DEFAULT 0"),
        ColumnSpec("avg_transaction_amount", "DECIMAL(10,2)", "DEFAULT 0.00"),
        ColumnSpec("preferred_transaction_time", "TIME"),
        ColumnSpec("device_fingerprint", "TEXT"),
        ColumnSpec("ip_address", "INET"),
        ColumnSpec("behavior_notes", "TEXT"),
        ColumnSpec("last_updated", "TIMESTAMP", "DEFAULT CURRENT_TIMESTAMP"),
        ColumnSpec("behavior_embedding", VECTOR_TYPE),
    ),
    generated=("last_updated", "behavior_embedding"),
)

TRANSACTIONS = TableSpec(
    name="transactions",
    role="transaction",
    columns=(
        ColumnSpec("transaction_id", "SERIAL", "PRIMARY KEY"),
        ColumnSpec("customer_id", "INTEGER", "NOT NULL"),
        ColumnSpec("transaction_date", "TIMESTAMP", "DEFAULT CURRENT_TIMESTAMP"),
        ColumnSpec("amount", "DECIMAL(12,2)", "NOT NULL"),
        ColumnSpec("currency", "VARCHAR(3)", "DEFAULT 'USD'"),
        ColumnSpec("transaction_type", "VARCHAR(20)", "NOT NULL"),
        ColumnSpec("merchant_name", "VARCHAR(100)"),
        ColumnSpec("merchant_category", "VARCHAR(50)"),
        ColumnSpec("location_country", "VARCHAR(50)"),
        ColumnSpec("location_city", "VARCHAR(50)"),
        ColumnSpec("payment_method", "VARCHAR(20)"),
        ColumnSpec("card_last_four", "VARCHAR(4)"),
        ColumnSpec("is_fraudulent", "BOOLEAN", "DEFAULT FALSE"),
        ColumnSpec("fraud_score", "DECIMAL(3,2)", "DEFAULT 0.00"),
        ColumnSpec("transaction_notes", "TEXT"),
        ColumnSpec("transaction_embedding", VECTOR_TYPE),
    ),
    generated=("currency", "transaction_embedding"),
)

MERCHANTS = TableSpec(
    name="merchants",
    role="transaction",
    columns=(
        ColumnSpec("merchant_id", "SERIAL", "PRIMARY KEY"),
        ColumnSpec("merchant_name", "VARCHAR(100)", "NOT NULL"),
        ColumnSpec("merchant_category", "VARCHAR(50)"),
        ColumnSpec("risk_rating", "DECIMAL(3,2)", "DEFAULT 0.00"),
        ColumnSpec("location_country", "VARCHAR(50)"),
        ColumnSpec("location_city", "VARCHAR(50)"),
        ColumnSpec("merchant_description", "TEXT"),
        ColumnSpec("is_verified", "BOOLEAN", "DEFAULT TRUE"),
    ),
    generated=("is_verified",),
)

FRAUD_PATTERNS = TableSpec(
    name="fraud_patterns",
    role="transaction",
    columns=(
        ColumnSpec("pattern_id", "SERIAL", "PRIMARY KEY"),
        ColumnSpec("pattern_name", "VARCHAR(100)", "NOT NULL"),
        ColumnSpec("pattern_description", "TEXT"),
        ColumnSpec("detection_rules", "TEXT"),
        ColumnSpec("risk_weight", "DECIMAL(3,2)"),
        ColumnSpec("pattern_embedding", VECTOR_TYPE),
        ColumnSpec("created_date", "TIMESTAMP", "DEFAULT CURRENT_TIMESTAMP"),
        ColumnSpec("last_updated", "TIMESTAMP", "DEFAULT CURRENT_TIMESTAMP"),
    ),
    generated=("pattern_embedding", "created_date", "last_updated"),
)

# Load order matters: referenced tables first.
TABLES: tuple[TableSpec, ...] = (
    CUSTOMERS,
    CUSTOMER_FEEDBACK,
    CUSTOMER_BEHAVIOR,
    MERCHANTS,
    TRANSACTIONS,
    FRAUD_PATTERNS,
)


def tables_for_role(role: DatabaseRole) -> tuple[TableSpec, ...]:
    return tuple(t for t in TABLES if t.role == role)


def get_table(name: str) -> TableSpec:
    for table in TABLES:
        if table.name == name:
            return table
    raise KeyError(f"Unknown table: {name!r}")


@dataclass(frozen=True)
class ForeignTableMirror:
    """A table of *source_role*'s database exposed in the other database."""

    foreign_name: str
    source: TableSpec

    @property
    def local_role(self) -> DatabaseRole:
        return "customer" if self.source.role == "transaction" else "transaction"


FOREIGN_TABLE_MIRRORS: tuple[ForeignTableMirror, ...] = (
    ForeignTableMirror("foreign_customers", CUSTOMERS),
    ForeignTableMirror("foreign_customer_feedback", CUSTOMER_FEEDBACK),
    ForeignTableMirror("foreign_customer_behavior", CUSTOMER_BEHAVIOR),
    ForeignTableMirror("foreign_transactions", TRANSACTIONS),
)


def mirrors_for_role(local_role: DatabaseRole) -> tuple[ForeignTableMirror, ...]:
    """Foreign tables that live in *local_role*'s database."""
    return tuple(m for m in FOREIGN_TABLE_MIRRORS if m.local_role == local_role)


def other_role(role: DatabaseRole) -> DatabaseRole:
    return "transaction" if role == "customer" else "customer"
