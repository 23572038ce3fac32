"""Row records produced by the synthetic data generator.

Each dataclass carries exactly the loader-supplied columns of its table (see
``TableSpec.insert_columns``), in the same order, so ``as_row()`` can feed
``execute_values`` and the script renderer without per-table glue.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, ClassVar

from contracts.schema import (
    CUSTOMER_BEHAVIOR,
    CUSTOMER_FEEDBACK,
    CUSTOMERS,
    FRAUD_PATTERNS,
    MERCHANTS,
    TRANSACTIONS,
    TableSpec,
)


class _Record:
    table: ClassVar[TableSpec]

    def as_row(self) -> tuple[Any, ...]:
        return tuple(getattr(self, name) for name in self.table.insert_columns)


@dataclass(frozen=True)
class Customer(_Record):
    table: ClassVar[TableSpec] = CUSTOMERS

    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    state: str
    zip_code: str
    date_of_birth: date
    risk_score: float
    is_verified: bool


@dataclass(frozen=True)
class CustomerFeedback(_Record):
    table: ClassVar[TableSpec] = CUSTOMER_FEEDBACK

    customer_id: int
    feedback_text: str
    sentiment_score: float
    channel: str


@dataclass(frozen=True)
class CustomerBehavior(_Record):
    table: ClassVar[TableSpec] = CUSTOMER_BEHAVIOR

    customer_id: int
    login_frequency: int
    avg_transaction_amount: float
    preferred_transaction_time: time
    device_fingerprint: str
    ip_address: str
    behavior_notes: str


@dataclass(frozen=True)
class Merchant(_Record):
    table: ClassVar[TableSpec] = MERCHANTS

    merchant_name: str
    merchant_category: str
    risk_rating: float
    location_country: str
    location_city: str
    merchant_description: str


@dataclass(frozen=True)
class Transaction(_Record):
    table: ClassVar[TableSpec] = TRANSACTIONS

    customer_id: int
    transaction_date: datetime
    amount: float
    transaction_type: str
    merchant_name: str
    merchant_category: str
    location_country: str
    location_city: str
    payment_method: str
    card_last_four: str
    is_fraudulent: bool
    fraud_score: float
    transaction_notes: str


@dataclass(frozen=True)
class FraudPattern(_Record):
    table: ClassVar[TableSpec] = FRAUD_PATTERNS

    pattern_name: str
    pattern_description: str
    detection_rules: str
    risk_weight: float


@dataclass
class Dataset:
    """Everything the loaders insert, grouped per table."""

    customers: list[Customer] = field(default_factory=list)
    feedback: list[CustomerFeedback] = field(default_factory=list)
    behavior: list[CustomerBehavior] = field(default_factory=list)
    merchants: list[Merchant] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    fraud_patterns: list[FraudPattern] = field(default_factory=list)
    # Clock the transaction dates were generated against.
    reference_time: datetime | None = None

    def records_for(self, table: TableSpec) -> list[_Record]:
        by_table: dict[str, list[Any]] = {
            CUSTOMERS.name: self.customers,
            CUSTOMER_FEEDBACK.name: self.feedback,
            CUSTOMER_BEHAVIOR.name: self.behavior,
            MERCHANTS.name: self.merchants,
            TRANSACTIONS.name: self.transactions,
            FRAUD_PATTERNS.name: self.fraud_patterns,
        }
        return list(by_table[table.name])

    def row_counts(self) -> dict[str, int]:
        return {
            CUSTOMERS.name: len(self.customers),
            CUSTOMER_FEEDBACK.name: len(self.feedback),
            CUSTOMER_BEHAVIOR.name: len(self.behavior),
            MERCHANTS.name: len(self.merchants),
            TRANSACTIONS.name: len(self.transactions),
            FRAUD_PATTERNS.name: len(self.fraud_patterns),
        }
