"""Tests for the synthetic dataset generator."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from pipeline import reference_data as ref
from pipeline.generate import FIRST_GENERATED_CUSTOMER, TRANSACTION_WINDOW_HOURS, generate_dataset

_NOW = datetime(2024, 5, 1, 12, 0, 0)


def _dataset(seed: int = 42, **kwargs):
    return generate_dataset(seed, reference_time=_NOW, **kwargs)


def test_same_seed_same_dataset() -> None:
    assert _dataset(7) == _dataset(7)


def test_different_seed_changes_generated_rows_only() -> None:
    a, b = _dataset(1), _dataset(2)

    assert a.customers[: len(ref.CUSTOMERS)] == b.customers[: len(ref.CUSTOMERS)]
    assert a.transactions[: len(ref.CURATED_TRANSACTIONS)] == b.transactions[: len(ref.CURATED_TRANSACTIONS)]
    assert a.transactions != b.transactions


def test_default_row_counts() -> None:
    counts = _dataset().row_counts()

    assert counts == {
        "customers": 120,
        "customer_feedback": 120,
        "customer_behavior": 120,
        "merchants": 10,
        "transactions": 152,
        "fraud_patterns": 8,
    }


def test_curated_reference_rows() -> None:
    assert len(ref.CUSTOMERS) == 40
    assert len(ref.FEEDBACK) == 20
    assert len(ref.MERCHANTS) == 10
    assert len(ref.FRAUD_PATTERNS) == 8
    assert len(ref.CURATED_TRANSACTIONS) == 22
    assert sum(1 for row in ref.CURATED_TRANSACTIONS if row[9]) == 6
    assert len({c.email for c in ref.CUSTOMERS}) == 40


def test_generated_customers_follow_numbering() -> None:
    ds = _dataset(generated_customers=3)
    generated = ds.customers[len(ref.CUSTOMERS) :]

    assert [c.first_name for c in generated] == [f"Customer{n}" for n in range(41, 44)]
    assert FIRST_GENERATED_CUSTOMER == 41
    first = generated[0]
    assert first.email == "customer41@email.com"
    assert first.phone == "555-0141"
    assert first.zip_code == "33041"
    assert 0.0 <= first.risk_score <= 0.8
    assert first.is_verified is False
    assert generated[1].is_verified is True  # 42 % 3 == 0


def test_customer_references_stay_in_range() -> None:
    ds = _dataset(generated_customers=5, extra_feedback=50, generated_transactions=60)
    n = len(ds.customers)

    assert all(1 <= f.customer_id <= n for f in ds.feedback)
    assert all(1 <= t.customer_id <= n for t in ds.transactions)
    assert [b.customer_id for b in ds.behavior] == list(range(1, n + 1))


def test_behavior_values_in_range() -> None:
    for b in _dataset().behavior:
        assert 1 <= b.login_frequency <= 31
        assert 100.0 <= b.avg_transaction_amount <= 5100.0
        assert 0 <= b.preferred_transaction_time.hour <= 23
        assert len(b.device_fingerprint) == 32
        assert b.ip_address.startswith("192.168.")
        assert b.behavior_notes in ref.BEHAVIOR_NOTES


def test_generated_transactions_follow_rules() -> None:
    ds = _dataset(generated_transactions=300)
    merchants = {m.merchant_name: m.merchant_category for m in ref.MERCHANTS}

    for t in ds.transactions[len(ref.CURATED_TRANSACTIONS) :]:
        assert 10.0 <= t.amount <= 5000.0
        assert merchants[t.merchant_name] == t.merchant_category
        assert t.location_country == "USA"
        assert len(t.card_last_four) == 4 and t.card_last_four.isdigit()
        assert _NOW - timedelta(hours=TRANSACTION_WINDOW_HOURS) <= t.transaction_date <= _NOW
        if t.is_fraudulent:
            assert 0.6 <= t.fraud_score <= 1.0
        else:
            assert 0.0 <= t.fraud_score <= 0.3


def test_curated_transactions_are_recent_and_ordered() -> None:
    curated = _dataset().transactions[: len(ref.CURATED_TRANSACTIONS)]
    dates = [t.transaction_date for t in curated]

    assert dates == sorted(dates)
    assert dates[-1] == _NOW - timedelta(minutes=1)


def test_zero_generated_rows_keeps_curated_data() -> None:
    ds = _dataset(generated_customers=0, extra_feedback=0, generated_transactions=0)

    assert len(ds.customers) == 40
    assert len(ds.feedback) == 20
    assert len(ds.transactions) == 22


def test_negative_counts_rejected() -> None:
    with pytest.raises(ValueError):
        _dataset(generated_transactions=-1)


def test_as_row_follows_insert_columns() -> None:
    customer = _dataset().customers[0]
    row = customer.as_row()

    assert row[0] == "John"
    assert row[2] == "john.smith@email.com"
    assert len(row) == len(customer.table.insert_columns)
