"""Deterministic synthetic data for both demo databases.

Same seed + same reference time -> same dataset, row for row. Customer ids in
generated rows are 1-based positions in ``Dataset.customers``; the loaders
truncate with ``RESTART IDENTITY`` so serial keys line up with them.
"""

from __future__ import annotations

import hashlib
import random
from datetime import date, datetime, time, timedelta

from contracts.records import (
    Customer,
    CustomerBehavior,
    CustomerFeedback,
    Dataset,
    Transaction,
)
from pipeline import reference_data as ref

FIRST_GENERATED_CUSTOMER = len(ref.CUSTOMERS) + 1
HIGH_VALUE_SHARE = 0.10
FRAUD_SHARE = 0.05
TRANSACTION_WINDOW_HOURS = 72
_BIRTH_EPOCH = date(1980, 1, 1)


def _default_reference_time() -> datetime:
    return datetime.now().replace(microsecond=0)


def generated_customer(n: int, rng: random.Random) -> Customer:
    """Build generated customer number *n* (41, 42, ...)."""
    city, state = ref.GENERATED_LOCATIONS[n % 10]
    return Customer(
        first_name=f"Customer{n}",
        last_name=f"Lastname{n}",
        email=f"customer{n}@email.com",
        phone="555-" + str(n + 100).zfill(4),
        address=f"{n} Test Street",
        city=city,
        state=state,
        zip_code=str(33000 + n).zfill(5),
        date_of_birth=_BIRTH_EPOCH + timedelta(days=50 * n),
        risk_score=round(rng.uniform(0.0, 0.8), 2),
        is_verified=(n % 3) == 0,
    )


def _feedback(customer_count: int, rng: random.Random) -> CustomerFeedback:
    return CustomerFeedback(
        customer_id=rng.randint(1, customer_count),
        feedback_text=rng.choice(ref.FEEDBACK_TEXTS),
        sentiment_score=round(rng.uniform(-1.0, 1.0), 2),
        channel=rng.choice(ref.FEEDBACK_CHANNELS),
    )


def _behavior(customer_id: int, rng: random.Random) -> CustomerBehavior:
    fingerprint = hashlib.md5(str(rng.random()).encode("utf-8")).hexdigest()
    return CustomerBehavior(
        customer_id=customer_id,
        login_frequency=rng.randint(1, 31),
        avg_transaction_amount=round(rng.uniform(100.0, 5100.0), 2),
        preferred_transaction_time=time(rng.randint(0, 23), rng.randint(0, 59)),
        device_fingerprint=fingerprint,
        ip_address=f"192.168.{rng.randint(0, 255)}.{rng.randint(0, 255)}",
        behavior_notes=rng.choice(ref.BEHAVIOR_NOTES),
    )


def _curated_transactions(reference_time: datetime) -> list[Transaction]:
    out: list[Transaction] = []
    count = len(ref.CURATED_TRANSACTIONS)
    for i, row in enumerate(ref.CURATED_TRANSACTIONS):
        (customer_id, amount, kind, merchant, category, country, city, method, card, fraud, score, notes) = row
        out.append(
            Transaction(
                customer_id=customer_id,
                transaction_date=reference_time - timedelta(minutes=count - i),
                amount=amount,
                transaction_type=kind,
                merchant_name=merchant,
                merchant_category=category,
                location_country=country,
                location_city=city,
                payment_method=method,
                card_last_four=card,
                is_fraudulent=fraud,
                fraud_score=score,
                transaction_notes=notes,
            )
        )
    return out


def _generated_transaction(customer_count: int, reference_time: datetime, rng: random.Random) -> Transaction:
    if rng.random() < HIGH_VALUE_SHARE:
        amount = round(rng.uniform(1000.0, 5000.0), 2)
    else:
        amount = round(rng.uniform(10.0, 510.0), 2)
    merchant = rng.choice(ref.MERCHANTS)
    fraudulent = rng.random() < FRAUD_SHARE
    score = rng.uniform(0.60, 1.00) if fraudulent else rng.uniform(0.0, 0.30)
    offset = timedelta(seconds=rng.randint(0, TRANSACTION_WINDOW_HOURS * 3600))
    return Transaction(
        customer_id=rng.randint(1, customer_count),
        transaction_date=reference_time - offset,
        amount=amount,
        transaction_type=rng.choice(ref.TRANSACTION_TYPES),
        merchant_name=merchant.merchant_name,
        merchant_category=merchant.merchant_category,
        location_country="USA",
        location_city=rng.choice(ref.TRANSACTION_CITIES),
        payment_method=rng.choice(ref.PAYMENT_METHODS),
        card_last_four=str(rng.randint(0, 9999)).zfill(4),
        is_fraudulent=fraudulent,
        fraud_score=round(score, 2),
        transaction_notes=rng.choice(ref.TRANSACTION_NOTES),
    )


def generate_dataset(
    seed: int,
    *,
    generated_customers: int = 80,
    extra_feedback: int = 100,
    generated_transactions: int = 130,
    reference_time: datetime | None = None,
) -> Dataset:
    """Build the full demo dataset: curated rows first, then generated ones."""
    if min(generated_customers, extra_feedback, generated_transactions) < 0:
        raise ValueError("generated row counts must be >= 0")

    rng = random.Random(seed)
    now = reference_time or _default_reference_time()

    customers = list(ref.CUSTOMERS)
    for n in range(FIRST_GENERATED_CUSTOMER, FIRST_GENERATED_CUSTOMER + generated_customers):
        customers.append(generated_customer(n, rng))
    customer_count = len(customers)

    feedback = list(ref.FEEDBACK)
    feedback.extend(_feedback(customer_count, rng) for _ in range(extra_feedback))

    behavior = [_behavior(customer_id, rng) for customer_id in range(1, customer_count + 1)]

    transactions = _curated_transactions(now)
    transactions.extend(
        _generated_transaction(customer_count, now, rng) for _ in range(generated_transactions)
    )

    return Dataset(
        customers=customers,
        feedback=feedback,
        behavior=behavior,
        merchants=list(ref.MERCHANTS),
        transactions=transactions,
        fraud_patterns=list(ref.FRAUD_PATTERNS),
        reference_time=now,
    )
