from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from fleet_leasing.domain.models import Payment, PaymentStatus


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def days_overdue(due_date: date, as_of: date | datetime) -> int:
    """Days past due, rounded up and never negative."""
    if isinstance(as_of, datetime):
        delta = as_of - datetime.combine(_as_date(due_date), datetime.min.time(), tzinfo=as_of.tzinfo)
        days = math.ceil(delta.total_seconds() / 86400)
    else:
        days = (as_of - _as_date(due_date)).days
    return max(0, days)


def effective_status(payment: Payment, as_of: date | datetime | None = None) -> PaymentStatus:
    """
    Status as shown to operators. A pending payment whose due date has passed
    reads as overdue; nothing is written back.
    """
    if as_of is None or payment.status is not PaymentStatus.pending:
        return payment.status
    if _as_date(as_of) > _as_date(payment.due_date):
        return PaymentStatus.overdue
    return payment.status


def collection_rate(collected: float, expected: float) -> float:
    """Collected share of expected, in percent. 0.0 when nothing is expected."""
    if expected <= 0:
        return 0.0
    return collected / expected * 100.0


@dataclass(frozen=True)
class PaymentStats:
    counts: dict[PaymentStatus, int] = field(default_factory=dict)
    collected: float = 0.0
    expected: float = 0.0

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def collection_rate(self) -> float:
        return collection_rate(self.collected, self.expected)

    def count(self, status: PaymentStatus | str) -> int:
        return self.counts.get(PaymentStatus(status), 0)

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "counts": {s.value: self.count(s) for s in PaymentStatus},
            "collected": self.collected,
            "expected": self.expected,
            "collection_rate": self.collection_rate,
        }


def payment_stats(payments: Iterable[Payment], as_of: date | datetime | None = None) -> PaymentStats:
    """
    Roll up a set of payments. With `as_of`, counts use the effective status so
    expired pending payments land under overdue.
    """
    counts = {s: 0 for s in PaymentStatus}
    collected = 0.0
    expected = 0.0
    for p in payments:
        counts[effective_status(p, as_of)] += 1
        expected += p.amount
        if p.status is PaymentStatus.paid:
            collected += p.amount
    return PaymentStats(counts=counts, collected=float(collected), expected=float(expected))


def latest_payment(payments: Iterable[Payment], lessee_id: str) -> Payment | None:
    own = [p for p in payments if p.lessee_id == lessee_id]
    if not own:
        return None
    return max(own, key=lambda p: (p.due_date, p.id))


def latest_payment_status(
    payments: Iterable[Payment],
    lessee_id: str,
    as_of: date | datetime | None = None,
) -> PaymentStatus | None:
    p = latest_payment(payments, lessee_id)
    return None if p is None else effective_status(p, as_of)
