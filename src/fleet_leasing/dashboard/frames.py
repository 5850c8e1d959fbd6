from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

import pandas as pd

from fleet_leasing.domain.models import Payment, PaymentStatus
from fleet_leasing.payments.aggregates import effective_status

PAYMENT_COLUMNS = [
    "id",
    "lessee_id",
    "vehicle_id",
    "amount",
    "due_date",
    "paid_date",
    "status",
    "payment_method",
    "transaction_id",
    "attempt_count",
]
REQUIRED_PAYMENT_COLUMNS = ["id", "lessee_id", "vehicle_id", "amount", "due_date"]


def _opt(value: Any) -> Any:
    return None if pd.isna(value) else value


def payments_to_frame(payments: Iterable[Payment], as_of: date | datetime | None = None) -> pd.DataFrame:
    payments = list(payments)
    rows = []
    for p in payments:
        rows.append(
            {
                "id": p.id,
                "lessee_id": p.lessee_id,
                "vehicle_id": p.vehicle_id,
                "amount": float(p.amount),
                "due_date": p.due_date.isoformat(),
                "paid_date": p.paid_date.isoformat() if p.paid_date else None,
                "status": p.status.value,
                "payment_method": p.payment_method,
                "transaction_id": p.transaction_id,
                "attempt_count": p.attempt_count,
            }
        )
    df = pd.DataFrame(rows, columns=PAYMENT_COLUMNS)
    df["attempt_count"] = df["attempt_count"].astype("Int64")
    if as_of is not None:
        df["effective_status"] = [effective_status(p, as_of).value for p in payments]
    return df


def payments_from_frame(df: pd.DataFrame) -> list[Payment]:
    missing = [c for c in REQUIRED_PAYMENT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"payments table missing columns: {', '.join(missing)}")

    df = df.reindex(columns=PAYMENT_COLUMNS)
    out = []
    for row in df.itertuples(index=False):
        paid = _opt(row.paid_date)
        attempts = _opt(row.attempt_count)
        out.append(
            Payment(
                id=str(row.id),
                lessee_id=str(row.lessee_id),
                vehicle_id=str(row.vehicle_id),
                amount=float(row.amount),
                due_date=pd.Timestamp(row.due_date).date(),
                paid_date=pd.Timestamp(paid).to_pydatetime() if paid is not None else None,
                status=PaymentStatus(_opt(row.status) or PaymentStatus.pending.value),
                payment_method=_opt(row.payment_method),
                transaction_id=_opt(row.transaction_id),
                attempt_count=int(attempts) if attempts is not None else None,
            )
        )
    return out


def read_payments_csv(path: str) -> list[Payment]:
    df = pd.read_csv(path, dtype={"id": str, "lessee_id": str, "vehicle_id": str})
    return payments_from_frame(df)


def write_payments_csv(payments: Iterable[Payment], path: str) -> None:
    payments_to_frame(payments).to_csv(path, index=False)


def status_breakdown(payments: Iterable[Payment], as_of: date | datetime | None = None) -> pd.DataFrame:
    """Count and amount per status, one row per status (zeros included)."""
    payments = list(payments)
    df = payments_to_frame(payments, as_of)
    key = "effective_status" if as_of is not None else "status"
    grouped = df.groupby(key)["amount"].agg(["count", "sum"])
    grouped = grouped.reindex([s.value for s in PaymentStatus], fill_value=0)
    grouped.index.name = "status"
    return grouped.rename(columns={"sum": "amount"}).reset_index()
