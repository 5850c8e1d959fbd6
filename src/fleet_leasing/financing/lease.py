from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime

from fleet_leasing.domain.models import Vehicle
from fleet_leasing.validation.forms import LeaseForm, parse_float

DAYS_PER_LEASE_MONTH = 30
DEPOSIT_RATE_MULTIPLE = 2


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def add_one_year(start: date) -> date:
    # Feb 29 rolls forward to Mar 1 when the next year has no leap day.
    try:
        return start.replace(year=start.year + 1)
    except ValueError:
        return date(start.year + 1, 3, 1)


def suggest_end_date(start_date: date | None, end_date: date | None = None) -> date | None:
    """
    Default end date for a lease: one calendar year after the start.
    An end date the user already picked is kept as-is.
    """
    if end_date is not None:
        return end_date
    if start_date is None:
        return None
    return add_one_year(start_date)


def _format_amount(amount: float) -> str:
    return str(int(amount)) if float(amount).is_integer() else str(amount)


def apply_start_date(form: LeaseForm, start_date: date | None) -> None:
    form.start_date = start_date
    if start_date is not None:
        form.end_date = suggest_end_date(start_date, form.end_date)


def apply_vehicle_selection(form: LeaseForm, vehicle: Vehicle | None, vehicle_id: str | None = None) -> None:
    """
    Record the picked vehicle and pre-fill the payment fields from its rate.

    Only runs when a vehicle is picked; edits made to the payment fields
    afterwards are left alone.
    """
    form.vehicle_id = vehicle.id if vehicle is not None else (vehicle_id or "")
    if vehicle is None:
        return
    form.monthly_payment = _format_amount(vehicle.monthly_rate)
    form.security_deposit = _format_amount(vehicle.monthly_rate * DEPOSIT_RATE_MULTIPLE)


def lease_duration_months(start_date: date | None, end_date: date | None) -> int | None:
    """
    Lease length in 30-day blocks, rounded up.

    This is an approximation of calendar months: 2024-01-01..2025-01-01 is
    366 days, i.e. 13 blocks.
    """
    if start_date is None or end_date is None:
        return None
    days = (_as_date(end_date) - _as_date(start_date)).days
    return math.ceil(days / DAYS_PER_LEASE_MONTH)


def total_lease_value(
    start_date: date | None,
    end_date: date | None,
    monthly_payment: float | str | None,
) -> float | None:
    months = lease_duration_months(start_date, end_date)
    if monthly_payment is None:
        return None
    payment = parse_float(monthly_payment) if isinstance(monthly_payment, str) else float(monthly_payment)
    if not months or months < 0 or math.isnan(payment) or payment == 0:
        return None
    return months * payment


def days_remaining(end_date: date, as_of: date | datetime) -> int:
    """Whole days left until end_date, rounded up; negative once the lease has ended."""
    if isinstance(as_of, datetime):
        delta = datetime.combine(_as_date(end_date), datetime.min.time(), tzinfo=as_of.tzinfo) - as_of
        return math.ceil(delta.total_seconds() / 86400)
    return (_as_date(end_date) - as_of).days


@dataclass(frozen=True)
class LeaseQuote:
    start_date: date
    end_date: date
    duration_months: int
    monthly_payment: float
    security_deposit: float
    total_value: float | None


def quote_lease(
    *,
    start_date: date,
    monthly_payment: float,
    end_date: date | None = None,
    security_deposit: float | None = None,
) -> LeaseQuote:
    if monthly_payment <= 0:
        raise ValueError("monthly_payment must be > 0")
    end = suggest_end_date(start_date, end_date)
    if end <= start_date:
        raise ValueError("end_date must be after start_date")
    deposit = monthly_payment * DEPOSIT_RATE_MULTIPLE if security_deposit is None else float(security_deposit)
    if deposit < 0:
        raise ValueError("security_deposit must be >= 0")
    return LeaseQuote(
        start_date=start_date,
        end_date=end,
        duration_months=int(lease_duration_months(start_date, end)),
        monthly_payment=float(monthly_payment),
        security_deposit=float(deposit),
        total_value=total_lease_value(start_date, end, monthly_payment),
    )
