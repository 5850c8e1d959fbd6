from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime

from fleet_leasing.config import get_settings
from fleet_leasing.domain.models import LeaseStatus, LesseeStatus, PaymentStatus, VehicleStatus
from fleet_leasing.financing.lease import days_remaining
from fleet_leasing.payments.aggregates import collection_rate
from fleet_leasing.store.repository import FleetStore

ISSUE_STATUSES = (PaymentStatus.overdue, PaymentStatus.failed)


@dataclass(frozen=True)
class VehicleStats:
    total: int
    available: int
    leased: int
    maintenance: int


@dataclass(frozen=True)
class LesseeStats:
    total: int
    active: int
    payment_issues: int
    # Sum of the leased vehicles' rates for lessees whose latest payment is paid.
    collected: float


@dataclass(frozen=True)
class LeaseStats:
    total: int
    active: int
    monthly_revenue: float
    expiring_soon: int


@dataclass(frozen=True)
class FleetSummary:
    total_vehicles: int
    leased_vehicles: int
    available_vehicles: int
    expected_monthly: float
    paid_this_month: float
    overdue_lessees: list[str]
    pending_lessees: list[str]
    collection_rate: float

    @property
    def payment_issues(self) -> int:
        return len(self.overdue_lessees) + len(self.pending_lessees)

    def as_dict(self) -> dict:
        d = asdict(self)
        d["payment_issues"] = self.payment_issues
        return d


def vehicle_stats(store: FleetStore) -> VehicleStats:
    vehicles = store.vehicles()
    return VehicleStats(
        total=len(vehicles),
        available=sum(v.status is VehicleStatus.available for v in vehicles),
        leased=sum(v.status is VehicleStatus.leased for v in vehicles),
        maintenance=sum(v.status is VehicleStatus.maintenance for v in vehicles),
    )


def _rate_for(store: FleetStore, vehicle_id: str | None) -> float:
    vehicle = store.find_vehicle(vehicle_id)
    return vehicle.monthly_rate if vehicle is not None else 0.0


def lessee_stats(store: FleetStore, as_of: date | datetime | None = None) -> LesseeStats:
    lessees = store.lessees()
    statuses = {l.id: store.lessee_payment_status(l.id, as_of) for l in lessees}
    return LesseeStats(
        total=len(lessees),
        active=sum(l.status is LesseeStatus.active for l in lessees),
        payment_issues=sum(s in ISSUE_STATUSES for s in statuses.values()),
        collected=float(sum(_rate_for(store, l.vehicle_id) for l in lessees if statuses[l.id] is PaymentStatus.paid)),
    )


def lease_stats(store: FleetStore, as_of: date | datetime, *, expiring_within_days: int | None = None) -> LeaseStats:
    if expiring_within_days is None:
        expiring_within_days = get_settings().EXPIRING_SOON_DAYS
    leases = store.leases()
    active = [a for a in leases if a.status is LeaseStatus.active]
    return LeaseStats(
        total=len(leases),
        active=len(active),
        monthly_revenue=float(sum(a.monthly_payment for a in leases)),
        expiring_soon=sum(days_remaining(a.end_date, as_of) <= expiring_within_days for a in active),
    )


def fleet_summary(store: FleetStore, as_of: date | datetime | None = None) -> FleetSummary:
    """
    Headline numbers for the overview screen.

    Expected revenue is the rate of every leased vehicle; collected revenue is
    the rate of each lessee whose latest payment is paid. Lessee payment
    status is derived from payment records, never stored.
    """
    vs = vehicle_stats(store)
    expected = sum(v.monthly_rate for v in store.vehicles() if v.status is VehicleStatus.leased)

    paid = 0.0
    overdue: list[str] = []
    pending: list[str] = []
    for lessee in store.lessees():
        status = store.lessee_payment_status(lessee.id, as_of)
        if status is PaymentStatus.paid:
            paid += _rate_for(store, lessee.vehicle_id)
        elif status in ISSUE_STATUSES:
            overdue.append(lessee.id)
        elif status is PaymentStatus.pending:
            pending.append(lessee.id)

    return FleetSummary(
        total_vehicles=vs.total,
        leased_vehicles=vs.leased,
        available_vehicles=vs.total - vs.leased,
        expected_monthly=float(expected),
        paid_this_month=float(paid),
        overdue_lessees=overdue,
        pending_lessees=pending,
        collection_rate=collection_rate(paid, expected),
    )
