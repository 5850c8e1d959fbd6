from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime

from fleet_leasing.domain.models import LeaseAgreement, Lessee, Payment, PaymentStatus, Vehicle
from fleet_leasing.payments.aggregates import effective_status
from fleet_leasing.store.repository import FleetStore

ALL_STATUSES = "all"


def _matches(term: str, *fields: str | None) -> bool:
    needle = term.lower()
    return any(needle in (f or "").lower() for f in fields)


def search_vehicles(vehicles: Iterable[Vehicle], term: str = "") -> list[Vehicle]:
    return [v for v in vehicles if _matches(term, v.make, v.model, v.license_plate)]


def search_lessees(lessees: Iterable[Lessee], term: str = "") -> list[Lessee]:
    # Phone is matched verbatim so partial "(555) 1" style input works.
    return [
        l for l in lessees
        if _matches(term, l.name, l.email, l.vehicle_id) or term in l.phone
    ]


def search_leases(store: FleetStore, term: str = "") -> list[LeaseAgreement]:
    out = []
    for lease in store.leases():
        lessee = store.find_lessee(lease.lessee_id)
        vehicle = store.find_vehicle(lease.vehicle_id)
        if _matches(
            term,
            lessee.name if lessee else None,
            vehicle.display_name if vehicle else None,
            vehicle.license_plate if vehicle else None,
        ):
            out.append(lease)
    return out


def filter_payments(
    store: FleetStore,
    term: str = "",
    status: str = ALL_STATUSES,
    as_of: date | datetime | None = None,
) -> list[Payment]:
    """
    Payments whose lessee name or vehicle id contains `term`, narrowed to one
    status unless `status` is "all". Status is compared on the effective
    status, so with `as_of` expired pending payments filter as overdue.
    """
    wanted = None if status == ALL_STATUSES else PaymentStatus(status)
    names = {l.id: l.name for l in store.lessees()}
    return [
        p for p in store.payments()
        if _matches(term, names.get(p.lessee_id), p.vehicle_id)
        and (wanted is None or effective_status(p, as_of) is wanted)
    ]
