from __future__ import annotations

import itertools
import logging
import re
from collections.abc import Iterable
from datetime import date, datetime
from typing import TypeVar

from fleet_leasing.domain.models import LeaseAgreement, Lessee, Payment, PaymentStatus, Vehicle
from fleet_leasing.payments.aggregates import latest_payment_status

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityNotFound(KeyError):
    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} '{entity_id}' not found")
        self.kind = kind
        self.entity_id = entity_id

    def __str__(self) -> str:
        return self.args[0]


class FleetStore:
    """
    Session-scoped store of fleet entities keyed by id.

    All reads and mutations go through this object; entities are frozen
    records, so an update replaces the stored record.
    """

    def __init__(
        self,
        *,
        vehicles: Iterable[Vehicle] = (),
        lessees: Iterable[Lessee] = (),
        leases: Iterable[LeaseAgreement] = (),
        payments: Iterable[Payment] = (),
    ) -> None:
        self._vehicles: dict[str, Vehicle] = {}
        self._lessees: dict[str, Lessee] = {}
        self._leases: dict[str, LeaseAgreement] = {}
        self._payments: dict[str, Payment] = {}
        self._issued: dict[str, int] = {}
        for v in vehicles:
            self.add_vehicle(v)
        for lessee in lessees:
            self.add_lessee(lessee)
        for a in leases:
            self.add_lease(a)
        for p in payments:
            self.add_payment(p)

    @staticmethod
    def _add(table: dict[str, T], kind: str, entity: T) -> T:
        entity_id = entity.id
        if entity_id in table:
            raise ValueError(f"{kind} '{entity_id}' already exists")
        table[entity_id] = entity
        return entity

    @staticmethod
    def _get(table: dict[str, T], kind: str, entity_id: str) -> T:
        try:
            return table[entity_id]
        except KeyError:
            raise EntityNotFound(kind, entity_id) from None

    # --- reads ---
    def get_vehicle(self, vehicle_id: str) -> Vehicle:
        return self._get(self._vehicles, "vehicle", vehicle_id)

    def get_lessee(self, lessee_id: str) -> Lessee:
        return self._get(self._lessees, "lessee", lessee_id)

    def get_lease(self, lease_id: str) -> LeaseAgreement:
        return self._get(self._leases, "lease", lease_id)

    def get_payment(self, payment_id: str) -> Payment:
        return self._get(self._payments, "payment", payment_id)

    def find_vehicle(self, vehicle_id: str | None) -> Vehicle | None:
        return self._vehicles.get(vehicle_id) if vehicle_id else None

    def find_lessee(self, lessee_id: str | None) -> Lessee | None:
        return self._lessees.get(lessee_id) if lessee_id else None

    def vehicles(self) -> list[Vehicle]:
        return list(self._vehicles.values())

    def lessees(self) -> list[Lessee]:
        return list(self._lessees.values())

    def leases(self) -> list[LeaseAgreement]:
        return list(self._leases.values())

    def payments(self) -> list[Payment]:
        return list(self._payments.values())

    def payments_for_lessee(self, lessee_id: str) -> list[Payment]:
        return sorted((p for p in self._payments.values() if p.lessee_id == lessee_id), key=lambda p: p.due_date)

    def lessee_payment_status(self, lessee_id: str, as_of: date | datetime | None = None) -> PaymentStatus | None:
        """Payment status of the lessee's latest payment; None if it has none."""
        self.get_lessee(lessee_id)
        return latest_payment_status(self._payments.values(), lessee_id, as_of)

    # --- commands ---
    def add_vehicle(self, vehicle: Vehicle) -> Vehicle:
        return self._add(self._vehicles, "vehicle", vehicle)

    def add_lessee(self, lessee: Lessee) -> Lessee:
        if lessee.vehicle_id and lessee.vehicle_id not in self._vehicles:
            logger.warning("lessee %s references unknown vehicle %s", lessee.id, lessee.vehicle_id)
        return self._add(self._lessees, "lessee", lessee)

    def add_lease(self, lease: LeaseAgreement) -> LeaseAgreement:
        return self._add(self._leases, "lease", lease)

    def add_payment(self, payment: Payment) -> Payment:
        return self._add(self._payments, "payment", payment)

    def update_payment(self, payment: Payment) -> Payment:
        self.get_payment(payment.id)
        self._payments[payment.id] = payment
        return payment

    def next_id(self, prefix: str) -> str:
        """
        Next free id of the form PREFIX + zero-padded number, e.g. "LS004".
        Numbering continues after the highest id stored or issued under the prefix,
        so records added after an id was handed out are never collided with.
        """
        pat = re.compile(rf"^{re.escape(prefix)}(\d+)$")
        taken = itertools.chain(self._vehicles, self._lessees, self._leases, self._payments)
        highest = max((int(m.group(1)) for m in map(pat.match, taken) if m), default=0)
        number = self._issued[prefix] = max(highest, self._issued.get(prefix, 0)) + 1
        return f"{prefix}{number:03d}"
