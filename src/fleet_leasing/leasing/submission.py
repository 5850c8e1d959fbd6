from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

import numpy as np

from fleet_leasing.config import LeasingSettings, get_settings
from fleet_leasing.domain.models import LeaseAgreement, LeaseStatus, Lessee, LesseeStatus
from fleet_leasing.simulation import SimulatedCall
from fleet_leasing.store.repository import FleetStore
from fleet_leasing.validation.forms import (
    FormErrors,
    LeaseForm,
    LesseeForm,
    parse_float,
    parse_int,
    validate_lease_form,
    validate_lessee_form,
)

logger = logging.getLogger(__name__)

LESSEE_ID_PREFIX = "L"
LEASE_ID_PREFIX = "LA"


def lessee_call(settings: LeasingSettings | None = None, rng: np.random.Generator | None = None) -> SimulatedCall:
    s = settings or get_settings()
    return SimulatedCall(s.LESSEE_SUBMIT_SUCCESS_RATE, s.LESSEE_SUBMIT_DELAY_SECONDS, rng=rng, name="lessee submit")


def lease_call(settings: LeasingSettings | None = None, rng: np.random.Generator | None = None) -> SimulatedCall:
    s = settings or get_settings()
    return SimulatedCall(s.LEASE_SUBMIT_SUCCESS_RATE, s.LEASE_SUBMIT_DELAY_SECONDS, rng=rng, name="lease submit")


@dataclass(frozen=True)
class SubmitResult:
    status: str  # "success" | "error" | "invalid"
    errors: FormErrors = field(default_factory=dict)
    entity: Any = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


async def submit_lessee(
    store: FleetStore,
    form: LesseeForm,
    call: SimulatedCall,
    *,
    clock: Callable[[], datetime] = datetime.now,
) -> SubmitResult:
    errors = validate_lessee_form(form)
    if errors:
        return SubmitResult(status="invalid", errors=errors)

    if not await call.attempt():
        logger.warning("lessee submission for %s failed", form.email)
        return SubmitResult(status="error")

    now = clock()
    lessee = store.add_lessee(
        Lessee(
            id=store.next_id(LESSEE_ID_PREFIX),
            name=form.name.strip(),
            vehicle_id=form.vehicle_id or None,
            email=form.email.strip(),
            phone=form.phone,
            status=LesseeStatus.pending,
            lease_start_date=now.date(),
            created_at=now,
        )
    )
    logger.info("created lessee %s", lessee.id)
    return SubmitResult(status="success", entity=lessee)


async def submit_lease(
    store: FleetStore,
    form: LeaseForm,
    call: SimulatedCall,
    *,
    clock: Callable[[], datetime] = datetime.now,
) -> SubmitResult:
    """
    Validate and store a new lease agreement.

    In "new" lessee mode the lessee is created alongside the lease. Nothing is
    stored when validation or the simulated call fails.
    """
    errors = validate_lease_form(form)
    if not errors and form.lessee_type == "existing" and store.find_lessee(form.lessee_id) is None:
        errors = {"lessee_id": "Selected lessee does not exist"}
    if errors:
        return SubmitResult(status="invalid", errors=errors)

    if not await call.attempt():
        logger.warning("lease submission for vehicle %s failed", form.vehicle_id)
        return SubmitResult(status="error")

    now = clock()
    if form.lessee_type == "new":
        lessee = store.add_lessee(
            Lessee(
                id=store.next_id(LESSEE_ID_PREFIX),
                name=form.new_lessee.name.strip(),
                vehicle_id=form.vehicle_id,
                email=form.new_lessee.email.strip(),
                phone=form.new_lessee.phone,
                status=LesseeStatus.pending,
                lease_start_date=form.start_date,
                created_at=now,
            )
        )
        lessee_id = lessee.id
    else:
        lessee_id = form.lessee_id

    lease = store.add_lease(
        LeaseAgreement(
            id=store.next_id(LEASE_ID_PREFIX),
            vehicle_id=form.vehicle_id,
            lessee_id=lessee_id,
            start_date=form.start_date,
            end_date=form.end_date,
            monthly_payment=parse_float(form.monthly_payment),
            security_deposit=parse_float(form.security_deposit),
            mileage_limit=int(parse_int(form.mileage_limit)),
            status=LeaseStatus.active,
            terms=form.terms.strip(),
            created_at=now,
        )
    )
    logger.info("created lease %s for lessee %s", lease.id, lessee_id)
    return SubmitResult(status="success", entity=lease)
