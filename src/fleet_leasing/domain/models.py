from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class VehicleStatus(str, Enum):
    available = "available"
    leased = "leased"
    maintenance = "maintenance"


class LesseeStatus(str, Enum):
    active = "active"
    inactive = "inactive"
    pending = "pending"


class LeaseStatus(str, Enum):
    active = "active"
    completed = "completed"
    terminated = "terminated"


class PaymentStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    overdue = "overdue"
    failed = "failed"


@dataclass(frozen=True)
class Vehicle:
    id: str
    make: str
    model: str
    year: int
    vin: str
    license_plate: str
    color: str
    mileage: int
    status: VehicleStatus
    # Also used as the suggested lease rate when the vehicle is picked for a new lease.
    monthly_rate: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", VehicleStatus(self.status))
        if self.mileage < 0:
            raise ValueError("mileage must be >= 0")
        if self.monthly_rate <= 0:
            raise ValueError("monthly_rate must be > 0")

    @property
    def display_name(self) -> str:
        return f"{self.year} {self.make} {self.model}"


@dataclass(frozen=True)
class Lessee:
    id: str
    name: str
    vehicle_id: str | None
    email: str
    phone: str
    status: LesseeStatus
    lease_start_date: date
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", LesseeStatus(self.status))


@dataclass(frozen=True)
class LeaseAgreement:
    id: str
    vehicle_id: str
    lessee_id: str
    start_date: date
    end_date: date
    monthly_payment: float
    security_deposit: float
    mileage_limit: int
    status: LeaseStatus
    terms: str
    created_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", LeaseStatus(self.status))
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")


@dataclass(frozen=True)
class Payment:
    id: str
    lessee_id: str
    vehicle_id: str
    amount: float
    due_date: date
    paid_date: datetime | None = None
    status: PaymentStatus = PaymentStatus.pending
    payment_method: str | None = None
    transaction_id: str | None = None
    attempt_count: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", PaymentStatus(self.status))

    @property
    def attempts(self) -> int:
        return self.attempt_count or 0
