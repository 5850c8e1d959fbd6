from __future__ import annotations

from datetime import date, datetime

import pytest

from fleet_leasing.domain.models import LeaseAgreement, Lessee, Payment, Vehicle
from fleet_leasing.store.repository import FleetStore

TERMS = "Standard lease terms: regular maintenance, no smoking, return with full tank."


def _vehicle(vid, make, model, plate, status, rate):
    return Vehicle(
        id=vid,
        make=make,
        model=model,
        year=2023,
        vin=f"VIN{vid}",
        license_plate=plate,
        color="Black",
        mileage=10000,
        status=status,
        monthly_rate=rate,
    )


@pytest.fixture
def fleet_store() -> FleetStore:
    vehicles = [
        _vehicle("V001", "Toyota", "Camry", "ABC-123", "leased", 450.0),
        _vehicle("V002", "Honda", "Accord", "XYZ-789", "leased", 500.0),
        _vehicle("V003", "Ford", "Mustang", "DEF-456", "leased", 650.0),
        _vehicle("V004", "Chevrolet", "Malibu", "GHI-789", "available", 420.0),
        _vehicle("V005", "BMW", "X3", "JKL-012", "maintenance", 800.0),
    ]
    lessees = [
        Lessee("L001", "John Smith", "V001", "john.smith@email.com", "(555) 123-4567", "active", date(2024, 1, 15)),
        Lessee("L002", "Sarah Johnson", "V002", "sarah.j@email.com", "(555) 987-6543", "active", date(2024, 1, 10)),
        Lessee("L003", "Mike Davis", "V003", "mike.davis@email.com", "(555) 456-7890", "inactive", date(2024, 1, 8)),
    ]
    leases = [
        LeaseAgreement("LA001", "V001", "L001", date(2024, 1, 15), date(2025, 1, 15), 450.0, 900.0, 12000, "active", TERMS, datetime(2024, 1, 15)),
        LeaseAgreement("LA002", "V002", "L002", date(2024, 1, 10), date(2024, 3, 1), 500.0, 1000.0, 12000, "active", TERMS, datetime(2024, 1, 10)),
        LeaseAgreement("LA003", "V003", "L003", date(2023, 1, 8), date(2024, 1, 8), 650.0, 1300.0, 10000, "completed", TERMS, datetime(2023, 1, 8)),
    ]
    payments = [
        Payment("P001", "L001", "V001", 450.0, date(2024, 2, 15), paid_date=datetime(2024, 2, 14), status="paid", payment_method="Credit Card", transaction_id="TXN-1"),
        Payment("P002", "L002", "V002", 500.0, date(2024, 2, 10), status="pending"),
        Payment("P003", "L003", "V003", 650.0, date(2024, 1, 25), status="failed", attempt_count=1),
    ]
    return FleetStore(vehicles=vehicles, lessees=lessees, leases=leases, payments=payments)
