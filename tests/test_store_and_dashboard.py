from __future__ import annotations

import math
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from fleet_leasing.dashboard.queries import filter_payments, search_leases, search_lessees, search_vehicles
from fleet_leasing.dashboard.stats import fleet_summary, lease_stats, lessee_stats, vehicle_stats
from fleet_leasing.domain.models import PaymentStatus
from fleet_leasing.store.repository import EntityNotFound, FleetStore


def test_get_unknown_raises(fleet_store):
    with pytest.raises(EntityNotFound) as exc:
        fleet_store.get_vehicle("V999")
    assert isinstance(exc.value, KeyError)
    assert str(exc.value) == "vehicle 'V999' not found"


def test_duplicate_id_rejected(fleet_store):
    with pytest.raises(ValueError):
        fleet_store.add_vehicle(fleet_store.get_vehicle("V001"))


def test_next_id_continues_numbering(fleet_store):
    assert fleet_store.next_id("L") == "L004"
    assert fleet_store.next_id("L") == "L005"
    assert fleet_store.next_id("LA") == "LA004"
    assert FleetStore().next_id("P") == "P001"


def test_update_payment_requires_existing(fleet_store):
    p = fleet_store.get_payment("P002")
    fleet_store.update_payment(replace(p, status=PaymentStatus.paid))
    assert fleet_store.get_payment("P002").status is PaymentStatus.paid
    with pytest.raises(EntityNotFound):
        fleet_store.update_payment(replace(p, id="P404"))


def test_lessee_payment_status_is_derived(fleet_store):
    assert fleet_store.lessee_payment_status("L001") is PaymentStatus.paid
    assert fleet_store.lessee_payment_status("L002") is PaymentStatus.pending
    assert fleet_store.lessee_payment_status("L002", date(2024, 2, 20)) is PaymentStatus.overdue

    p = fleet_store.get_payment("P002")
    fleet_store.update_payment(replace(p, status=PaymentStatus.paid))
    assert fleet_store.lessee_payment_status("L002", date(2024, 2, 20)) is PaymentStatus.paid


def test_search_vehicles(fleet_store):
    assert [v.id for v in search_vehicles(fleet_store.vehicles(), "toy")] == ["V001"]
    assert [v.id for v in search_vehicles(fleet_store.vehicles(), "ghi")] == ["V004"]
    assert len(search_vehicles(fleet_store.vehicles(), "")) == 5


def test_search_lessees(fleet_store):
    assert [l.id for l in search_lessees(fleet_store.lessees(), "SARAH")] == ["L002"]
    assert [l.id for l in search_lessees(fleet_store.lessees(), "v003")] == ["L003"]
    assert [l.id for l in search_lessees(fleet_store.lessees(), "(555) 9")] == ["L002"]


def test_search_leases(fleet_store):
    assert [a.id for a in search_leases(fleet_store, "mustang")] == ["LA003"]
    assert [a.id for a in search_leases(fleet_store, "smith")] == ["LA001"]
    assert [a.id for a in search_leases(fleet_store, "xyz-789")] == ["LA002"]


def test_filter_payments(fleet_store):
    assert [p.id for p in filter_payments(fleet_store, "mike")] == ["P003"]
    assert [p.id for p in filter_payments(fleet_store, status="failed")] == ["P003"]
    assert [p.id for p in filter_payments(fleet_store, status="overdue")] == []
    assert [p.id for p in filter_payments(fleet_store, status="overdue", as_of=date(2024, 2, 20))] == ["P002"]
    with pytest.raises(ValueError):
        filter_payments(fleet_store, status="bogus")


def test_vehicle_stats(fleet_store):
    vs = vehicle_stats(fleet_store)
    assert (vs.total, vs.available, vs.leased, vs.maintenance) == (5, 1, 3, 1)


def test_lessee_stats(fleet_store):
    ls = lessee_stats(fleet_store, date(2024, 2, 20))
    assert ls.active == 2
    assert ls.payment_issues == 2
    assert ls.collected == 450.0


def test_lease_stats(fleet_store):
    s = lease_stats(fleet_store, date(2024, 2, 20))
    assert s.active == 2
    assert s.monthly_revenue == 1600.0
    assert s.expiring_soon == 1


def test_fleet_summary(fleet_store):
    summary = fleet_summary(fleet_store)
    assert summary.total_vehicles == 5
    assert summary.leased_vehicles == 3
    assert summary.available_vehicles == 2
    assert summary.expected_monthly == 1600.0
    assert summary.paid_this_month == 450.0
    assert summary.overdue_lessees == ["L003"]
    assert summary.pending_lessees == ["L002"]
    assert summary.payment_issues == 2
    assert math.isclose(summary.collection_rate, 450.0 / 1600.0 * 100)


def test_fleet_summary_empty_store_has_zero_rate():
    summary = fleet_summary(FleetStore())
    assert summary.collection_rate == 0.0
    assert summary.as_dict()["payment_issues"] == 0


def test_payments_for_lessee_sorted_by_due_date(fleet_store):
    fleet_store.add_payment(replace(fleet_store.get_payment("P001"), id="P010", due_date=date(2024, 1, 15), status=PaymentStatus.paid))
    assert [p.id for p in fleet_store.payments_for_lessee("L001")] == ["P010", "P001"]
    assert fleet_store.lessee_payment_status("L001") is PaymentStatus.paid


def test_lease_stats_custom_window(fleet_store):
    assert lease_stats(fleet_store, date(2024, 2, 20), expiring_within_days=5).expiring_soon == 0


def test_next_id_skips_ids_added_after_issue(fleet_store):
    assert fleet_store.next_id("L") == "L004"
    fleet_store.add_lessee(replace(fleet_store.get_lessee("L001"), id="L005"))
    assert fleet_store.next_id("L") == "L006"


def test_lease_stats_accepts_aware_datetime(fleet_store):
    s = lease_stats(fleet_store, datetime(2024, 2, 20, tzinfo=timezone.utc))
    assert s.expiring_soon == 1
