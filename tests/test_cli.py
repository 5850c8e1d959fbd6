from __future__ import annotations

import json

from fleet_leasing.cli import main
from fleet_leasing.config import LeasingSettings
from fleet_leasing.dashboard.frames import read_payments_csv, write_payments_csv
from fleet_leasing.domain.models import PaymentStatus


def _out(capsys) -> dict:
    return json.loads(capsys.readouterr().out)


def test_lease_quote(capsys):
    rc = main(["lease-quote", "--start-date", "2024-01-01", "--monthly-payment", "420"])
    assert rc == 0
    out = _out(capsys)
    assert out["end_date"] == "2025-01-01"
    assert out["duration_months"] == 13
    assert out["security_deposit"] == 840.0
    assert out["total_value"] == 5460.0


def test_validate_lessee_formats_phone(capsys):
    rc = main(
        ["validate-lessee", "--name", "Jane Doe", "--email", "jane@example.com", "--phone", "555 123 4567", "--vehicle-id", "V001"]
    )
    assert rc == 0
    out = _out(capsys)
    assert out == {"valid": True, "errors": {}, "phone": "(555) 123-4567"}


def test_validate_lessee_invalid_exit_code(capsys):
    rc = main(["validate-lessee", "--name", "J", "--email", "a@b"])
    assert rc == 1
    out = _out(capsys)
    assert set(out["errors"]) == {"name", "email", "phone", "vehicle_id"}


def test_payment_stats(fleet_store, tmp_path, capsys):
    path = tmp_path / "payments.csv"
    write_payments_csv(fleet_store.payments(), str(path))
    rc = main(["payment-stats", "--payments-csv", str(path), "--as-of", "2024-02-20"])
    assert rc == 0
    out = _out(capsys)
    assert out["total"] == 3
    assert out["counts"]["overdue"] == 1
    assert out["collected"] == 450.0
    assert out["expected"] == 1600.0
    assert {r["status"]: r["count"] for r in out["by_status"]}["failed"] == 1


def test_process_payments_all_succeed(fleet_store, tmp_path, capsys):
    src = tmp_path / "payments.csv"
    dst = tmp_path / "out" / "processed.csv"
    write_payments_csv(fleet_store.payments(), str(src))
    rc = main(
        [
            "process-payments",
            "--payments-csv", str(src),
            "--out-csv", str(dst),
            "--success-rate", "1.0",
            "--retry-success-rate", "0.0",
            "--retry-failed",
            "--delay", "0",
            "--seed", "7",
        ]
    )
    assert rc == 0
    out = _out(capsys)
    assert out["processed"] == 1
    assert out["retried"] == 1

    processed = {p.id: p for p in read_payments_csv(str(dst))}
    assert processed["P002"].status is PaymentStatus.paid
    assert processed["P002"].payment_method == "Credit Card"
    assert processed["P003"].status is PaymentStatus.failed
    assert processed["P003"].attempt_count == 2


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("FLEET_LEASING_RETRY_SUCCESS_RATE", "0.5")
    monkeypatch.setenv("FLEET_LEASING_PROCESS_DELAY_SECONDS", "0")
    s = LeasingSettings()
    assert s.RETRY_SUCCESS_RATE == 0.5
    assert s.PROCESS_DELAY_SECONDS == 0.0
    assert s.PROCESS_SUCCESS_RATE == 0.90
    assert s.EXPIRING_SOON_DAYS == 30
