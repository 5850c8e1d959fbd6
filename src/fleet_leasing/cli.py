from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from dataclasses import asdict
from datetime import date

import numpy as np

from fleet_leasing.config import get_settings
from fleet_leasing.dashboard.frames import read_payments_csv, status_breakdown, write_payments_csv
from fleet_leasing.domain.models import PaymentStatus
from fleet_leasing.financing.lease import quote_lease
from fleet_leasing.payments.aggregates import payment_stats
from fleet_leasing.payments.gateway import SimulatedGateway
from fleet_leasing.payments.lifecycle import PaymentLifecycle
from fleet_leasing.store.repository import FleetStore
from fleet_leasing.validation.forms import LesseeForm, validate_lessee_form


def _mkdirp(path: str) -> None:
    d = os.path.dirname(path)
    if d:
        os.makedirs(d, exist_ok=True)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got '{value}'") from e


def _emit(out: dict) -> None:
    print(json.dumps(out, indent=2, sort_keys=True, default=str))


def cmd_lease_quote(args: argparse.Namespace) -> int:
    try:
        quote = quote_lease(
            start_date=args.start_date,
            end_date=args.end_date,
            monthly_payment=args.monthly_payment,
            security_deposit=args.security_deposit,
        )
    except ValueError as e:
        raise SystemExit(str(e)) from e
    _emit(asdict(quote))
    return 0


def cmd_validate_lessee(args: argparse.Namespace) -> int:
    form = LesseeForm(name=args.name, vehicle_id=args.vehicle_id, email=args.email)
    form.set_phone(args.phone)
    errors = validate_lessee_form(form)
    _emit({"valid": not errors, "errors": errors, "phone": form.phone})
    return 0 if not errors else 1


def cmd_payment_stats(args: argparse.Namespace) -> int:
    payments = read_payments_csv(args.payments_csv)
    stats = payment_stats(payments, args.as_of)
    breakdown = status_breakdown(payments, args.as_of)
    out = stats.as_dict()
    out["by_status"] = breakdown.to_dict(orient="records")
    _emit(out)
    return 0


def cmd_process_payments(args: argparse.Namespace) -> int:
    settings = get_settings()
    seed = args.seed if args.seed is not None else settings.RANDOM_SEED
    rng = np.random.default_rng(seed)

    store = FleetStore(payments=read_payments_csv(args.payments_csv))
    lifecycle = PaymentLifecycle(
        store,
        SimulatedGateway(
            settings.PROCESS_SUCCESS_RATE if args.success_rate is None else args.success_rate,
            settings.PROCESS_DELAY_SECONDS if args.delay is None else args.delay,
            rng=rng,
        ),
        SimulatedGateway(
            settings.RETRY_SUCCESS_RATE if args.retry_success_rate is None else args.retry_success_rate,
            settings.RETRY_DELAY_SECONDS if args.delay is None else args.delay,
            rng=rng,
        ),
    )

    pending = [p.id for p in store.payments() if p.status is PaymentStatus.pending]
    retryable = [p.id for p in store.payments() if p.status in (PaymentStatus.failed, PaymentStatus.overdue)]

    async def run() -> None:
        await lifecycle.process_many(pending, args.method)
        if args.retry_failed:
            for pid in retryable:
                await lifecycle.retry(pid)

    asyncio.run(run())

    _mkdirp(args.out_csv)
    write_payments_csv(store.payments(), args.out_csv)
    stats = payment_stats(store.payments())
    _emit(
        {
            "out_csv": args.out_csv,
            "processed": len(pending),
            "retried": len(retryable) if args.retry_failed else 0,
            "stats": stats.as_dict(),
        }
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fleet-leasing")
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    sub = p.add_subparsers(dest="cmd", required=True)

    q = sub.add_parser("lease-quote", help="Duration, end date and total value for a proposed lease.")
    q.add_argument("--start-date", type=_parse_date, required=True)
    q.add_argument("--end-date", type=_parse_date, default=None, help="Defaults to one year after start.")
    q.add_argument("--monthly-payment", type=float, required=True)
    q.add_argument("--security-deposit", type=float, default=None, help="Defaults to twice the monthly payment.")
    q.set_defaults(func=cmd_lease_quote)

    v = sub.add_parser("validate-lessee", help="Validate lessee details; exits 1 when invalid.")
    v.add_argument("--name", default="")
    v.add_argument("--email", default="")
    v.add_argument("--phone", default="", help="Any format; digits are reformatted as (555) 123-4567.")
    v.add_argument("--vehicle-id", default="")
    v.set_defaults(func=cmd_validate_lessee)

    s = sub.add_parser("payment-stats", help="Counts, totals and collection rate for a payments CSV.")
    s.add_argument("--payments-csv", required=True)
    s.add_argument("--as-of", type=_parse_date, default=None, help="Count expired pending payments as overdue.")
    s.set_defaults(func=cmd_payment_stats)

    pp = sub.add_parser("process-payments", help="Run pending payments through the simulated gateway.")
    pp.add_argument("--payments-csv", required=True)
    pp.add_argument("--out-csv", required=True)
    pp.add_argument("--method", default="Credit Card")
    pp.add_argument("--retry-failed", action="store_true", default=False)
    pp.add_argument("--success-rate", type=float, default=None)
    pp.add_argument("--retry-success-rate", type=float, default=None)
    pp.add_argument("--delay", type=float, default=None, help="Simulated round-trip seconds.")
    pp.add_argument("--seed", type=int, default=None)
    pp.set_defaults(func=cmd_process_payments)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
