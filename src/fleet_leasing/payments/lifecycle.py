from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from fleet_leasing.domain.models import Payment, PaymentStatus
from fleet_leasing.payments.gateway import ChargeResult, PaymentGateway, Receipt
from fleet_leasing.store.repository import EntityNotFound, FleetStore

logger = logging.getLogger(__name__)

AUTOMATIC_RETRY_METHOD = "Automatic Retry"


class PaymentAlreadySettled(ValueError):
    pass


def apply_charge_result(payment: Payment, result: ChargeResult, *, count_attempt_on_success: bool = False) -> Payment:
    """
    Fold a gateway outcome into the payment record.

    Success: paid, with paid date, method and transaction id.
    Failure: failed, attempt count + 1 (a missing count counts as 0).
    """
    if isinstance(result, Receipt):
        return replace(
            payment,
            status=PaymentStatus.paid,
            paid_date=result.paid_at,
            payment_method=result.method,
            transaction_id=result.transaction_id,
            attempt_count=payment.attempts + 1 if count_attempt_on_success else payment.attempt_count,
        )
    return replace(payment, status=PaymentStatus.failed, attempt_count=payment.attempts + 1)


class PaymentLifecycle:
    """
    Applies charge outcomes to payments held in a FleetStore.

    `gateway` serves first-time processing, `retry_gateway` serves operator
    retries (usually with a lower success rate). Calls against the same
    payment are serialised; calls against different payments run freely.
    """

    def __init__(
        self,
        store: FleetStore,
        gateway: PaymentGateway,
        retry_gateway: PaymentGateway | None = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.retry_gateway = retry_gateway if retry_gateway is not None else gateway
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, payment_id: str) -> asyncio.Lock:
        lock = self._locks.get(payment_id)
        if lock is None:
            lock = self._locks[payment_id] = asyncio.Lock()
        return lock

    def _load_unsettled(self, payment_id: str) -> Payment:
        payment = self.store.get_payment(payment_id)
        if payment.status is PaymentStatus.paid:
            raise PaymentAlreadySettled(f"payment '{payment_id}' is already paid ({payment.transaction_id})")
        return payment

    async def process(self, payment_id: str, method: str) -> Payment:
        if not method:
            raise ValueError("method is required")
        async with self._lock(payment_id):
            payment = self._load_unsettled(payment_id)
            result = await self.gateway.charge(payment, method)
            updated = self.store.update_payment(apply_charge_result(payment, result))
        self._log_outcome("process", updated)
        return updated

    async def retry(self, payment_id: str) -> Payment:
        async with self._lock(payment_id):
            payment = self._load_unsettled(payment_id)
            result = await self.retry_gateway.charge(payment, AUTOMATIC_RETRY_METHOD)
            updated = self.store.update_payment(apply_charge_result(payment, result, count_attempt_on_success=True))
        self._log_outcome("retry", updated)
        return updated

    async def _process_or_skip(self, payment_id: str, method: str) -> Payment | Exception:
        try:
            return await self.process(payment_id, method)
        except (EntityNotFound, PaymentAlreadySettled) as exc:
            logger.warning("process %s skipped: %s", payment_id, exc)
            return exc

    async def process_many(self, payment_ids: list[str], method: str) -> list[Payment | Exception]:
        """
        Process several payments concurrently, one result per id in input order.

        An unknown or already paid id yields its exception in place of a payment
        and does not stop the rest of the batch.
        """
        return list(await asyncio.gather(*(self._process_or_skip(pid, method) for pid in payment_ids)))

    @staticmethod
    def _log_outcome(op: str, payment: Payment) -> None:
        if payment.status is PaymentStatus.paid:
            logger.info("%s %s: paid via %s (%s)", op, payment.id, payment.payment_method, payment.transaction_id)
        else:
            logger.warning("%s %s: failed, attempts=%d", op, payment.id, payment.attempts)
