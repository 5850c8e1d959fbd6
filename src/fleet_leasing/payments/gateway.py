"""
Payment gateway seam. The lifecycle only sees `charge(payment, method)`;
the simulated implementation can be swapped for a real processor.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Union

import numpy as np

from fleet_leasing.domain.models import Payment
from fleet_leasing.simulation import SimulatedCall


@dataclass(frozen=True)
class Receipt:
    transaction_id: str
    method: str
    paid_at: datetime


@dataclass(frozen=True)
class ChargeFailure:
    reason: str


ChargeResult = Union[Receipt, ChargeFailure]


class PaymentGateway(Protocol):
    async def charge(self, payment: Payment, method: str) -> ChargeResult: ...


def new_transaction_id() -> str:
    return f"TXN-{uuid.uuid4().hex.upper()}"


class SimulatedGateway:
    def __init__(
        self,
        success_rate: float,
        delay_seconds: float = 0.0,
        *,
        rng: np.random.Generator | None = None,
        clock=datetime.now,
    ) -> None:
        self._call = SimulatedCall(success_rate, delay_seconds, rng=rng, name="charge")
        self._clock = clock

    @property
    def success_rate(self) -> float:
        return self._call.success_rate

    async def charge(self, payment: Payment, method: str) -> ChargeResult:
        if await self._call.attempt():
            return Receipt(transaction_id=new_transaction_id(), method=method, paid_at=self._clock())
        return ChargeFailure(reason=f"charge of {payment.amount:.2f} for {payment.id} was declined")
