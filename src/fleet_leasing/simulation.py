from __future__ import annotations

import asyncio
import logging

import numpy as np

logger = logging.getLogger(__name__)


class SimulatedCall:
    """
    Stand-in for a remote call: one suspend point of `delay_seconds`, then a
    success draw with probability `success_rate`.

    There is no partial progress and no timeout besides the delay itself.
    """

    def __init__(
        self,
        success_rate: float,
        delay_seconds: float = 0.0,
        *,
        rng: np.random.Generator | None = None,
        name: str = "call",
    ) -> None:
        if not (0.0 <= success_rate <= 1.0):
            raise ValueError("success_rate must be in [0, 1]")
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.success_rate = float(success_rate)
        self.delay_seconds = float(delay_seconds)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.name = name

    async def attempt(self) -> bool:
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        ok = bool(self.rng.random() < self.success_rate)
        logger.debug("simulated %s finished ok=%s", self.name, ok)
        return ok
