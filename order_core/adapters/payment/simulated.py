from typing import Callable
import random
import time

import structlog

from order_core.application.ports import PaymentAuthority, PaymentOutcome
from order_core.domain.order import Money

logger = structlog.get_logger(__name__)


class SimulatedPaymentAuthority(PaymentAuthority):
    """Stand-in for a real payment processor.

    Waits ``delay_seconds`` to mimic the round trip, then approves. With a non-zero
    ``decline_rate`` that share of authorizations is declined instead, which is handy for
    exercising the rollback path.
    """

    def __init__(
        self,
        delay_seconds: float = 1.0,
        decline_rate: float = 0.0,
        rng: Callable[[], float] = random.random,
    ):
        if not 0.0 <= decline_rate <= 1.0:
            raise ValueError("decline_rate must be between 0 and 1")
        self.delay_seconds = delay_seconds
        self.decline_rate = decline_rate
        self._rng = rng

    def authorize(self, amount: Money) -> PaymentOutcome:
        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)
        if self.decline_rate > 0 and self._rng() < self.decline_rate:
            logger.info("Payment declined", amount=str(amount.amount))
            return PaymentOutcome.DECLINED
        logger.debug("Payment approved", amount=str(amount.amount))
        return PaymentOutcome.APPROVED
