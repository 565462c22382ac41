"""Checkout: turns the customer's open cart into a completed order.

The whole sequence runs in a single unit of work. Any failure, a declined payment
included, rolls back every change made so far, leaving the cart open and untouched.

    1. lock the customer's open cart           -> CartNotFoundError
    2. load its line items                     -> EmptyCartError
    3. total = sum(quantity * unit price)
    4. authorize the total                     -> PaymentDeclinedError
    5. decrement stock for every line          -> InsufficientStockError
    6. flip the cart to ``completed`` with the total
    7. open a fresh cart for the same customer
    8. commit
"""

import structlog

from order_core.application.dto import CheckoutOutput, OrderOutput
from order_core.application.ports import PaymentAuthority, PaymentOutcome, UnitOfWork
from order_core.domain.errors import CartNotFoundError, EmptyCartError, PaymentDeclinedError
from order_core.domain.order import CustomerId, Order

logger = structlog.get_logger(__name__)


class CheckoutUseCase:
    def __init__(self, uow: UnitOfWork, payments: PaymentAuthority):
        self.uow = uow
        self.payments = payments

    def execute(self, customer_id: str) -> CheckoutOutput:
        cid = CustomerId(value=customer_id)
        with self.uow:
            cart = self.uow.orders.get_open_cart(cid, for_update=True)
            if cart is None:
                raise CartNotFoundError("Cart not found")

            items = cart.items
            if not items:
                raise EmptyCartError("Cannot checkout empty cart")

            total = cart.calculate_total()

            if self.payments.authorize(total) is not PaymentOutcome.APPROVED:
                raise PaymentDeclinedError("Payment failed")

            for item in items:
                self.uow.inventory.decrement(item.product_id, item.quantity)

            cart.complete()
            self.uow.orders.save(cart)

            next_cart = Order.open(cid)
            self.uow.orders.add(next_cart)

            self.uow.commit()

        logger.info(
            "Checkout completed",
            customer_id=customer_id,
            order_id=str(cart.id.value),
            total=str(cart.total.amount),
            new_cart_id=str(next_cart.id.value),
        )
        return CheckoutOutput(
            order=OrderOutput.from_order(cart),
            new_cart_id=str(next_cart.id.value),
        )
