from typing import Callable, TypeVar

import structlog

from order_core.application.dto import AddItemOutput, CartOutput, LineItemDetail, LineItemOutput
from order_core.application.ports import UnitOfWork
from order_core.domain.errors import (
    CartNotFoundError,
    ConcurrentUpdateError,
    DomainError,
    ItemNotFoundError,
    OpenCartExistsError,
    ProductNotFoundError,
)
from order_core.domain.order import CustomerId, LineItem, Order, OrderId, ProductId, Quantity

logger = structlog.get_logger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = 5


class GetOrCreateCartUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def execute(self, customer_id: str) -> CartOutput:
        try:
            return self._execute(CustomerId(value=customer_id))
        except OpenCartExistsError:
            # 別のトランザクションが先にカートを作成したので読み直す
            logger.info("Cart created concurrently, reloading", customer_id=customer_id)
            return self._execute(CustomerId(value=customer_id))

    def _execute(self, customer_id: CustomerId) -> CartOutput:
        with self.uow:
            cart = self.uow.orders.get_open_cart(customer_id)
            if cart is None:
                cart = Order.open(customer_id)
                self.uow.orders.add(cart)
                logger.info("Cart created", customer_id=customer_id.value, cart_id=str(cart.id.value))
            self.uow.commit()
            return CartOutput.from_order(cart)


class ListCartItemsUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def execute(self, cart_id: str) -> list[LineItemDetail]:
        order_id = _parse_order_id(cart_id)
        with self.uow:
            if self.uow.orders.get(order_id) is None:
                raise CartNotFoundError(f"Cart {cart_id} not found")
            return self.uow.orders.list_item_details(order_id)


class AddCartItemUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def execute(self, cart_id: str, product_id: int, quantity: int | None = None) -> AddItemOutput:
        order_id = _parse_order_id(cart_id)
        qty = Quantity.of(1 if quantity is None else quantity)
        out = _retry_on_conflict(lambda: self._execute(order_id, product_id, qty), cart_id=cart_id)

        logger.info(
            "Cart item added" if out.created else "Cart item merged",
            cart_id=cart_id,
            product_id=product_id,
            quantity=out.item.quantity,
        )
        return out

    def _execute(self, order_id: OrderId, product_id: int, qty: Quantity) -> AddItemOutput:
        with self.uow:
            cart = self.uow.orders.get(order_id, for_update=True)
            if cart is None:
                raise CartNotFoundError(f"Cart {order_id.value} not found")
            product = self.uow.products.get(_parse_product_id(product_id))
            if product is None:
                raise ProductNotFoundError(f"Product {product_id} not found")

            created = cart.find_item(product.id) is None
            item = cart.add_item(product.id, product.price, qty)
            self.uow.orders.save(cart)
            self.uow.commit()
        return AddItemOutput(item=LineItemOutput.from_item(order_id, item), created=created)


class UpdateCartItemQuantityUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def execute(self, cart_id: str, product_id: int, quantity: int) -> LineItemOutput:
        order_id = _parse_order_id(cart_id)
        qty = Quantity.of(quantity)
        item = _retry_on_conflict(lambda: self._execute(order_id, product_id, qty), cart_id=cart_id)

        logger.info("Cart item updated", cart_id=cart_id, product_id=product_id, quantity=quantity)
        return LineItemOutput.from_item(order_id, item)

    def _execute(self, order_id: OrderId, product_id: int, qty: Quantity) -> LineItem:
        with self.uow:
            cart = self.uow.orders.get(order_id, for_update=True)
            if cart is None:
                raise CartNotFoundError(f"Cart {order_id.value} not found")
            item = cart.change_item_quantity(_parse_product_id(product_id, ItemNotFoundError), qty)
            self.uow.orders.save(cart)
            self.uow.commit()
        return item


class RemoveCartItemUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def execute(self, cart_id: str, product_id: int) -> LineItemOutput:
        order_id = _parse_order_id(cart_id)
        item = _retry_on_conflict(lambda: self._execute(order_id, product_id), cart_id=cart_id)

        logger.info("Cart item removed", cart_id=cart_id, product_id=product_id)
        return LineItemOutput.from_item(order_id, item)

    def _execute(self, order_id: OrderId, product_id: int) -> LineItem:
        with self.uow:
            cart = self.uow.orders.get(order_id, for_update=True)
            if cart is None:
                raise CartNotFoundError(f"Cart {order_id.value} not found")
            item = cart.remove_item(_parse_product_id(product_id, ItemNotFoundError))
            self.uow.orders.save(cart)
            self.uow.commit()
        return item


# 行ロックが効かないストレージでは同じカートへの変更が競合するので、読み直してやり直す
def _retry_on_conflict(operation: Callable[[], T], **log_context) -> T:
    for attempt in range(1, MAX_ATTEMPTS):
        try:
            return operation()
        except ConcurrentUpdateError:
            logger.info("Cart changed concurrently, retrying", attempt=attempt, **log_context)
    return operation()


def _parse_order_id(cart_id: str) -> OrderId:
    try:
        return OrderId(value=cart_id)
    except ValueError as e:
        raise CartNotFoundError(f"Cart {cart_id} not found") from e


def _parse_product_id(product_id: int, error: type[DomainError] = ProductNotFoundError) -> ProductId:
    try:
        return ProductId(value=product_id)
    except ValueError as e:
        raise error(f"Product {product_id} not found") from e
