"""Tests for the Order aggregate (cart and completed order)."""

from decimal import Decimal

import pytest

from order_core.domain.errors import (
    CartClosedError,
    EmptyCartError,
    InvalidQuantityError,
    ItemNotFoundError,
)
from order_core.domain.order import (
    MAX_INT,
    CustomerId,
    Money,
    Order,
    OrderStatus,
    ProductId,
    Quantity,
)


def _make_cart():
    return Order.open(CustomerId(value="cust-001"))


def _money(amount):
    return Money(amount=Decimal(amount))


class TestValueObjects:
    def test_money_is_quantized_to_cents(self):
        assert _money("10").amount == Decimal("10.00")
        assert _money("0.125").amount == Decimal("0.13")

    def test_negative_money_is_rejected(self):
        with pytest.raises(ValueError):
            _money("-1")

    def test_money_times_quantity(self):
        assert _money("10.00") * Quantity(value=3) == _money("30.00")

    def test_quantity_of_rejects_zero(self):
        with pytest.raises(InvalidQuantityError):
            Quantity.of(0)

    def test_quantity_of_accepts_positive(self):
        assert Quantity.of(2).value == 2

    def test_quantity_of_rejects_values_beyond_integer_column(self):
        assert Quantity.of(MAX_INT).value == MAX_INT
        with pytest.raises(InvalidQuantityError):
            Quantity.of(MAX_INT + 1)

    def test_product_id_out_of_range(self):
        with pytest.raises(ValueError):
            ProductId(value=MAX_INT + 1)


class TestOpenCart:
    def test_new_cart_is_open_and_empty(self):
        cart = _make_cart()
        assert cart.status == OrderStatus.CART
        assert cart.is_open
        assert cart.items == []
        assert cart.total == Money.zero()

    def test_each_cart_gets_its_own_id(self):
        assert _make_cart().id != _make_cart().id


class TestAddItem:
    def test_add_item(self):
        cart = _make_cart()
        item = cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=2))
        assert item.quantity.value == 2
        assert item.unit_price == _money("10.00")
        assert len(cart.items) == 1

    def test_add_same_product_increases_quantity(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=1))
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=2))
        assert len(cart.items) == 1
        assert cart.items[0].quantity.value == 3

    def test_merge_keeps_the_original_unit_price(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=1))
        cart.add_item(ProductId(value=1), _money("12.50"), Quantity(value=1))
        assert cart.items[0].unit_price == _money("10.00")

    def test_add_different_products_creates_new_lines(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=1))
        cart.add_item(ProductId(value=2), _money("5.00"), Quantity(value=1))
        assert len(cart.items) == 2

    def test_merge_beyond_limit_is_rejected(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("1.00"), Quantity(value=MAX_INT))
        with pytest.raises(InvalidQuantityError):
            cart.add_item(ProductId(value=1), _money("1.00"), Quantity(value=1))
        assert cart.items[0].quantity.value == MAX_INT

    def test_items_are_returned_as_copies(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=1))
        cart.items[0].change_quantity(Quantity(value=9))
        assert cart.items[0].quantity.value == 1


class TestUpdateAndRemove:
    def test_change_item_quantity(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=1))
        item = cart.change_item_quantity(ProductId(value=1), Quantity(value=5))
        assert item.quantity.value == 5
        assert item.unit_price == _money("10.00")

    def test_change_missing_item(self):
        cart = _make_cart()
        with pytest.raises(ItemNotFoundError):
            cart.change_item_quantity(ProductId(value=1), Quantity(value=5))

    def test_remove_item(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=1))
        cart.remove_item(ProductId(value=1))
        assert cart.items == []

    def test_removed_item_is_a_copy(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=2))
        line = cart._items[0]
        removed = cart.remove_item(ProductId(value=1))
        assert removed == line
        assert removed is not line

    def test_remove_missing_item(self):
        cart = _make_cart()
        with pytest.raises(ItemNotFoundError):
            cart.remove_item(ProductId(value=1))


class TestTotals:
    def test_cart_total_is_recomputed_from_lines(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=2))
        cart.add_item(ProductId(value=2), _money("2.50"), Quantity(value=3))
        assert cart.calculate_total() == _money("27.50")
        assert cart.total == _money("27.50")


class TestComplete:
    def test_complete_sets_status_and_total(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=2))
        total = cart.complete()
        assert total == _money("20.00")
        assert cart.status == OrderStatus.COMPLETED
        assert cart.total == _money("20.00")
        assert cart.completed_at is not None

    def test_cannot_complete_empty_cart(self):
        cart = _make_cart()
        with pytest.raises(EmptyCartError):
            cart.complete()
        assert cart.is_open

    def test_cannot_complete_twice(self):
        cart = _make_cart()
        cart.add_item(ProductId(value=1), _money("10.00"), Quantity(value=1))
        cart.complete()
        with pytest.raises(CartClosedError):
            cart.complete()

    def test_completed_order_cannot_be_modified(self):
        order = _make_cart()
        order.add_item(ProductId(value=1), _money("10.00"), Quantity(value=1))
        order.complete()
        with pytest.raises(CartClosedError):
            order.add_item(ProductId(value=2), _money("1.00"), Quantity(value=1))
        with pytest.raises(CartClosedError):
            order.change_item_quantity(ProductId(value=1), Quantity(value=2))
        with pytest.raises(CartClosedError):
            order.remove_item(ProductId(value=1))
