from pydantic import BaseModel
from datetime import datetime
from decimal import Decimal

from order_core.domain.order import LineItem, Order, OrderId

# DTO (Data Transfer Object - データ転送オブジェクト)

class CartOutput(BaseModel):
    id: str
    customer_id: str
    status: str
    total: Decimal

    @classmethod
    def from_order(cls, order: Order) -> "CartOutput":
        return cls(
            id=str(order.id.value),
            customer_id=order.customer_id.value,
            status=order.status.value,
            total=order.total.amount,
        )


class LineItemOutput(BaseModel):
    id: str
    order_id: str
    product_id: int
    quantity: int
    price_at_time_of_purchase: Decimal

    @classmethod
    def from_item(cls, order_id: OrderId, item: LineItem) -> "LineItemOutput":
        return cls(
            id=str(item.id.value),
            order_id=str(order_id.value),
            product_id=item.product_id.value,
            quantity=item.quantity.value,
            price_at_time_of_purchase=item.unit_price.amount,
        )


# 明細 + 商品名・現在価格 (読み取り専用)
class LineItemDetail(LineItemOutput):
    name: str
    price: Decimal
    img_url: str | None = None


class AddItemOutput(BaseModel):
    item: LineItemOutput
    created: bool


class OrderOutput(BaseModel):
    id: str
    customer_id: str
    status: str
    total_amount: Decimal
    created_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderOutput":
        return cls(
            id=str(order.id.value),
            customer_id=order.customer_id.value,
            status=order.status.value,
            total_amount=order.total.amount,
            created_at=order.created_at,
            completed_at=order.completed_at,
        )


class OrderSummaryOutput(OrderOutput):
    item_count: int
    calculated_total: Decimal


class OrderDetailOutput(BaseModel):
    order: OrderOutput
    items: list[LineItemDetail]


class CheckoutOutput(BaseModel):
    order: OrderOutput
    new_cart_id: str
