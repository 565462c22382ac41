from pydantic import BaseModel, ConfigDict, Field, StrictInt

from order_core.application.dto import (
    CartOutput,
    LineItemDetail,
    LineItemOutput,
    OrderOutput,
    OrderSummaryOutput,
)

class AddCartItemRequest(BaseModel):
    product_id: StrictInt = Field(alias="productId")
    quantity: StrictInt | None = None
    model_config = ConfigDict(populate_by_name=True)

class UpdateCartItemRequest(BaseModel):
    quantity: StrictInt

class CartResponse(BaseModel):
    cart: CartOutput
    items: list[LineItemDetail]

class CartItemResponse(BaseModel):
    message: str
    item: LineItemOutput

class MessageResponse(BaseModel):
    message: str

class CheckoutResponse(BaseModel):
    message: str
    order: OrderOutput
    new_cart_id: str = Field(alias="newCartId")
    model_config = ConfigDict(populate_by_name=True)

class OrderListResponse(BaseModel):
    orders: list[OrderSummaryOutput]

class OrderDetailResponse(BaseModel):
    order: OrderOutput
    items: list[LineItemDetail]

class OrderItemsResponse(BaseModel):
    items: list[LineItemDetail]
