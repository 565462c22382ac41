from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, computed_field, field_validator
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable
import copy
import enum
import uuid

from order_core.domain.errors import (
    CartClosedError,
    EmptyCartError,
    InvalidQuantityError,
    ItemNotFoundError,
)

CENT = Decimal("0.01")
# INTEGER カラムに収まる上限
MAX_INT = 2**31 - 1


def _now() -> datetime:
    return datetime.now(timezone.utc)

##################################
# 値オブジェクト （エンティティの属性として使用）
##################################
class Money(BaseModel):
    amount: Decimal
    model_config = ConfigDict(frozen=True)

    @field_validator("amount")
    @classmethod
    def check_amount_non_negative(cls, v: Decimal) -> Decimal:
        if v < 0:
            raise ValueError("Amount must be non-negative")
        return v.quantize(CENT, rounding=ROUND_HALF_UP)

    @classmethod
    def zero(cls) -> "Money":
        return cls(amount=Decimal("0"))

    def __add__(self, other: "Money") -> "Money":
        return Money(amount=self.amount + other.amount)

    def __mul__(self, quantity: "Quantity") -> "Money":
        return Money(amount=self.amount * quantity.value)


class Quantity(BaseModel):
    value: int
    model_config = ConfigDict(frozen=True)

    @field_validator("value")
    @classmethod
    def check_quantity_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1")
        if v > MAX_INT:
            raise ValueError(f"Quantity must be at most {MAX_INT}")
        return v

    # 入力値からの生成はドメインエラーとして扱う
    @classmethod
    def of(cls, value: int) -> "Quantity":
        if value < 1:
            raise InvalidQuantityError(f"Quantity must be at least 1, got {value}")
        if value > MAX_INT:
            raise InvalidQuantityError(f"Quantity must be at most {MAX_INT}, got {value}")
        return cls(value=value)

    def __add__(self, other: "Quantity") -> "Quantity":
        return Quantity.of(self.value + other.value)


class OrderId(BaseModel):
    value: uuid.UUID = Field(default_factory=uuid.uuid4)
    model_config = ConfigDict(frozen=True)

class LineItemId(BaseModel):
    value: uuid.UUID = Field(default_factory=uuid.uuid4)
    model_config = ConfigDict(frozen=True)

# 認証側から渡される不透明な識別子
class CustomerId(BaseModel):
    value: str = Field(min_length=1)
    model_config = ConfigDict(frozen=True)

# カタログ側のキー
class ProductId(BaseModel):
    value: int
    model_config = ConfigDict(frozen=True)

    @field_validator("value")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v <= 0 or v > MAX_INT:
            raise ValueError("Product id out of range")
        return v


class OrderStatus(str, enum.Enum):
    CART = "cart"
    COMPLETED = "completed"

##################################
# エンティティ
##################################

class LineItem(BaseModel):
    id: LineItemId = Field(default_factory=LineItemId)
    product_id: ProductId
    quantity: Quantity
    unit_price: Money  # 追加時点の価格。カタログの価格が変わっても変更しない
    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    def change_quantity(self, new_quantity: Quantity):
        self.quantity = new_quantity

    @computed_field
    @property
    def subtotal(self) -> Money:
        return self.unit_price * self.quantity

###################################
# 集約ルート (LineItemはOrderを通じてのみ操作可能)
###################################

class Order(BaseModel):
    """カートと確定済み注文の両方を表す集約。

    status が ``cart`` の間だけ明細を変更できる。``complete()`` が唯一の状態遷移で、
    その時点の合計金額が確定値として保存される。
    """
    id: OrderId = Field(default_factory=OrderId)
    customer_id: CustomerId
    created_at: datetime = Field(default_factory=_now)
    _status: OrderStatus = PrivateAttr(default=OrderStatus.CART)
    _items: list[LineItem] = PrivateAttr(default_factory=list)
    _total: Money = PrivateAttr(default_factory=Money.zero)
    _completed_at: datetime | None = PrivateAttr(default=None)
    _version: int = PrivateAttr(default=1)
    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    @classmethod
    def open(cls, customer_id: CustomerId) -> "Order":
        return cls(customer_id=customer_id)

    @computed_field
    @property
    def status(self) -> OrderStatus:
        return self._status

    @computed_field
    @property
    def items(self) -> list[LineItem]:
        # 外にリストを直接渡すと変更されてしまうのでコピーを返す
        return copy.deepcopy(self._items)

    @computed_field
    @property
    def total(self) -> Money:
        if self.is_open:
            return self.calculate_total()
        return self._total

    @property
    def completed_at(self) -> datetime | None:
        return self._completed_at

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_open(self) -> bool:
        return self._status == OrderStatus.CART

    def find_item(self, product_id: ProductId) -> LineItem | None:
        for item in self._items:
            if item.product_id == product_id:
                return copy.deepcopy(item)
        return None

    def add_item(self, product_id: ProductId, unit_price: Money, quantity: Quantity) -> LineItem:
        self._ensure_open()
        for item in self._items:
            if item.product_id == product_id:
                item.change_quantity(item.quantity + quantity)
                return copy.deepcopy(item)
        item = LineItem(
            id=LineItemId(),
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
        )
        self._items.append(item)
        return copy.deepcopy(item)

    def change_item_quantity(self, product_id: ProductId, quantity: Quantity) -> LineItem:
        self._ensure_open()
        item = self._get_item(product_id)
        item.change_quantity(quantity)
        return copy.deepcopy(item)

    def remove_item(self, product_id: ProductId) -> LineItem:
        self._ensure_open()
        item = self._get_item(product_id)
        self._items = [i for i in self._items if i is not item]
        return copy.deepcopy(item)

    def calculate_total(self) -> Money:
        total = Money.zero()
        for item in self._items:
            total += item.subtotal
        return total

    def complete(self) -> Money:
        self._ensure_open()
        if not self._items:
            raise EmptyCartError("Cannot checkout empty cart")
        self._total = self.calculate_total()
        self._status = OrderStatus.COMPLETED
        self._completed_at = _now()
        return self._total

    def _get_item(self, product_id: ProductId) -> LineItem:
        for item in self._items:
            if item.product_id == product_id:
                return item
        raise ItemNotFoundError(f"Cart item for product {product_id.value} not found")

    def _ensure_open(self):
        if not self.is_open:
            raise CartClosedError(
                f"Order {self.id.value} is {self._status.value} and can no longer be modified"
            )

    # NOTE: ドメインのルールを破らずに永続化から復元するためのファクトリメソッド
    @classmethod
    def from_persistence(
        cls,
        id: OrderId,
        customer_id: CustomerId,
        status: OrderStatus,
        items: Iterable[LineItem],
        total: Money,
        version: int,
        created_at: datetime,
        completed_at: datetime | None = None,
    ) -> "Order":
        o = cls(id=id, customer_id=customer_id, created_at=created_at)  # CART で初期化されるが、ここで上書きする
        o._status = status
        o._items = list(items)
        o._total = total
        o._version = version
        o._completed_at = completed_at
        return o
