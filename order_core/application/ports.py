from order_core.application.dto import LineItemDetail
from order_core.domain.order import CustomerId, Money, Order, OrderId, ProductId, Quantity
from order_core.domain.product import Product

from abc import ABC, abstractmethod
import enum

class OrderRepository(ABC):
    @abstractmethod
    def add(self, order: Order) -> None: ...

    @abstractmethod
    def get(self, order_id: OrderId, for_update: bool = False) -> Order | None: ...

    @abstractmethod
    def get_open_cart(self, customer_id: CustomerId, for_update: bool = False) -> Order | None: ...

    @abstractmethod
    def save(self, order: Order) -> None: ...

    @abstractmethod
    def list_completed(self, customer_id: CustomerId) -> list[Order]: ...

    @abstractmethod
    def list_item_details(self, order_id: OrderId) -> list[LineItemDetail]: ...


class ProductCatalog(ABC):
    @abstractmethod
    def get(self, product_id: ProductId) -> Product | None: ...


class InventoryLedger(ABC):
    @abstractmethod
    def decrement(self, product_id: ProductId, quantity: Quantity) -> int: ...


class PaymentOutcome(str, enum.Enum):
    APPROVED = "approved"
    DECLINED = "declined"


class PaymentAuthority(ABC):
    @abstractmethod
    def authorize(self, amount: Money) -> PaymentOutcome: ...


class UnitOfWork(ABC):
    @abstractmethod
    def __enter__(self) -> "UnitOfWork": ...

    @abstractmethod
    def __exit__(self, exc_type, exc_value, traceback) -> None: ...

    @property
    @abstractmethod
    def orders(self) -> OrderRepository: ...

    @property
    @abstractmethod
    def products(self) -> ProductCatalog: ...

    @property
    @abstractmethod
    def inventory(self) -> InventoryLedger: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
