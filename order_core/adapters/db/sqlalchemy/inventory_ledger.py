from sqlalchemy import select, update
from sqlalchemy.orm import Session
import structlog

from order_core.adapters.db.sqlalchemy import models
from order_core.application.ports import InventoryLedger
from order_core.domain.errors import InsufficientStockError, ProductNotFoundError
from order_core.domain.order import ProductId, Quantity

logger = structlog.get_logger(__name__)


class SQLAlchemyInventoryLedger(InventoryLedger):
    def __init__(self, session: Session):
        self.session = session

    def decrement(self, product_id: ProductId, quantity: Quantity) -> int:
        # 在庫が足りる場合のみ減らす (負の在庫にはしない)
        result = self.session.execute(
            update(models.Product)
            .where(
                models.Product.id == product_id.value,
                models.Product.stock_quantity >= quantity.value,
            )
            .values(stock_quantity=models.Product.stock_quantity - quantity.value)
            .execution_options(synchronize_session=False)
        )
        remaining = self.session.scalar(
            select(models.Product.stock_quantity).where(models.Product.id == product_id.value)
        )
        if remaining is None:
            raise ProductNotFoundError(f"Product {product_id.value} not found")
        if result.rowcount != 1:
            logger.warning(
                "Insufficient stock",
                product_id=product_id.value,
                requested=quantity.value,
                available=remaining,
            )
            raise InsufficientStockError(
                f"Insufficient stock for product {product_id.value}: "
                f"requested {quantity.value}, available {remaining}"
            )
        return remaining
