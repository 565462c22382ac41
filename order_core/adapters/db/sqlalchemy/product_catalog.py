from sqlalchemy.orm import Session

from order_core.adapters.db.sqlalchemy import models
from order_core.application.ports import ProductCatalog
from order_core.domain.order import Money, ProductId
from order_core.domain.product import Product


class SQLAlchemyProductCatalog(ProductCatalog):
    def __init__(self, session: Session):
        self.session = session

    def get(self, product_id: ProductId) -> Product | None:
        product_model = self.session.get(models.Product, product_id.value)
        if product_model:
            return Product(
                id=ProductId(value=product_model.id),
                name=product_model.name,
                price=Money(amount=product_model.price),
                stock_quantity=product_model.stock_quantity,
                img_url=product_model.img_url,
            )
        return None
