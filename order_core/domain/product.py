from pydantic import BaseModel, ConfigDict

from order_core.domain.order import Money, ProductId

#
# カタログ (外部) の読み取り専用スナップショット
#
class Product(BaseModel):
    id: ProductId
    name: str
    price: Money
    stock_quantity: int
    img_url: str | None = None
    model_config = ConfigDict(frozen=True)
