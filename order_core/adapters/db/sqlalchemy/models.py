from sqlalchemy import String, Integer, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from datetime import datetime
from decimal import Decimal

class Base(DeclarativeBase): pass

# カタログのテーブル (CRUD はこのパッケージの外)
class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    img_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

class Order(Base):
    __tablename__ = "orders"
    id: Mapped[str] = mapped_column(String(255), primary_key=True)           # UUIDをstr保存
    customer_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=0)
    # カートの間だけ customer_id を入れ、確定後は NULL にする (顧客ごとにオープンなカートは1つ)
    open_cart_key: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1) # 楽観的な排他制御用のバージョン番号
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # リレーション
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="joined"
    )

class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_items_order_product"),
    )
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    order_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("orders.id", ondelete="CASCADE"),
        index=True
    )
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_at_time_of_purchase: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # リレーション
    order: Mapped[Order] = relationship(back_populates="items")
