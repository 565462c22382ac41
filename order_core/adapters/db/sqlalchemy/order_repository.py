from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from decimal import Decimal
import uuid

from order_core.adapters.db.sqlalchemy import models
from order_core.application.dto import LineItemDetail
from order_core.application.ports import OrderRepository
from order_core.domain.errors import ConcurrentUpdateError, OpenCartExistsError
from order_core.domain.order import (
    CustomerId,
    LineItem,
    LineItemId,
    Money,
    Order,
    OrderId,
    OrderStatus,
    ProductId,
    Quantity,
)

################################
# ドメインとSQLAlchemyの変換ヘルパ
################################

def _sa_to_domain_item(ri: models.OrderItem) -> LineItem:
    return LineItem(
        id=LineItemId(value=uuid.UUID(ri.id)),
        product_id=ProductId(value=ri.product_id),
        quantity=Quantity(value=ri.quantity),
        unit_price=Money(amount=ri.price_at_time_of_purchase),
    )

def _sa_to_domain(sa: models.Order) -> Order:
    return Order.from_persistence(
        id=OrderId(value=uuid.UUID(sa.id)),
        customer_id=CustomerId(value=sa.customer_id),
        status=OrderStatus(sa.status),
        items=[_sa_to_domain_item(ri) for ri in sa.items],
        total=Money(amount=sa.total_amount),
        version=sa.version,
        created_at=sa.created_at,
        completed_at=sa.completed_at,
    )

def _domain_to_sa_item(item: LineItem) -> models.OrderItem:
    return models.OrderItem(
        id=str(item.id.value),
        product_id=item.product_id.value,
        quantity=item.quantity.value,
        price_at_time_of_purchase=item.unit_price.amount,
    )

def _open_cart_key(order: Order) -> str | None:
    return order.customer_id.value if order.is_open else None


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: Session):
        self.session = session

    def add(self, order: Order) -> None:
        sa = models.Order(
            id=str(order.id.value),
            customer_id=order.customer_id.value,
            status=order.status.value,
            total_amount=Decimal("0") if order.is_open else order.total.amount,
            open_cart_key=_open_cart_key(order),
            version=order.version,
            created_at=order.created_at,
            completed_at=order.completed_at,
            items=[_domain_to_sa_item(item) for item in order.items],
        )
        self.session.add(sa)
        # 一意制約違反をここで検出するため即座に flush する
        try:
            self.session.flush()
        except IntegrityError as e:
            raise OpenCartExistsError(
                f"An open cart already exists for customer {order.customer_id.value}"
            ) from e

    def get(self, order_id: OrderId, for_update: bool = False) -> Order | None:
        stmt = select(models.Order).where(models.Order.id == str(order_id.value))
        return self._first(stmt, for_update)

    def get_open_cart(self, customer_id: CustomerId, for_update: bool = False) -> Order | None:
        stmt = select(models.Order).where(
            models.Order.customer_id == customer_id.value,
            models.Order.status == OrderStatus.CART.value,
        )
        return self._first(stmt, for_update)

    def save(self, order: Order) -> None:
        oid = str(order.id.value)
        sa = self.session.get(models.Order, oid)
        if sa is None:
            raise ConcurrentUpdateError(f"Order {oid} no longer exists")

        # 子の差分同期 (delete-orphan が効く)
        wanted = {str(item.id.value): item for item in order.items}
        existing = {row.id: row for row in sa.items}
        for row in list(sa.items):
            if row.id not in wanted:
                sa.items.remove(row)
        for item_id, item in wanted.items():
            row = existing.get(item_id)
            if row is None:
                sa.items.append(_domain_to_sa_item(item))
            else:
                row.quantity = item.quantity.value
        # 同じ商品の明細を別のトランザクションが先に追加していると一意制約に違反する
        try:
            self.session.flush()
        except IntegrityError as e:
            raise ConcurrentUpdateError(f"Order {oid} was modified by another transaction") from e

        # 楽観的な排他制御: 読み込んだ時点のバージョンと一致する場合のみ更新する
        result = self.session.execute(
            update(models.Order)
            .where(models.Order.id == oid, models.Order.version == order.version)
            .values(
                status=order.status.value,
                total_amount=Decimal("0") if order.is_open else order.total.amount,
                open_cart_key=_open_cart_key(order),
                completed_at=order.completed_at,
                version=models.Order.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrentUpdateError(f"Order {oid} was modified by another transaction")
        self.session.expire(sa)
        setattr(order, "_version", order.version + 1)

    def list_completed(self, customer_id: CustomerId) -> list[Order]:
        stmt = (
            select(models.Order)
            .where(
                models.Order.customer_id == customer_id.value,
                models.Order.status != OrderStatus.CART.value,
            )
            .order_by(models.Order.completed_at.desc(), models.Order.created_at.desc())
        )
        return [_sa_to_domain(sa) for sa in self.session.scalars(stmt).unique()]

    def list_item_details(self, order_id: OrderId) -> list[LineItemDetail]:
        stmt = (
            select(models.OrderItem, models.Product)
            .join(models.Product, models.OrderItem.product_id == models.Product.id)
            .where(models.OrderItem.order_id == str(order_id.value))
            .order_by(models.OrderItem.product_id)
        )
        return [
            LineItemDetail(
                id=item.id,
                order_id=item.order_id,
                product_id=item.product_id,
                quantity=item.quantity,
                price_at_time_of_purchase=item.price_at_time_of_purchase,
                name=product.name,
                price=product.price,
                img_url=product.img_url,
            )
            for item, product in self.session.execute(stmt).all()
        ]

    def _first(self, stmt, for_update: bool) -> Order | None:
        if for_update:
            stmt = stmt.with_for_update(of=models.Order)
        sa = self.session.scalars(stmt).unique().first()
        if not sa:
            return None
        return _sa_to_domain(sa)
