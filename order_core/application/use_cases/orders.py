from order_core.application.dto import OrderDetailOutput, OrderOutput, OrderSummaryOutput
from order_core.application.ports import UnitOfWork
from order_core.domain.errors import OrderNotFoundError
from order_core.domain.order import CustomerId, OrderId


class ListOrdersUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def execute(self, customer_id: str) -> list[OrderSummaryOutput]:
        with self.uow:
            orders = self.uow.orders.list_completed(CustomerId(value=customer_id))
            return [
                OrderSummaryOutput(
                    **OrderOutput.from_order(order).model_dump(),
                    item_count=len(order.items),
                    calculated_total=order.calculate_total().amount,
                ) for order in orders
            ]


class GetOrderUseCase:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def execute(self, customer_id: str, order_id: str) -> OrderDetailOutput:
        try:
            oid = OrderId(value=order_id)
        except ValueError as e:
            raise OrderNotFoundError(f"Order {order_id} not found") from e

        with self.uow:
            order = self.uow.orders.get(oid)
            # カートと他人の注文は見せない
            if order is None or order.is_open or order.customer_id.value != customer_id:
                raise OrderNotFoundError(f"Order {order_id} not found")
            return OrderDetailOutput(
                order=OrderOutput.from_order(order),
                items=self.uow.orders.list_item_details(oid),
            )
