from fastapi import APIRouter, FastAPI, Depends, Header, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from order_core.adapters.db.sqlalchemy.session import create_db_engine, create_session_factory
from order_core.adapters.db.sqlalchemy.uow import SQLAlchemyUnitOfWork
from order_core.adapters.payment.simulated import SimulatedPaymentAuthority
from order_core.application.http.fastapi.schemas import (
    AddCartItemRequest,
    CartItemResponse,
    CartResponse,
    CheckoutResponse,
    MessageResponse,
    OrderDetailResponse,
    OrderItemsResponse,
    OrderListResponse,
    UpdateCartItemRequest,
)
from order_core.application.ports import PaymentAuthority, UnitOfWork
from order_core.application.use_cases.cart import (
    AddCartItemUseCase,
    GetOrCreateCartUseCase,
    ListCartItemsUseCase,
    RemoveCartItemUseCase,
    UpdateCartItemQuantityUseCase,
)
from order_core.application.use_cases.checkout import CheckoutUseCase
from order_core.application.use_cases.orders import GetOrderUseCase, ListOrdersUseCase
from order_core.config import Settings, get_settings
from order_core.domain.errors import DomainError
from order_core.utils.logging import add_context, clear_context, configure_logging

# (poetry run uvicorn order_core.application.http.fastapi.api:create_app --factory --reload)
# http://127.0.0.1:8000/docs

logger = structlog.get_logger(__name__)

_STATUS_BY_KIND = {
    "not_found": 404,
    "validation": 400,
    "conflict": 409,
    "payment_declined": 402,
    "insufficient_stock": 400,
}

router = APIRouter(prefix="/api")


def _http_error(e: DomainError) -> HTTPException:
    status_code = _STATUS_BY_KIND.get(e.kind, 500)
    logger.info("Request failed", error=e.code, status_code=status_code, reason=e.message)
    return HTTPException(
        status_code=status_code,
        detail={"error": e.code, "kind": e.kind, "message": e.message},
    )


def _internal_error() -> HTTPException:
    logger.exception("Unexpected error while handling request")
    return HTTPException(
        status_code=500,
        detail={"error": "internal_error", "kind": "internal", "message": "internal server error"},
    )

#
# 依存関係
#
def get_uow(request: Request) -> UnitOfWork:
    return SQLAlchemyUnitOfWork(request.app.state.session_factory)

def get_payment_authority(request: Request) -> PaymentAuthority:
    return request.app.state.payment_authority

# 認証は上流で済んでいる前提で、顧客IDはヘッダで受け取る
async def get_customer_id(x_customer_id: str = Header(...)) -> str:
    customer_id = x_customer_id.strip()
    if not customer_id:
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_request", "kind": "validation", "message": "X-Customer-Id is required"},
        )
    add_context(customer_id=customer_id)
    return customer_id

def get_get_or_create_cart_uc(uow: UnitOfWork = Depends(get_uow)):
    return GetOrCreateCartUseCase(uow=uow)

def get_list_cart_items_uc(uow: UnitOfWork = Depends(get_uow)):
    return ListCartItemsUseCase(uow=uow)

def get_add_cart_item_uc(uow: UnitOfWork = Depends(get_uow)):
    return AddCartItemUseCase(uow=uow)

def get_update_cart_item_uc(uow: UnitOfWork = Depends(get_uow)):
    return UpdateCartItemQuantityUseCase(uow=uow)

def get_remove_cart_item_uc(uow: UnitOfWork = Depends(get_uow)):
    return RemoveCartItemUseCase(uow=uow)

def get_checkout_uc(
    uow: UnitOfWork = Depends(get_uow),
    payments: PaymentAuthority = Depends(get_payment_authority),
):
    return CheckoutUseCase(uow=uow, payments=payments)

def get_list_orders_uc(uow: UnitOfWork = Depends(get_uow)):
    return ListOrdersUseCase(uow=uow)

def get_order_uc(uow: UnitOfWork = Depends(get_uow)):
    return GetOrderUseCase(uow=uow)

#
# カート
#
@router.get("/cart", response_model=CartResponse)
def get_cart(
    customer_id: str = Depends(get_customer_id),
    carts: GetOrCreateCartUseCase = Depends(get_get_or_create_cart_uc),
    items: ListCartItemsUseCase = Depends(get_list_cart_items_uc),
):
    try:
        cart = carts.execute(customer_id)
        return CartResponse(cart=cart, items=items.execute(cart.id))
    except DomainError as e:
        raise _http_error(e)
    except Exception:
        raise _internal_error()


@router.post("/cart", response_model=CartItemResponse)
def add_cart_item(
    data: AddCartItemRequest,
    response: Response,
    customer_id: str = Depends(get_customer_id),
    carts: GetOrCreateCartUseCase = Depends(get_get_or_create_cart_uc),
    uc: AddCartItemUseCase = Depends(get_add_cart_item_uc),
):
    try:
        cart = carts.execute(customer_id)
        out = uc.execute(cart.id, data.product_id, data.quantity)
    except DomainError as e:
        raise _http_error(e)
    except Exception:
        raise _internal_error()
    if out.created:
        response.status_code = 201
        return CartItemResponse(message="Item added to cart", item=out.item)
    return CartItemResponse(message="Cart item updated", item=out.item)


@router.put("/cart/items/{product_id}", response_model=CartItemResponse)
def update_cart_item(
    product_id: int,
    data: UpdateCartItemRequest,
    customer_id: str = Depends(get_customer_id),
    carts: GetOrCreateCartUseCase = Depends(get_get_or_create_cart_uc),
    uc: UpdateCartItemQuantityUseCase = Depends(get_update_cart_item_uc),
):
    try:
        cart = carts.execute(customer_id)
        item = uc.execute(cart.id, product_id, data.quantity)
        return CartItemResponse(message="Cart item updated", item=item)
    except DomainError as e:
        raise _http_error(e)
    except Exception:
        raise _internal_error()


@router.delete("/cart/items/{product_id}", response_model=MessageResponse)
def remove_cart_item(
    product_id: int,
    customer_id: str = Depends(get_customer_id),
    carts: GetOrCreateCartUseCase = Depends(get_get_or_create_cart_uc),
    uc: RemoveCartItemUseCase = Depends(get_remove_cart_item_uc),
):
    try:
        cart = carts.execute(customer_id)
        uc.execute(cart.id, product_id)
        return MessageResponse(message="Cart item removed")
    except DomainError as e:
        raise _http_error(e)
    except Exception:
        raise _internal_error()


@router.post("/cart/checkout", response_model=CheckoutResponse)
def checkout(
    customer_id: str = Depends(get_customer_id),
    uc: CheckoutUseCase = Depends(get_checkout_uc),
):
    try:
        out = uc.execute(customer_id)
        return CheckoutResponse(
            message="Checkout completed successfully",
            order=out.order,
            new_cart_id=out.new_cart_id,
        )
    except DomainError as e:
        raise _http_error(e)
    except Exception:
        raise _internal_error()

#
# 注文履歴
#
@router.get("/orders", response_model=OrderListResponse)
def list_orders(
    customer_id: str = Depends(get_customer_id),
    uc: ListOrdersUseCase = Depends(get_list_orders_uc),
):
    try:
        return OrderListResponse(orders=uc.execute(customer_id))
    except DomainError as e:
        raise _http_error(e)
    except Exception:
        raise _internal_error()


@router.get("/orders/{order_id}", response_model=OrderDetailResponse)
def get_order(
    order_id: str,
    customer_id: str = Depends(get_customer_id),
    uc: GetOrderUseCase = Depends(get_order_uc),
):
    try:
        out = uc.execute(customer_id, order_id)
        return OrderDetailResponse(order=out.order, items=out.items)
    except DomainError as e:
        raise _http_error(e)
    except Exception:
        raise _internal_error()


@router.get("/orders/{order_id}/items", response_model=OrderItemsResponse)
def get_order_items(
    order_id: str,
    customer_id: str = Depends(get_customer_id),
    uc: GetOrderUseCase = Depends(get_order_uc),
):
    try:
        return OrderItemsResponse(items=uc.execute(customer_id, order_id).items)
    except DomainError as e:
        raise _http_error(e)
    except Exception:
        raise _internal_error()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with its own engine, session factory and payment authority."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title="Order Core")
    engine = create_db_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.payment_authority = SimulatedPaymentAuthority(
        delay_seconds=settings.payment_delay_seconds,
        decline_rate=settings.payment_decline_rate,
    )

    @app.middleware("http")
    async def bind_request_context(request: Request, call_next):
        clear_context()
        add_context(method=request.method, path=request.url.path)
        return await call_next(request)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Invalid request", path=request.url.path, errors=len(exc.errors()))
        return JSONResponse(
            status_code=400,
            content={
                "detail": {
                    "error": "invalid_request",
                    "kind": "validation",
                    "message": "Request validation failed",
                    "errors": jsonable_encoder(exc.errors()),
                }
            },
        )

    app.include_router(router)
    logger.info("Application created", environment=settings.environment)
    return app
