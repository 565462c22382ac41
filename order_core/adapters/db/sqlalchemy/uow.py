from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker, Session
import structlog

from order_core.application.ports import InventoryLedger, OrderRepository, ProductCatalog, UnitOfWork
from order_core.adapters.db.sqlalchemy.inventory_ledger import SQLAlchemyInventoryLedger
from order_core.adapters.db.sqlalchemy.order_repository import SQLAlchemyOrderRepository
from order_core.adapters.db.sqlalchemy.product_catalog import SQLAlchemyProductCatalog
from order_core.domain.errors import ConcurrentUpdateError

logger = structlog.get_logger(__name__)

# データベースの変更を伴う単一のビジネスロジック全体をラップするデザインパターン
class SQLAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self.session: Session | None = None
        self._orders: OrderRepository | None = None
        self._products: ProductCatalog | None = None
        self._inventory: InventoryLedger | None = None

    def __enter__(self) -> "SQLAlchemyUnitOfWork":
        self.session = self._session_factory()
        assert self.session is not None, "UnitOfWork is not entered."
        self.session.begin()
        self._orders = SQLAlchemyOrderRepository(self.session)
        self._products = SQLAlchemyProductCatalog(self.session)
        self._inventory = SQLAlchemyInventoryLedger(self.session)
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        try:
            if exc_type:
                logger.info(
                    "Transaction rolled back",
                    error=exc_type.__name__,
                    reason=str(exc_value),
                )
                self.rollback()
        finally:
            # commit されていない変更は close で破棄され、コネクションはプールに戻る
            if self.session:
                self.session.close()
            self.session = None

    @property
    def orders(self) -> OrderRepository:
        assert self._orders is not None, "UnitOfWork is not entered."
        return self._orders

    @property
    def products(self) -> ProductCatalog:
        assert self._products is not None, "UnitOfWork is not entered."
        return self._products

    @property
    def inventory(self) -> InventoryLedger:
        assert self._inventory is not None, "UnitOfWork is not entered."
        return self._inventory

    def commit(self) -> None:
        assert self.session is not None, "UnitOfWork is not entered."
        try:
            self.session.commit()
        except IntegrityError as e:
            raise ConcurrentUpdateError("Order processing conflict") from e

    def rollback(self) -> None:
        assert self.session is not None, "UnitOfWork is not entered."
        self.session.rollback()
