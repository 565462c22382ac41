from decimal import Decimal
from pathlib import Path

import pytest

from order_core.adapters.db.sqlalchemy import models
from order_core.adapters.db.sqlalchemy.session import create_db_engine, create_schema, create_session_factory
from order_core.adapters.db.sqlalchemy.uow import SQLAlchemyUnitOfWork
from order_core.adapters.payment.simulated import SimulatedPaymentAuthority
from order_core.application.ports import PaymentAuthority, PaymentOutcome
from order_core.config import Settings


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))
        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)


class RecordingPaymentAuthority(PaymentAuthority):
    """Approves (or declines) instantly and remembers every amount it saw."""

    def __init__(self, outcome: PaymentOutcome = PaymentOutcome.APPROVED):
        self.outcome = outcome
        self.amounts = []

    def authorize(self, amount):
        self.amounts.append(amount.amount)
        return self.outcome


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        database_url="sqlite://",
        payment_delay_seconds=0,
    )


@pytest.fixture()
def engine(settings):
    engine = create_db_engine(settings)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture()
def uow(session_factory):
    return SQLAlchemyUnitOfWork(session_factory)


@pytest.fixture()
def payments():
    return RecordingPaymentAuthority()


@pytest.fixture()
def declining_payments():
    return SimulatedPaymentAuthority(delay_seconds=0, decline_rate=1.0)


@pytest.fixture()
def add_product(session_factory):
    def _add(name="Widget", price="10.00", stock=10, img_url=None, id=None):
        with session_factory() as session:
            product = models.Product(
                id=id,
                name=name,
                price=Decimal(price),
                stock_quantity=stock,
                img_url=img_url,
            )
            session.add(product)
            session.commit()
            return product.id

    return _add


@pytest.fixture()
def stock_of(session_factory):
    def _stock(product_id):
        with session_factory() as session:
            return session.get(models.Product, product_id).stock_quantity

    return _stock


@pytest.fixture()
def set_price(session_factory):
    def _set(product_id, price):
        with session_factory() as session:
            session.get(models.Product, product_id).price = Decimal(price)
            session.commit()

    return _set
