import logging

import pytest
from sqlalchemy import create_engine, inspect

from order_core import manage
from order_core.adapters.payment.simulated import SimulatedPaymentAuthority
from order_core.application.ports import PaymentOutcome
from order_core.config import Settings
from order_core.domain.order import Money
from order_core.utils.logging import configure_logging, get_log_level


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.environment == "development"
        assert settings.database_url.startswith("mysql+pymysql://")
        assert settings.payment_delay_seconds == 1.0
        assert settings.payment_decline_rate == 0.0

    def test_environment_variables_use_prefix(self, monkeypatch):
        monkeypatch.setenv("ORDER_CORE_DATABASE_URL", "sqlite://")
        monkeypatch.setenv("ORDER_CORE_PAYMENT_DECLINE_RATE", "0.25")
        settings = Settings(_env_file=None)
        assert settings.database_url == "sqlite://"
        assert settings.payment_decline_rate == 0.25


class TestLogging:
    @pytest.mark.parametrize(
        "environment,expected",
        [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("other", "INFO")],
    )
    def test_level_follows_environment(self, environment, expected):
        assert get_log_level(Settings(_env_file=None, environment=environment)) == expected

    def test_explicit_level_wins(self):
        assert get_log_level(Settings(_env_file=None, environment="production", log_level="debug")) == "DEBUG"

    def test_configure_sets_root_level(self):
        configure_logging(Settings(_env_file=None, environment="test"))
        assert logging.getLogger().level == logging.WARNING


class TestSimulatedPaymentAuthority:
    def test_approves_by_default(self):
        payments = SimulatedPaymentAuthority(delay_seconds=0)
        assert payments.authorize(Money.zero()) is PaymentOutcome.APPROVED

    def test_declines_below_rate(self):
        payments = SimulatedPaymentAuthority(delay_seconds=0, decline_rate=0.5, rng=lambda: 0.1)
        assert payments.authorize(Money.zero()) is PaymentOutcome.DECLINED

    def test_approves_above_rate(self):
        payments = SimulatedPaymentAuthority(delay_seconds=0, decline_rate=0.5, rng=lambda: 0.9)
        assert payments.authorize(Money.zero()) is PaymentOutcome.APPROVED

    def test_rejects_invalid_rate(self):
        with pytest.raises(ValueError):
            SimulatedPaymentAuthority(decline_rate=1.5)


class TestManage:
    def test_setup_and_drop(self, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'manage.db'}"

        manage.main(["--database-url", url, "setup-db"])
        engine = create_engine(url)
        assert {"products", "orders", "order_items"} <= set(inspect(engine).get_table_names())
        engine.dispose()

        manage.main(["--database-url", url, "drop-db"])
        engine = create_engine(url)
        assert inspect(engine).get_table_names() == []
        engine.dispose()

        assert "Done." in capsys.readouterr().out
