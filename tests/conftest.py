import logging
import os
from pathlib import Path
from typing import Any, Callable
from unittest.mock import patch

import pytest
import yaml

from bond_tracker.config import AppConfig, ConfigLoader
from bond_tracker.db import Database
from bond_tracker.models import CashAmount, Security, Transaction
from bond_tracker.repositories.transaction_repository import TransactionRepository
from bond_tracker.services.currency_service import CurrencyService

REPO_CONFIG_DIR: Path = Path(__file__).parent.parent / "config"


@pytest.fixture(scope="session", autouse=True)
def ensure_test_environment():
    """Ensure we're using the test environment for all tests."""
    original_env = os.environ.get("BOND_TRACKER_ENV")
    os.environ["BOND_TRACKER_ENV"] = "test"

    yield

    if original_env is not None:
        os.environ["BOND_TRACKER_ENV"] = original_env
    else:
        _ = os.environ.pop("BOND_TRACKER_ENV", None)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo any dictConfig applied by a test so caplog keeps seeing package records."""
    package_logger = logging.getLogger("bond_tracker")
    yield
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def app_config() -> AppConfig:
    """Load the AppConfig through the normal ConfigLoader mechanism using the repo's config files."""
    with patch.object(ConfigLoader, "_find_config_directory", return_value=REPO_CONFIG_DIR):
        return ConfigLoader.load_app_config(env="test")


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    with Database(":memory:") as db:
        db.create_tables_if_not_exists()
        yield db


@pytest.fixture
def transaction_repo(test_db: Database) -> TransactionRepository:
    return TransactionRepository(test_db)


@pytest.fixture
def currency_service() -> CurrencyService:
    return CurrencyService()


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for transactions with sensible defaults, keyed by type."""
    counter = {"n": 0}

    def _make(
        type: str,
        date: str = "2024-01-15T10:00:00",
        symbol: str | None = None,
        quantity: float = 0.0,
        price: float = 0.0,
        currency: str = "USD",
        amount: float | None = None,
        fee: float = 0.0,
        name: str | None = None,
        **security_fields: Any,
    ) -> Transaction:
        counter["n"] += 1
        security = None
        if symbol is not None:
            security = Security(
                symbol=symbol,
                name=name or symbol,
                quantity=quantity,
                price=price,
                currency=currency,
                **security_fields,
            )
        cash = CashAmount(amount=amount, currency=currency) if amount is not None else None
        return Transaction(
            id=f"t-{counter['n']}",
            type=type,
            date=date,
            security=security,
            cash=cash,
            fee=fee,
        )

    return _make


@pytest.fixture
def demo_scenario(make_transaction) -> list[Transaction]:
    """Deposit $2000, buy 6 bonds at $100 with a $5 fee, then receive a $23.10 coupon."""
    return [
        make_transaction("deposit", date="2024-01-15T10:00:00", amount=2000.0),
        make_transaction(
            "buy",
            date="2024-01-16T14:30:00",
            symbol="BY_POLESYE_01",
            name='СОАО "ПП Полесье" 7.70%',
            quantity=6,
            price=100.0,
            fee=5.0,
        ),
        make_transaction(
            "coupon",
            date="2024-02-15T09:00:00",
            symbol="BY_POLESYE_01",
            name='СОАО "ПП Полесье" 7.70%',
            amount=23.10,
        ),
    ]


@pytest.fixture
def isolated_config_environment(tmp_path: Path):
    """
    Create an isolated config directory holding copies of the repo's config files.
    Yields: {"config_dir": Path, "temp_dir": Path}
    """
    test_config_dir: Path = tmp_path / "config"
    test_config_dir.mkdir()

    for config_file in REPO_CONFIG_DIR.glob("*.yaml"):
        with open(config_file, "r") as src_file:
            content: dict[str, Any] = yaml.safe_load(src_file) or {}

        # Keep file outputs inside the temp directory
        if "csv_path" in content:
            content["csv_path"] = str(tmp_path / "test_import.csv")
        if "log_file_path" in content:
            content["log_file_path"] = str(tmp_path / "logs/test.log")

        with open(test_config_dir / config_file.name, "w") as dest_file:
            yaml.dump(content, dest_file)

    with patch.object(ConfigLoader, "_find_config_directory", return_value=test_config_dir):
        yield {"config_dir": test_config_dir, "temp_dir": tmp_path}


@pytest.fixture
def config_with_cli_overrides() -> Callable[..., AppConfig]:
    """Fixture for testing CLI argument overrides."""

    def _config_with_overrides(overrides: dict[str, Any]) -> AppConfig:
        with patch.object(ConfigLoader, "_find_config_directory", return_value=REPO_CONFIG_DIR):
            return ConfigLoader.load_app_config(env="test", overrides=overrides)

    return _config_with_overrides
