"""Shared pytest fixtures for hisab tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from hisab.database.factories import create_sqlite_database
from hisab.domain.account import AccountService
from hisab.domain.currency import CurrencyService
from hisab.domain.ledger import LedgerService
from hisab.domain.reference import ReferenceService
from hisab.domain.sale import SaleService
from hisab.domain.settlement import SettlementService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def currency_service(temp_db):
    """Create a CurrencyService with a temporary database."""
    return CurrencyService(temp_db)


@pytest.fixture
def account_service(temp_db, currency_service):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, currency_service)


@pytest.fixture
def ledger_service(temp_db, currency_service):
    """Create a LedgerService with a temporary database."""
    return LedgerService(temp_db, currency_service)


@pytest.fixture
def reference_service(temp_db):
    return ReferenceService(temp_db)


@pytest.fixture
def sale_service(temp_db, currency_service):
    """Create a SaleService with a temporary database."""
    return SaleService(temp_db, currency_service)


@pytest.fixture
def settlement_service(temp_db, currency_service):
    """Create a SettlementService with a temporary database."""
    return SettlementService(temp_db, currency_service)


@pytest.fixture
def base_currency(currency_service):
    """Create the base currency (AFN)."""
    return currency_service.create_currency("AFN", is_base=True)


@pytest.fixture
def usd(currency_service, base_currency):
    """Create USD with a rate of 70 AFN from 2024-01-01."""
    currency = currency_service.create_currency("USD")
    currency_service.add_exchange_rate(currency.id, base_currency.id, Decimal("70"), date(2024, 1, 1))
    return currency


@pytest.fixture
def cash_account(account_service, base_currency):
    """Create a cash account held in the base currency."""
    return account_service.create_account(name="Cash", currency_id=base_currency.id)


@pytest.fixture
def revenue_account(account_service, base_currency):
    return account_service.create_account(name="Sales Revenue", currency_id=base_currency.id)


@pytest.fixture
def receivable_account(account_service, base_currency):
    return account_service.create_account(name="Receivables", currency_id=base_currency.id)


@pytest.fixture
def sample_customer(reference_service):
    """Create a sample customer for testing."""
    return reference_service.create_customer("Ahmad Karimi", phone="0700000000")


@pytest.fixture
def sample_unit(reference_service):
    return reference_service.create_unit("kg")


@pytest.fixture
def sample_product(reference_service, sample_unit):
    """Create a sample product sold by the kilogram."""
    return reference_service.create_product("Rice", default_unit_id=sample_unit.id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
