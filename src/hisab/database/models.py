"""SQLAlchemy models for hisab database."""

import logging
from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    CheckConstraint,
    Index,
    create_engine,
    event,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

logger = logging.getLogger(__name__)

Base = declarative_base()

# Column types shared by every monetary table
Money = Numeric(18, 2)
Rate = Numeric(18, 6)
Quantity = Numeric(18, 3)


def _now() -> datetime:
    return datetime.now(UTC)


class Currency(Base):
    """Currency model. At most one row has is_base set."""

    __tablename__ = "currencies"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    is_base = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    __table_args__ = (
        Index(
            "uq_currencies_single_base",
            "is_base",
            unique=True,
            sqlite_where=text("is_base = 1"),
        ),
    )


class ExchangeRate(Base):
    """Historical exchange rate: 1 from_currency = rate to_currency on date."""

    __tablename__ = "exchange_rates"

    id = Column(Integer, primary_key=True)
    from_currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    to_currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    rate = Column(Rate, nullable=False)
    date = Column(Date, nullable=False)

    __table_args__ = (
        CheckConstraint("rate > 0", name="ck_exchange_rates_positive"),
        Index("ix_exchange_rates_pair_date", "from_currency_id", "to_currency_id", "date"),
    )


class Account(Base):
    """Monetary account model (cash box, bank account)."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=True)
    initial_balance = Column(Money, default=0, nullable=False)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # Relationships
    transactions = relationship(
        "AccountTransaction", back_populates="account", cascade="all, delete-orphan"
    )


class AccountTransaction(Base):
    """Deposit or withdrawal against an account."""

    __tablename__ = "account_transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    type = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    rate = Column(Rate, nullable=False)
    total = Column(Money, nullable=False)
    date = Column(Date, nullable=False)
    is_full = Column(Boolean, default=False, nullable=False)
    notes = Column(String, nullable=True)
    sale_payment_id = Column(
        Integer, ForeignKey("sale_payments.id", ondelete="CASCADE"), nullable=True, unique=True
    )
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (
        CheckConstraint("type IN ('deposit', 'withdraw')", name="ck_account_transactions_type"),
        Index("ix_account_transactions_account_currency", "account_id", "currency_id", "date"),
    )

    # Relationships
    account = relationship("Account", back_populates="transactions")
    sale_payment = relationship("SalePayment", back_populates="account_transaction")


class NumberSequence(Base):
    """Named monotonic counter. Values are handed out once and never reused."""

    __tablename__ = "sequences"

    name = Column(String, primary_key=True)
    next_value = Column(Integer, default=1, nullable=False)


class JournalEntry(Base):
    """Journal entry header."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    entry_number = Column(String, unique=True, nullable=False)
    entry_date = Column(Date, nullable=False)
    description = Column(String, nullable=True)
    reference_type = Column(String, default="manual", nullable=False)
    reference_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (Index("ix_journal_entries_reference", "reference_type", "reference_id"),)

    # Relationships
    lines = relationship(
        "JournalEntryLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryLine.id",
    )


class JournalEntryLine(Base):
    """Journal entry line: one side of a posting in one currency."""

    __tablename__ = "journal_entry_lines"

    id = Column(Integer, primary_key=True)
    entry_id = Column(Integer, ForeignKey("journal_entries.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    debit_amount = Column(Money, default=0, nullable=False)
    credit_amount = Column(Money, default=0, nullable=False)
    exchange_rate = Column(Rate, nullable=False)
    base_amount = Column(Money, nullable=False)
    description = Column(String, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "(debit_amount > 0 AND credit_amount = 0) OR (credit_amount > 0 AND debit_amount = 0)",
            name="ck_journal_entry_lines_one_side",
        ),
    )

    # Relationships
    entry = relationship("JournalEntry", back_populates="lines")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    full_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class Unit(Base):
    __tablename__ = "units"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    default_unit_id = Column(Integer, ForeignKey("units.id"), nullable=True)


class Sale(Base):
    """Sale header. Totals are recomputed from children on every write."""

    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    date = Column(Date, nullable=False)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    exchange_rate = Column(Rate, nullable=False)
    notes = Column(String, nullable=True)
    total_amount = Column(Money, default=0, nullable=False)
    base_amount = Column(Money, default=0, nullable=False)
    paid_amount = Column(Money, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)

    # Relationships
    customer = relationship("Customer")
    items = relationship(
        "SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id"
    )
    additional_costs = relationship(
        "SaleAdditionalCost",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleAdditionalCost.id",
    )
    payments = relationship("SalePayment", back_populates="sale", cascade="all, delete-orphan")


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    unit_id = Column(Integer, ForeignKey("units.id"), nullable=False)
    per_price = Column(Money, nullable=False)
    amount = Column(Quantity, nullable=False)
    total = Column(Money, nullable=False)

    # Relationships
    sale = relationship("Sale", back_populates="items")


class SaleAdditionalCost(Base):
    __tablename__ = "sale_additional_costs"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    amount = Column(Money, nullable=False)

    # Relationships
    sale = relationship("Sale", back_populates="additional_costs")


class SalePayment(Base):
    """Payment against a sale, optionally deposited into an account."""

    __tablename__ = "sale_payments"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    exchange_rate = Column(Rate, nullable=False)
    amount = Column(Money, nullable=False)
    base_amount = Column(Money, nullable=False)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    __table_args__ = (CheckConstraint("amount > 0", name="ck_sale_payments_positive"),)

    # Relationships
    sale = relationship("Sale", back_populates="payments")
    account_transaction = relationship(
        "AccountTransaction",
        back_populates="sale_payment",
        uselist=False,
        cascade="all, delete-orphan",
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_schema(engine: Engine) -> None:
    """Create all tables, ignoring races with another process doing the same."""
    try:
        Base.metadata.create_all(engine)
    except OperationalError as e:
        if "already exists" not in str(e):
            raise
        logger.debug("Schema already initialized: %s", e)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    create_schema(engine)
    return sessionmaker(bind=engine)
