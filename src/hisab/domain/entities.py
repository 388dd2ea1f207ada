"""Domain model entities for hisab.

These are pure data classes representing business concepts, independent of
database schema. The database layer converts its rows into these via the
mapper functions, so services never see ORM objects.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

DEPOSIT = "deposit"
WITHDRAW = "withdraw"
TRANSACTION_TYPES = (DEPOSIT, WITHDRAW)

REFERENCE_MANUAL = "manual"
REFERENCE_SALE = "sale"
REFERENCE_REVERSAL = "reversal"


@dataclass(frozen=True)
class Currency:
    """Currency domain entity."""

    id: int
    name: str
    is_base: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class ExchangeRate:
    """1 unit of from_currency equals ``rate`` units of to_currency on ``date``."""

    id: int
    from_currency_id: int
    to_currency_id: int
    rate: Decimal
    date: date


@dataclass(frozen=True)
class Account:
    """Monetary account domain entity. Its balance is derived, never stored."""

    id: int
    name: str
    currency_id: Optional[int]
    initial_balance: Decimal
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class AccountTransaction:
    """Deposit or withdrawal posted to an account."""

    id: int
    account_id: int
    type: str
    amount: Decimal
    currency_id: int
    rate: Decimal
    total: Decimal
    date: date
    is_full: bool
    notes: Optional[str]
    sale_payment_id: Optional[int]
    created_at: datetime

    @property
    def signed_total(self) -> Decimal:
        return self.total if self.type == DEPOSIT else -self.total


@dataclass(frozen=True)
class JournalEntry:
    """Posted journal entry header."""

    id: int
    entry_number: str
    entry_date: date
    description: Optional[str]
    reference_type: str
    reference_id: Optional[int]
    created_at: datetime


@dataclass(frozen=True)
class JournalEntryLine:
    """One posting within a journal entry."""

    id: int
    entry_id: int
    account_id: int
    currency_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    exchange_rate: Decimal
    base_amount: Decimal
    description: Optional[str]

    @property
    def amount(self) -> Decimal:
        """Amount in the line currency, whichever side it is on."""
        return self.debit_amount if self.debit_amount > 0 else self.credit_amount


@dataclass(frozen=True)
class Sale:
    """Sale header with totals recomputed from its items, costs and payments."""

    id: int
    customer_id: int
    date: date
    currency_id: int
    exchange_rate: Decimal
    notes: Optional[str]
    total_amount: Decimal
    base_amount: Decimal
    paid_amount: Decimal
    created_at: datetime
    updated_at: datetime

    @property
    def remaining_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount


@dataclass(frozen=True)
class SaleItem:
    """Product line on a sale."""

    id: int
    sale_id: int
    product_id: int
    unit_id: int
    per_price: Decimal
    amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class AdditionalCost:
    """Extra charge (freight, fees) on a sale that is not tied to a product."""

    id: int
    sale_id: int
    name: str
    amount: Decimal


@dataclass(frozen=True)
class SalePayment:
    """Payment applied against a sale."""

    id: int
    sale_id: int
    account_id: Optional[int]
    currency_id: int
    exchange_rate: Decimal
    amount: Decimal
    base_amount: Decimal
    date: date
    created_at: datetime


@dataclass(frozen=True)
class SaleWithItems:
    """Sale together with the children it owns."""

    sale: Sale
    items: list[SaleItem]
    additional_costs: list[AdditionalCost]


@dataclass(frozen=True)
class Customer:
    id: int
    full_name: str
    phone: Optional[str]
    address: Optional[str]
    notes: Optional[str]


@dataclass(frozen=True)
class Unit:
    id: int
    name: str


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    default_unit_id: Optional[int]


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a list result."""

    items: list[T]
    total: int
    page: int
    per_page: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.per_page else 0


# Inputs supplied by callers before anything is persisted.


@dataclass(frozen=True)
class JournalLineInput:
    """Draft journal line. Leave ``exchange_rate`` unset to resolve it by date."""

    account_id: int
    currency_id: int
    debit_amount: Decimal = Decimal("0")
    credit_amount: Decimal = Decimal("0")
    exchange_rate: Optional[Decimal] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class SaleItemInput:
    """Draft sale item. ``unit_id`` falls back to the product's default unit."""

    product_id: int
    per_price: Decimal
    amount: Decimal
    unit_id: Optional[int] = None


@dataclass(frozen=True)
class AdditionalCostInput:
    name: str
    amount: Decimal


@dataclass(frozen=True)
class PreparedLine:
    """Validated journal line ready to be written."""

    account_id: int
    currency_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    exchange_rate: Decimal
    base_amount: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class PreparedItem:
    """Validated sale item ready to be written."""

    product_id: int
    unit_id: int
    per_price: Decimal
    amount: Decimal
    total: Decimal


@dataclass(frozen=True)
class SaleTotals:
    total_amount: Decimal
    base_amount: Decimal
    items: list[PreparedItem] = field(default_factory=list)
    additional_costs: list[AdditionalCostInput] = field(default_factory=list)
