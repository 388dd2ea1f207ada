"""Abstract database interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional
from datetime import date
from decimal import Decimal

# Type-only import: domain/__init__.py imports services that import this module
if TYPE_CHECKING:
    from hisab.domain.entities import (
        Currency,
        ExchangeRate,
        Account,
        AccountTransaction,
        JournalEntry,
        JournalEntryLine,
        PreparedLine,
        Sale,
        SaleItem,
        AdditionalCost,
        SalePayment,
        SaleTotals,
        Customer,
        Unit,
        Product,
    )


class Database(ABC):
    """Abstract database interface for hisab.

    Every write method is a single atomic transaction: it either commits all
    of its rows or raises after rolling everything back.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Currency operations
    @abstractmethod
    def create_currency(self, name: str, is_base: bool = False) -> int:
        """Create a currency, unmarking any other base when is_base. Returns currency ID."""
        pass

    @abstractmethod
    def get_currency(self, currency_id: int) -> Optional[Currency]:
        """Get currency by ID."""
        pass

    @abstractmethod
    def get_currency_by_name(self, name: str) -> Optional[Currency]:
        """Get currency by name."""
        pass

    @abstractmethod
    def get_base_currency(self) -> Optional[Currency]:
        """Get the base currency, if one is configured."""
        pass

    @abstractmethod
    def list_currencies(self) -> list[Currency]:
        """List currencies, base first, then by name."""
        pass

    @abstractmethod
    def update_currency(self, currency_id: int, name: str, is_base: bool) -> None:
        """Update currency name and base flag."""
        pass

    @abstractmethod
    def set_base_currency(self, currency_id: int) -> None:
        """Atomically make this currency the only base currency."""
        pass

    @abstractmethod
    def delete_currency(self, currency_id: int) -> None:
        """Delete a currency."""
        pass

    @abstractmethod
    def count_currency_references(self, currency_id: int) -> dict[str, int]:
        """Count rows referencing a currency, keyed by a human-readable label."""
        pass

    @abstractmethod
    def create_exchange_rate(
        self, from_currency_id: int, to_currency_id: int, rate: Decimal, rate_date: date
    ) -> int:
        """Record an exchange rate. Returns rate ID."""
        pass

    @abstractmethod
    def get_exchange_rate(self, rate_id: int) -> Optional[ExchangeRate]:
        """Get exchange rate by ID."""
        pass

    @abstractmethod
    def list_exchange_rates(
        self, from_currency_id: Optional[int] = None, to_currency_id: Optional[int] = None
    ) -> list[ExchangeRate]:
        """List exchange rates, newest first, optionally filtered by pair."""
        pass

    @abstractmethod
    def find_latest_rate(
        self, from_currency_id: int, to_currency_id: int, as_of: date
    ) -> Optional[ExchangeRate]:
        """Get the most recent rate for a pair dated on or before as_of."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        currency_id: Optional[int],
        initial_balance: Decimal,
        notes: Optional[str] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        """List all accounts."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: str,
        currency_id: Optional[int],
        initial_balance: Decimal,
        notes: Optional[str],
    ) -> None:
        """Update account fields."""
        pass

    @abstractmethod
    def delete_account(self, account_id: int) -> None:
        """Delete an account together with its own transactions."""
        pass

    @abstractmethod
    def count_account_references(self, account_id: int) -> dict[str, int]:
        """Count journal lines and sale payments referencing an account."""
        pass

    @abstractmethod
    def create_account_transaction(
        self,
        account_id: int,
        type: str,
        amount: Decimal,
        currency_id: int,
        rate: Decimal,
        total: Decimal,
        txn_date: date,
        is_full: bool = False,
        notes: Optional[str] = None,
    ) -> int:
        """Create an account transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_account_transaction(self, transaction_id: int) -> Optional[AccountTransaction]:
        """Get account transaction by ID."""
        pass

    @abstractmethod
    def list_account_transactions(
        self,
        account_id: int,
        currency_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[AccountTransaction]:
        """List account transactions ordered by date then ID.

        Args:
            account_id: Account to list
            currency_id: Optional currency filter
            start_date: Optional inclusive lower date bound
            end_date: Optional inclusive upper date bound
        """
        pass

    @abstractmethod
    def delete_account_transaction(self, transaction_id: int) -> None:
        """Delete an account transaction."""
        pass

    # Journal operations
    @abstractmethod
    def create_journal_entry(
        self,
        entry_date: date,
        description: Optional[str],
        reference_type: str,
        reference_id: Optional[int],
        lines: list[PreparedLine],
    ) -> int:
        """Allocate an entry number and write the entry with all lines. Returns entry ID."""
        pass

    @abstractmethod
    def get_journal_entry(self, entry_id: int) -> Optional[JournalEntry]:
        """Get journal entry header by ID."""
        pass

    @abstractmethod
    def get_journal_lines(self, entry_id: int) -> list[JournalEntryLine]:
        """Get lines of a journal entry in insertion order."""
        pass

    @abstractmethod
    def list_journal_entries(self, offset: int, limit: int) -> tuple[list[JournalEntry], int]:
        """List entries newest first. Returns (page items, total count)."""
        pass

    @abstractmethod
    def find_journal_entries(self, reference_type: str, reference_id: int) -> list[JournalEntry]:
        """Find entries linked to a business event."""
        pass

    # Sale operations
    @abstractmethod
    def create_sale(
        self,
        customer_id: int,
        sale_date: date,
        currency_id: int,
        exchange_rate: Decimal,
        notes: Optional[str],
        totals: SaleTotals,
    ) -> int:
        """Create a sale with its items and additional costs. Returns sale ID."""
        pass

    @abstractmethod
    def update_sale(
        self,
        sale_id: int,
        customer_id: int,
        sale_date: date,
        currency_id: int,
        exchange_rate: Decimal,
        notes: Optional[str],
        totals: SaleTotals,
    ) -> None:
        """Replace sale header fields, items and additional costs."""
        pass

    @abstractmethod
    def delete_sale(self, sale_id: int) -> None:
        """Delete a sale with items, costs, payments and payment postings."""
        pass

    @abstractmethod
    def get_sale(self, sale_id: int) -> Optional[Sale]:
        """Get sale header by ID."""
        pass

    @abstractmethod
    def get_sale_items(self, sale_id: int) -> list[SaleItem]:
        """Get items of a sale."""
        pass

    @abstractmethod
    def get_additional_costs(self, sale_id: int) -> list[AdditionalCost]:
        """Get additional costs of a sale."""
        pass

    @abstractmethod
    def list_sales(
        self,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        sort_by: str = "date",
        sort_order: str = "desc",
    ) -> tuple[list[Sale], int]:
        """List sales. Returns (page items, total matching count)."""
        pass

    # Payment operations
    @abstractmethod
    def create_sale_payment(
        self,
        sale_id: int,
        account_id: Optional[int],
        currency_id: int,
        exchange_rate: Decimal,
        amount: Decimal,
        base_amount: Decimal,
        payment_date: date,
    ) -> int:
        """Create a payment, post it to its account and refresh the sale's paid amount."""
        pass

    @abstractmethod
    def get_sale_payment(self, payment_id: int) -> Optional[SalePayment]:
        """Get sale payment by ID."""
        pass

    @abstractmethod
    def list_sale_payments(self, sale_id: int) -> list[SalePayment]:
        """List payments of a sale ordered by date then ID."""
        pass

    @abstractmethod
    def delete_sale_payment(self, payment_id: int) -> None:
        """Delete a payment and its account posting, then refresh the sale's paid amount."""
        pass

    # Reference data operations
    @abstractmethod
    def create_customer(
        self,
        full_name: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a customer. Returns customer ID."""
        pass

    @abstractmethod
    def get_customer(self, customer_id: int) -> Optional[Customer]:
        """Get customer by ID."""
        pass

    @abstractmethod
    def list_customers(self) -> list[Customer]:
        """List customers by name."""
        pass

    @abstractmethod
    def create_unit(self, name: str) -> int:
        """Create a unit. Returns unit ID."""
        pass

    @abstractmethod
    def get_unit(self, unit_id: int) -> Optional[Unit]:
        """Get unit by ID."""
        pass

    @abstractmethod
    def list_units(self) -> list[Unit]:
        """List units by name."""
        pass

    @abstractmethod
    def create_product(self, name: str, default_unit_id: Optional[int] = None) -> int:
        """Create a product. Returns product ID."""
        pass

    @abstractmethod
    def get_product(self, product_id: int) -> Optional[Product]:
        """Get product by ID."""
        pass

    @abstractmethod
    def list_products(self) -> list[Product]:
        """List products by name."""
        pass
