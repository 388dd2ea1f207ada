"""Generic SQLAlchemy database implementation."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from datetime import date
from decimal import Decimal
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hisab.database.base import Database
from hisab.database.models import (
    Currency,
    ExchangeRate,
    Account,
    AccountTransaction,
    NumberSequence,
    JournalEntry,
    JournalEntryLine,
    Sale,
    SaleItem,
    SaleAdditionalCost,
    SalePayment,
    Customer,
    Unit,
    Product,
    create_session_factory,
)
from hisab.database.mappers import (
    currency_to_domain,
    exchange_rate_to_domain,
    account_to_domain,
    account_transaction_to_domain,
    journal_entry_to_domain,
    journal_line_to_domain,
    sale_to_domain,
    sale_item_to_domain,
    additional_cost_to_domain,
    sale_payment_to_domain,
    customer_to_domain,
    unit_to_domain,
    product_to_domain,
)
from hisab.domain import entities as domain
from hisab.domain.errors import (
    NotFoundError,
    StorageError,
    account_not_found,
    currency_not_found,
    entry_not_found,
    payment_not_found,
    sale_not_found,
)
from hisab.domain.money import ZERO, to_money

logger = logging.getLogger(__name__)

JOURNAL_SEQUENCE = "journal_entry"


def format_entry_number(value: int) -> str:
    """Render a sequence value as a human-readable entry number."""
    return f"JE-{value:06d}"


class SQLAlchemyDatabase(Database):
    """SQLAlchemy-based implementation of Database interface."""

    def __init__(self, database_url: str):
        """Initialize SQLAlchemy database.

        Args:
            database_url: SQLAlchemy database URL (e.g., 'sqlite:///path/to.db')
        """
        self.database_url = database_url
        self.session_factory = create_session_factory(database_url)
        self._session: Optional[Session] = None

    def _get_session(self) -> Session:
        """Get current session, creating one if needed."""
        if self._session is None:
            self._session = self.session_factory()
        return self._session

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        """Run a write as one unit: commit on success, roll back on any error."""
        session = self._get_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Storage failure, transaction rolled back: %s", e)
            raise StorageError(str(e)) from e
        except Exception:
            session.rollback()
            raise

    def connect(self) -> None:
        """Connect to the database."""
        # Connection is lazy, so this is a no-op
        pass

    def disconnect(self) -> None:
        """Disconnect from the database."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        # Schema is created automatically by create_session_factory
        pass

    # Currency operations
    def create_currency(self, name: str, is_base: bool = False) -> int:
        """Create a currency, unmarking any other base when is_base. Returns currency ID."""
        with self._transaction() as session:
            if is_base:
                self._clear_base(session)
            currency = Currency(name=name, is_base=is_base)
            session.add(currency)
            session.flush()
            return currency.id

    def get_currency(self, currency_id: int) -> Optional[domain.Currency]:
        """Get currency by ID."""
        session = self._get_session()
        currency = session.get(Currency, currency_id)
        if currency is None:
            return None
        return currency_to_domain(currency)

    def get_currency_by_name(self, name: str) -> Optional[domain.Currency]:
        """Get currency by name."""
        session = self._get_session()
        currency = session.query(Currency).filter(Currency.name == name).first()
        if currency is None:
            return None
        return currency_to_domain(currency)

    def get_base_currency(self) -> Optional[domain.Currency]:
        """Get the base currency, if one is configured."""
        session = self._get_session()
        currency = session.query(Currency).filter(Currency.is_base.is_(True)).first()
        if currency is None:
            return None
        return currency_to_domain(currency)

    def list_currencies(self) -> list[domain.Currency]:
        """List currencies, base first, then by name."""
        session = self._get_session()
        currencies = session.query(Currency).order_by(Currency.is_base.desc(), Currency.name).all()
        return [currency_to_domain(c) for c in currencies]

    def update_currency(self, currency_id: int, name: str, is_base: bool) -> None:
        """Update currency name and base flag."""
        with self._transaction() as session:
            currency = session.get(Currency, currency_id)
            if currency is None:
                raise NotFoundError(currency_not_found(currency_id))
            if is_base and not currency.is_base:
                self._clear_base(session)
            currency.name = name
            currency.is_base = is_base

    def set_base_currency(self, currency_id: int) -> None:
        """Atomically make this currency the only base currency."""
        with self._transaction() as session:
            currency = session.get(Currency, currency_id)
            if currency is None:
                raise NotFoundError(currency_not_found(currency_id))
            self._clear_base(session)
            # Bulk update so the clear above is executed first
            session.query(Currency).filter(Currency.id == currency_id).update(
                {Currency.is_base: True}, synchronize_session="fetch"
            )

    def _clear_base(self, session: Session) -> None:
        session.query(Currency).filter(Currency.is_base.is_(True)).update(
            {Currency.is_base: False}, synchronize_session="fetch"
        )

    def delete_currency(self, currency_id: int) -> None:
        """Delete a currency."""
        with self._transaction() as session:
            currency = session.get(Currency, currency_id)
            if currency is None:
                raise NotFoundError(currency_not_found(currency_id))
            session.delete(currency)

    def count_currency_references(self, currency_id: int) -> dict[str, int]:
        """Count rows referencing a currency, keyed by a human-readable label."""
        session = self._get_session()
        return {
            "account": session.query(Account).filter(Account.currency_id == currency_id).count(),
            "exchange rate": session.query(ExchangeRate)
            .filter(
                or_(
                    ExchangeRate.from_currency_id == currency_id,
                    ExchangeRate.to_currency_id == currency_id,
                )
            )
            .count(),
            "journal line": session.query(JournalEntryLine)
            .filter(JournalEntryLine.currency_id == currency_id)
            .count(),
            "sale": session.query(Sale).filter(Sale.currency_id == currency_id).count(),
            "sale payment": session.query(SalePayment)
            .filter(SalePayment.currency_id == currency_id)
            .count(),
            "account transaction": session.query(AccountTransaction)
            .filter(AccountTransaction.currency_id == currency_id)
            .count(),
        }

    def create_exchange_rate(
        self, from_currency_id: int, to_currency_id: int, rate: Decimal, rate_date: date
    ) -> int:
        """Record an exchange rate. Returns rate ID."""
        with self._transaction() as session:
            exchange_rate = ExchangeRate(
                from_currency_id=from_currency_id,
                to_currency_id=to_currency_id,
                rate=rate,
                date=rate_date,
            )
            session.add(exchange_rate)
            session.flush()
            return exchange_rate.id

    def get_exchange_rate(self, rate_id: int) -> Optional[domain.ExchangeRate]:
        """Get exchange rate by ID."""
        session = self._get_session()
        exchange_rate = session.get(ExchangeRate, rate_id)
        if exchange_rate is None:
            return None
        return exchange_rate_to_domain(exchange_rate)

    def list_exchange_rates(
        self, from_currency_id: Optional[int] = None, to_currency_id: Optional[int] = None
    ) -> list[domain.ExchangeRate]:
        """List exchange rates, newest first, optionally filtered by pair."""
        session = self._get_session()
        query = session.query(ExchangeRate)
        if from_currency_id is not None:
            query = query.filter(ExchangeRate.from_currency_id == from_currency_id)
        if to_currency_id is not None:
            query = query.filter(ExchangeRate.to_currency_id == to_currency_id)
        rates = query.order_by(ExchangeRate.date.desc(), ExchangeRate.id.desc()).all()
        return [exchange_rate_to_domain(r) for r in rates]

    def find_latest_rate(
        self, from_currency_id: int, to_currency_id: int, as_of: date
    ) -> Optional[domain.ExchangeRate]:
        """Get the most recent rate for a pair dated on or before as_of."""
        session = self._get_session()
        exchange_rate = (
            session.query(ExchangeRate)
            .filter(
                ExchangeRate.from_currency_id == from_currency_id,
                ExchangeRate.to_currency_id == to_currency_id,
                ExchangeRate.date <= as_of,
            )
            .order_by(ExchangeRate.date.desc(), ExchangeRate.id.desc())
            .first()
        )
        if exchange_rate is None:
            return None
        return exchange_rate_to_domain(exchange_rate)

    # Account operations
    def create_account(
        self,
        name: str,
        currency_id: Optional[int],
        initial_balance: Decimal,
        notes: Optional[str] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        with self._transaction() as session:
            account = Account(
                name=name,
                currency_id=currency_id,
                initial_balance=initial_balance,
                notes=notes,
            )
            session.add(account)
            session.flush()
            return account.id

    def get_account(self, account_id: int) -> Optional[domain.Account]:
        """Get account by ID."""
        session = self._get_session()
        account = session.get(Account, account_id)
        if account is None:
            return None
        return account_to_domain(account)

    def list_accounts(self) -> list[domain.Account]:
        """List all accounts."""
        session = self._get_session()
        accounts = session.query(Account).order_by(Account.name).all()
        return [account_to_domain(acc) for acc in accounts]

    def update_account(
        self,
        account_id: int,
        name: str,
        currency_id: Optional[int],
        initial_balance: Decimal,
        notes: Optional[str],
    ) -> None:
        """Update account fields."""
        with self._transaction() as session:
            account = session.get(Account, account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))
            account.name = name
            account.currency_id = currency_id
            account.initial_balance = initial_balance
            account.notes = notes

    def delete_account(self, account_id: int) -> None:
        """Delete an account together with its own transactions."""
        with self._transaction() as session:
            account = session.get(Account, account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))
            session.delete(account)

    def count_account_references(self, account_id: int) -> dict[str, int]:
        """Count journal lines and sale payments referencing an account."""
        session = self._get_session()
        return {
            "journal line": session.query(JournalEntryLine)
            .filter(JournalEntryLine.account_id == account_id)
            .count(),
            "sale payment": session.query(SalePayment)
            .filter(SalePayment.account_id == account_id)
            .count(),
        }

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
        with self._transaction() as session:
            transaction = AccountTransaction(
                account_id=account_id,
                type=type,
                amount=amount,
                currency_id=currency_id,
                rate=rate,
                total=total,
                date=txn_date,
                is_full=is_full,
                notes=notes,
            )
            session.add(transaction)
            session.flush()
            return transaction.id

    def get_account_transaction(self, transaction_id: int) -> Optional[domain.AccountTransaction]:
        """Get account transaction by ID."""
        session = self._get_session()
        transaction = session.get(AccountTransaction, transaction_id)
        if transaction is None:
            return None
        return account_transaction_to_domain(transaction)

    def list_account_transactions(
        self,
        account_id: int,
        currency_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[domain.AccountTransaction]:
        """List account transactions ordered by date then ID."""
        session = self._get_session()
        query = session.query(AccountTransaction).filter(AccountTransaction.account_id == account_id)

        if currency_id is not None:
            query = query.filter(AccountTransaction.currency_id == currency_id)
        if start_date is not None:
            query = query.filter(AccountTransaction.date >= start_date)
        if end_date is not None:
            query = query.filter(AccountTransaction.date <= end_date)

        transactions = query.order_by(AccountTransaction.date, AccountTransaction.id).all()
        return [account_transaction_to_domain(txn) for txn in transactions]

    def delete_account_transaction(self, transaction_id: int) -> None:
        """Delete an account transaction."""
        with self._transaction() as session:
            transaction = session.get(AccountTransaction, transaction_id)
            if transaction is None:
                raise NotFoundError(f"Account transaction {transaction_id} not found")
            session.delete(transaction)

    # Journal operations
    def _next_sequence_value(self, session: Session, name: str) -> int:
        """Allocate the next value of a named sequence inside the caller's transaction."""
        sequence = session.get(NumberSequence, name)
        if sequence is None:
            sequence = NumberSequence(name=name, next_value=1)
            session.add(sequence)
        value = sequence.next_value
        sequence.next_value = value + 1
        session.flush()
        return value

    def create_journal_entry(
        self,
        entry_date: date,
        description: Optional[str],
        reference_type: str,
        reference_id: Optional[int],
        lines: list[domain.PreparedLine],
    ) -> int:
        """Allocate an entry number and write the entry with all lines. Returns entry ID."""
        with self._transaction() as session:
            number = self._next_sequence_value(session, JOURNAL_SEQUENCE)
            entry = JournalEntry(
                entry_number=format_entry_number(number),
                entry_date=entry_date,
                description=description,
                reference_type=reference_type,
                reference_id=reference_id,
            )
            for line in lines:
                entry.lines.append(
                    JournalEntryLine(
                        account_id=line.account_id,
                        currency_id=line.currency_id,
                        debit_amount=line.debit_amount,
                        credit_amount=line.credit_amount,
                        exchange_rate=line.exchange_rate,
                        base_amount=line.base_amount,
                        description=line.description,
                    )
                )
            session.add(entry)
            session.flush()
            return entry.id

    def get_journal_entry(self, entry_id: int) -> Optional[domain.JournalEntry]:
        """Get journal entry header by ID."""
        session = self._get_session()
        entry = session.get(JournalEntry, entry_id)
        if entry is None:
            return None
        return journal_entry_to_domain(entry)

    def get_journal_lines(self, entry_id: int) -> list[domain.JournalEntryLine]:
        """Get lines of a journal entry in insertion order."""
        session = self._get_session()
        lines = (
            session.query(JournalEntryLine)
            .filter(JournalEntryLine.entry_id == entry_id)
            .order_by(JournalEntryLine.id)
            .all()
        )
        return [journal_line_to_domain(line) for line in lines]

    def list_journal_entries(
        self, offset: int, limit: int
    ) -> tuple[list[domain.JournalEntry], int]:
        """List entries newest first. Returns (page items, total count)."""
        session = self._get_session()
        query = session.query(JournalEntry)
        total = query.count()
        entries = (
            query.order_by(JournalEntry.entry_date.desc(), JournalEntry.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [journal_entry_to_domain(e) for e in entries], total

    def find_journal_entries(
        self, reference_type: str, reference_id: int
    ) -> list[domain.JournalEntry]:
        """Find entries linked to a business event."""
        session = self._get_session()
        entries = (
            session.query(JournalEntry)
            .filter(
                JournalEntry.reference_type == reference_type,
                JournalEntry.reference_id == reference_id,
            )
            .order_by(JournalEntry.id)
            .all()
        )
        return [journal_entry_to_domain(e) for e in entries]

    # Sale operations
    def _build_children(self, sale: Sale, totals: domain.SaleTotals) -> None:
        for item in totals.items:
            sale.items.append(
                SaleItem(
                    product_id=item.product_id,
                    unit_id=item.unit_id,
                    per_price=item.per_price,
                    amount=item.amount,
                    total=item.total,
                )
            )
        for cost in totals.additional_costs:
            sale.additional_costs.append(SaleAdditionalCost(name=cost.name, amount=cost.amount))

    def _sum_payments(self, session: Session, sale_id: int) -> Decimal:
        amounts = session.query(SalePayment.amount).filter(SalePayment.sale_id == sale_id).all()
        return to_money(sum((row.amount for row in amounts), ZERO))

    def create_sale(
        self,
        customer_id: int,
        sale_date: date,
        currency_id: int,
        exchange_rate: Decimal,
        notes: Optional[str],
        totals: domain.SaleTotals,
    ) -> int:
        """Create a sale with its items and additional costs. Returns sale ID."""
        with self._transaction() as session:
            sale = Sale(
                customer_id=customer_id,
                date=sale_date,
                currency_id=currency_id,
                exchange_rate=exchange_rate,
                notes=notes,
                total_amount=totals.total_amount,
                base_amount=totals.base_amount,
                paid_amount=ZERO,
            )
            self._build_children(sale, totals)
            session.add(sale)
            session.flush()
            return sale.id

    def update_sale(
        self,
        sale_id: int,
        customer_id: int,
        sale_date: date,
        currency_id: int,
        exchange_rate: Decimal,
        notes: Optional[str],
        totals: domain.SaleTotals,
    ) -> None:
        """Replace sale header fields, items and additional costs."""
        with self._transaction() as session:
            sale = session.get(Sale, sale_id)
            if sale is None:
                raise NotFoundError(sale_not_found(sale_id))

            sale.customer_id = customer_id
            sale.date = sale_date
            sale.currency_id = currency_id
            sale.exchange_rate = exchange_rate
            sale.notes = notes
            sale.total_amount = totals.total_amount
            sale.base_amount = totals.base_amount

            # Delete-then-reinsert the owned collections
            sale.items.clear()
            sale.additional_costs.clear()
            session.flush()
            self._build_children(sale, totals)

            sale.paid_amount = self._sum_payments(session, sale_id)

    def delete_sale(self, sale_id: int) -> None:
        """Delete a sale with items, costs, payments and payment postings."""
        with self._transaction() as session:
            sale = session.get(Sale, sale_id)
            if sale is None:
                raise NotFoundError(sale_not_found(sale_id))
            session.delete(sale)

    def get_sale(self, sale_id: int) -> Optional[domain.Sale]:
        """Get sale header by ID."""
        session = self._get_session()
        sale = session.get(Sale, sale_id)
        if sale is None:
            return None
        return sale_to_domain(sale)

    def get_sale_items(self, sale_id: int) -> list[domain.SaleItem]:
        """Get items of a sale."""
        session = self._get_session()
        items = session.query(SaleItem).filter(SaleItem.sale_id == sale_id).order_by(SaleItem.id).all()
        return [sale_item_to_domain(item) for item in items]

    def get_additional_costs(self, sale_id: int) -> list[domain.AdditionalCost]:
        """Get additional costs of a sale."""
        session = self._get_session()
        costs = (
            session.query(SaleAdditionalCost)
            .filter(SaleAdditionalCost.sale_id == sale_id)
            .order_by(SaleAdditionalCost.id)
            .all()
        )
        return [additional_cost_to_domain(cost) for cost in costs]

    def list_sales(
        self,
        offset: int,
        limit: int,
        search: Optional[str] = None,
        sort_by: str = "date",
        sort_order: str = "desc",
    ) -> tuple[list[domain.Sale], int]:
        """List sales. Returns (page items, total matching count)."""
        session = self._get_session()
        query = session.query(Sale).join(Customer, Sale.customer_id == Customer.id)

        if search:
            query = query.filter(
                or_(
                    Customer.full_name.icontains(search, autoescape=True),
                    Sale.notes.icontains(search, autoescape=True),
                )
            )

        sort_columns = {
            "date": Sale.date,
            "total_amount": Sale.total_amount,
            "paid_amount": Sale.paid_amount,
            "customer": Customer.full_name,
            "id": Sale.id,
        }
        column = sort_columns[sort_by]
        if sort_order == "asc":
            ordering = (column.asc(), Sale.id.asc())
        else:
            ordering = (column.desc(), Sale.id.desc())

        total = query.count()
        sales = query.order_by(*ordering).offset(offset).limit(limit).all()
        return [sale_to_domain(s) for s in sales], total

    # Payment operations
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
        with self._transaction() as session:
            sale = session.get(Sale, sale_id)
            if sale is None:
                raise NotFoundError(sale_not_found(sale_id))

            payment = SalePayment(
                sale_id=sale_id,
                account_id=account_id,
                currency_id=currency_id,
                exchange_rate=exchange_rate,
                amount=amount,
                base_amount=base_amount,
                date=payment_date,
            )
            if account_id is not None:
                payment.account_transaction = AccountTransaction(
                    account_id=account_id,
                    type=domain.DEPOSIT,
                    amount=amount,
                    currency_id=currency_id,
                    rate=exchange_rate,
                    total=base_amount,
                    date=payment_date,
                    is_full=False,
                    notes=f"Payment for sale {sale_id}",
                )
            session.add(payment)
            session.flush()

            sale.paid_amount = self._sum_payments(session, sale_id)
            return payment.id

    def get_sale_payment(self, payment_id: int) -> Optional[domain.SalePayment]:
        """Get sale payment by ID."""
        session = self._get_session()
        payment = session.get(SalePayment, payment_id)
        if payment is None:
            return None
        return sale_payment_to_domain(payment)

    def list_sale_payments(self, sale_id: int) -> list[domain.SalePayment]:
        """List payments of a sale ordered by date then ID."""
        session = self._get_session()
        payments = (
            session.query(SalePayment)
            .filter(SalePayment.sale_id == sale_id)
            .order_by(SalePayment.date, SalePayment.id)
            .all()
        )
        return [sale_payment_to_domain(p) for p in payments]

    def delete_sale_payment(self, payment_id: int) -> None:
        """Delete a payment and its account posting, then refresh the sale's paid amount."""
        with self._transaction() as session:
            payment = session.get(SalePayment, payment_id)
            if payment is None:
                raise NotFoundError(payment_not_found(payment_id))
            sale = payment.sale
            session.delete(payment)
            session.flush()
            sale.paid_amount = self._sum_payments(session, sale.id)

    # Reference data operations
    def create_customer(
        self,
        full_name: str,
        phone: Optional[str] = None,
        address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Create a customer. Returns customer ID."""
        with self._transaction() as session:
            customer = Customer(full_name=full_name, phone=phone, address=address, notes=notes)
            session.add(customer)
            session.flush()
            return customer.id

    def get_customer(self, customer_id: int) -> Optional[domain.Customer]:
        """Get customer by ID."""
        session = self._get_session()
        customer = session.get(Customer, customer_id)
        if customer is None:
            return None
        return customer_to_domain(customer)

    def list_customers(self) -> list[domain.Customer]:
        """List customers by name."""
        session = self._get_session()
        customers = session.query(Customer).order_by(Customer.full_name).all()
        return [customer_to_domain(c) for c in customers]

    def create_unit(self, name: str) -> int:
        """Create a unit. Returns unit ID."""
        with self._transaction() as session:
            unit = Unit(name=name)
            session.add(unit)
            session.flush()
            return unit.id

    def get_unit(self, unit_id: int) -> Optional[domain.Unit]:
        """Get unit by ID."""
        session = self._get_session()
        unit = session.get(Unit, unit_id)
        if unit is None:
            return None
        return unit_to_domain(unit)

    def list_units(self) -> list[domain.Unit]:
        """List units by name."""
        session = self._get_session()
        return [unit_to_domain(u) for u in session.query(Unit).order_by(Unit.name).all()]

    def create_product(self, name: str, default_unit_id: Optional[int] = None) -> int:
        """Create a product. Returns product ID."""
        with self._transaction() as session:
            product = Product(name=name, default_unit_id=default_unit_id)
            session.add(product)
            session.flush()
            return product.id

    def get_product(self, product_id: int) -> Optional[domain.Product]:
        """Get product by ID."""
        session = self._get_session()
        product = session.get(Product, product_id)
        if product is None:
            return None
        return product_to_domain(product)

    def list_products(self) -> list[domain.Product]:
        """List products by name."""
        session = self._get_session()
        return [product_to_domain(p) for p in session.query(Product).order_by(Product.name).all()]
