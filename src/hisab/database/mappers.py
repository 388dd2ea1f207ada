"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so services only ever handle the
frozen dataclasses from ``hisab.domain.entities``.
"""

from hisab.domain import entities as domain
from hisab.database.models import (
    Currency as ORMCurrency,
    ExchangeRate as ORMExchangeRate,
    Account as ORMAccount,
    AccountTransaction as ORMAccountTransaction,
    JournalEntry as ORMJournalEntry,
    JournalEntryLine as ORMJournalEntryLine,
    Sale as ORMSale,
    SaleItem as ORMSaleItem,
    SaleAdditionalCost as ORMSaleAdditionalCost,
    SalePayment as ORMSalePayment,
    Customer as ORMCustomer,
    Unit as ORMUnit,
    Product as ORMProduct,
)


def currency_to_domain(orm_currency: ORMCurrency) -> domain.Currency:
    """Convert SQLAlchemy Currency model to domain Currency entity."""
    return domain.Currency(
        id=orm_currency.id,
        name=orm_currency.name,
        is_base=bool(orm_currency.is_base),
        created_at=orm_currency.created_at,
        updated_at=orm_currency.updated_at,
    )


def exchange_rate_to_domain(orm_rate: ORMExchangeRate) -> domain.ExchangeRate:
    """Convert SQLAlchemy ExchangeRate model to domain ExchangeRate entity."""
    return domain.ExchangeRate(
        id=orm_rate.id,
        from_currency_id=orm_rate.from_currency_id,
        to_currency_id=orm_rate.to_currency_id,
        rate=orm_rate.rate,
        date=orm_rate.date,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        currency_id=orm_account.currency_id,
        initial_balance=orm_account.initial_balance,
        notes=orm_account.notes,
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
    )


def account_transaction_to_domain(orm_txn: ORMAccountTransaction) -> domain.AccountTransaction:
    """Convert SQLAlchemy AccountTransaction model to domain entity."""
    return domain.AccountTransaction(
        id=orm_txn.id,
        account_id=orm_txn.account_id,
        type=orm_txn.type,
        amount=orm_txn.amount,
        currency_id=orm_txn.currency_id,
        rate=orm_txn.rate,
        total=orm_txn.total,
        date=orm_txn.date,
        is_full=bool(orm_txn.is_full),
        notes=orm_txn.notes,
        sale_payment_id=orm_txn.sale_payment_id,
        created_at=orm_txn.created_at,
    )


def journal_entry_to_domain(orm_entry: ORMJournalEntry) -> domain.JournalEntry:
    """Convert SQLAlchemy JournalEntry model to domain JournalEntry entity."""
    return domain.JournalEntry(
        id=orm_entry.id,
        entry_number=orm_entry.entry_number,
        entry_date=orm_entry.entry_date,
        description=orm_entry.description,
        reference_type=orm_entry.reference_type,
        reference_id=orm_entry.reference_id,
        created_at=orm_entry.created_at,
    )


def journal_line_to_domain(orm_line: ORMJournalEntryLine) -> domain.JournalEntryLine:
    """Convert SQLAlchemy JournalEntryLine model to domain entity."""
    return domain.JournalEntryLine(
        id=orm_line.id,
        entry_id=orm_line.entry_id,
        account_id=orm_line.account_id,
        currency_id=orm_line.currency_id,
        debit_amount=orm_line.debit_amount,
        credit_amount=orm_line.credit_amount,
        exchange_rate=orm_line.exchange_rate,
        base_amount=orm_line.base_amount,
        description=orm_line.description,
    )


def sale_to_domain(orm_sale: ORMSale) -> domain.Sale:
    """Convert SQLAlchemy Sale model to domain Sale entity."""
    return domain.Sale(
        id=orm_sale.id,
        customer_id=orm_sale.customer_id,
        date=orm_sale.date,
        currency_id=orm_sale.currency_id,
        exchange_rate=orm_sale.exchange_rate,
        notes=orm_sale.notes,
        total_amount=orm_sale.total_amount,
        base_amount=orm_sale.base_amount,
        paid_amount=orm_sale.paid_amount,
        created_at=orm_sale.created_at,
        updated_at=orm_sale.updated_at,
    )


def sale_item_to_domain(orm_item: ORMSaleItem) -> domain.SaleItem:
    return domain.SaleItem(
        id=orm_item.id,
        sale_id=orm_item.sale_id,
        product_id=orm_item.product_id,
        unit_id=orm_item.unit_id,
        per_price=orm_item.per_price,
        amount=orm_item.amount,
        total=orm_item.total,
    )


def additional_cost_to_domain(orm_cost: ORMSaleAdditionalCost) -> domain.AdditionalCost:
    return domain.AdditionalCost(
        id=orm_cost.id,
        sale_id=orm_cost.sale_id,
        name=orm_cost.name,
        amount=orm_cost.amount,
    )


def sale_payment_to_domain(orm_payment: ORMSalePayment) -> domain.SalePayment:
    """Convert SQLAlchemy SalePayment model to domain SalePayment entity."""
    return domain.SalePayment(
        id=orm_payment.id,
        sale_id=orm_payment.sale_id,
        account_id=orm_payment.account_id,
        currency_id=orm_payment.currency_id,
        exchange_rate=orm_payment.exchange_rate,
        amount=orm_payment.amount,
        base_amount=orm_payment.base_amount,
        date=orm_payment.date,
        created_at=orm_payment.created_at,
    )


def customer_to_domain(orm_customer: ORMCustomer) -> domain.Customer:
    return domain.Customer(
        id=orm_customer.id,
        full_name=orm_customer.full_name,
        phone=orm_customer.phone,
        address=orm_customer.address,
        notes=orm_customer.notes,
    )


def unit_to_domain(orm_unit: ORMUnit) -> domain.Unit:
    return domain.Unit(id=orm_unit.id, name=orm_unit.name)


def product_to_domain(orm_product: ORMProduct) -> domain.Product:
    return domain.Product(
        id=orm_product.id,
        name=orm_product.name,
        default_unit_id=orm_product.default_unit_id,
    )
