"""Tests for SettlementService: payments against sales."""

import pytest
from datetime import date
from decimal import Decimal

from hisab.domain.entities import AdditionalCostInput, SaleItemInput
from hisab.domain.errors import (
    InvalidAmount,
    NotFoundError,
    UnknownReference,
)


@pytest.fixture
def sale(sale_service, base_currency, sample_customer, sample_product):
    """A sale totalling 250."""
    return sale_service.create_sale(
        customer_id=sample_customer.id,
        sale_date=date(2024, 1, 15),
        currency_id=base_currency.id,
        items=[
            SaleItemInput(sample_product.id, Decimal("50"), Decimal("4")),
            SaleItemInput(sample_product.id, Decimal("20"), Decimal("1")),
        ],
        additional_costs=[AdditionalCostInput("Freight", Decimal("30"))],
    )


def test_payment_then_delete(settlement_service, sale_service, sale, base_currency):
    """Paying 100 leaves 150; deleting the payment restores 250."""
    payment = settlement_service.add_payment(sale.id, Decimal("100"), base_currency.id, date(2024, 1, 20))

    current = sale_service.require_sale(sale.id)
    assert current.paid_amount == Decimal("100.00")
    assert settlement_service.remaining(sale.id) == Decimal("150.00")

    settlement_service.delete_payment(payment.id)

    current = sale_service.require_sale(sale.id)
    assert current.paid_amount == Decimal("0.00")
    assert settlement_service.remaining(sale.id) == Decimal("250.00")


def test_paid_amount_is_sum_of_payments(settlement_service, sale_service, sale, base_currency):
    for amount, day in (("40", 16), ("60.5", 17), ("9.5", 18)):
        settlement_service.add_payment(sale.id, Decimal(amount), base_currency.id, date(2024, 1, day))

    payments = settlement_service.list_payments(sale.id)
    assert [p.date.day for p in payments] == [16, 17, 18]
    assert sale_service.require_sale(sale.id).paid_amount == sum(p.amount for p in payments)


def test_overpayment_allowed(settlement_service, sale, base_currency):
    settlement_service.add_payment(sale.id, Decimal("300"), base_currency.id, date(2024, 1, 20))
    assert settlement_service.remaining(sale.id) == Decimal("-50.00")


def test_payment_deposits_into_account(settlement_service, account_service, sale, base_currency, cash_account):
    payment = settlement_service.add_payment(
        sale.id, Decimal("100"), base_currency.id, date(2024, 1, 20), account_id=cash_account.id
    )
    assert account_service.balance(cash_account.id) == Decimal("100.00")

    txn = account_service.get_account_transactions(cash_account.id)[0]
    assert txn.sale_payment_id == payment.id
    assert txn.type == "deposit"

    settlement_service.delete_payment(payment.id)
    assert account_service.balance(cash_account.id) == Decimal("0.00")
    assert account_service.get_account_transactions(cash_account.id) == []


def test_foreign_currency_payment(settlement_service, sale, usd):
    payment = settlement_service.add_payment(sale.id, Decimal("2"), usd.id, date(2024, 2, 1))
    assert payment.exchange_rate == Decimal("70")
    assert payment.base_amount == Decimal("140.00")


def test_account_with_payments_cannot_be_deleted(settlement_service, account_service, sale, base_currency, cash_account):
    from hisab.domain.errors import AccountInUse

    settlement_service.add_payment(
        sale.id, Decimal("10"), base_currency.id, date(2024, 1, 20), account_id=cash_account.id
    )
    with pytest.raises(AccountInUse, match="sale payment"):
        account_service.delete_account(cash_account.id)


def test_deleting_sale_removes_payment_postings(
    settlement_service, sale_service, account_service, sale, base_currency, cash_account
):
    payment = settlement_service.add_payment(
        sale.id, Decimal("10"), base_currency.id, date(2024, 1, 20), account_id=cash_account.id
    )
    sale_service.delete_sale(sale.id)

    assert settlement_service.get_payment(payment.id) is None
    assert account_service.balance(cash_account.id) == Decimal("0.00")


def test_payment_validation(settlement_service, sale, base_currency):
    with pytest.raises(InvalidAmount):
        settlement_service.add_payment(sale.id, Decimal("0"), base_currency.id, date(2024, 1, 20))
    with pytest.raises(NotFoundError):
        settlement_service.add_payment(999, Decimal("1"), base_currency.id, date(2024, 1, 20))
    with pytest.raises(UnknownReference):
        settlement_service.add_payment(
            sale.id, Decimal("1"), base_currency.id, date(2024, 1, 20), account_id=555
        )
    assert settlement_service.list_payments(sale.id) == []


def test_delete_missing_payment(settlement_service):
    with pytest.raises(NotFoundError):
        settlement_service.delete_payment(1)
