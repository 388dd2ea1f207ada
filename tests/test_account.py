"""Tests for AccountService: accounts, transactions and derived balances."""

import pytest
from datetime import date
from decimal import Decimal

from hisab.domain.errors import (
    ConflictError,
    InvalidAmount,
    MissingRequiredField,
    NotFoundError,
    RateUnavailable,
    UnknownReference,
    ValidationError,
)


class TestAccounts:
    def test_create_account(self, account_service, base_currency):
        account = account_service.create_account(
            name="Safe", currency_id=base_currency.id, initial_balance=Decimal("250"), notes="Back office"
        )
        assert account.name == "Safe"
        assert account.currency_id == base_currency.id
        assert account.initial_balance == Decimal("250.00")
        assert account.notes == "Back office"

    def test_duplicate_name(self, account_service, cash_account):
        with pytest.raises(ConflictError, match="already exists"):
            account_service.create_account(name="Cash")

    def test_blank_name(self, account_service):
        with pytest.raises(MissingRequiredField):
            account_service.create_account(name="  ")

    def test_unknown_currency(self, account_service):
        with pytest.raises(UnknownReference):
            account_service.create_account(name="Nowhere", currency_id=99)

    def test_update_account(self, account_service, cash_account, usd):
        updated = account_service.update_account(
            cash_account.id, "Dollar Cash", usd.id, Decimal("10"), notes=None
        )
        assert updated.name == "Dollar Cash"
        assert updated.currency_id == usd.id

    def test_delete_account_with_own_transactions(self, account_service, cash_account, base_currency):
        account_service.deposit(cash_account.id, Decimal("10"), base_currency.id, Decimal("1"), date(2024, 1, 1))
        account_service.delete_account(cash_account.id)
        assert account_service.get_account(cash_account.id) is None

    def test_delete_missing_account(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.delete_account(123)


class TestBalances:
    def test_initial_balance(self, account_service, base_currency):
        account = account_service.create_account(
            name="Drawer", currency_id=base_currency.id, initial_balance=Decimal("100")
        )
        assert account_service.balance(account.id) == Decimal("100.00")

    def test_account_without_currency_uses_base(self, account_service, base_currency):
        account = account_service.create_account(name="Drawer", initial_balance=Decimal("40"))
        assert account_service.balance(account.id) == Decimal("40.00")
        assert account_service.balance(account.id, base_currency.id) == Decimal("40.00")

    def test_deposit_and_withdraw(self, account_service, cash_account, base_currency):
        account_service.deposit(cash_account.id, Decimal("100"), base_currency.id, Decimal("1"), date(2024, 1, 1))
        account_service.withdraw(cash_account.id, Decimal("30"), base_currency.id, Decimal("1"), date(2024, 1, 2))
        assert account_service.balance(cash_account.id) == Decimal("70.00")

    def test_total_is_amount_times_rate(self, account_service, cash_account, usd):
        txn = account_service.deposit(cash_account.id, Decimal("10"), usd.id, Decimal("70.5"), date(2024, 1, 1))
        assert txn.total == Decimal("705.00")
        assert account_service.balance(cash_account.id, usd.id) == Decimal("705.00")

    def test_rate_resolved_from_history(self, account_service, cash_account, usd):
        txn = account_service.deposit(cash_account.id, Decimal("10"), usd.id, None, date(2024, 3, 1))
        assert txn.rate == Decimal("70")
        assert txn.total == Decimal("700.00")

    def test_base_currency_rate_defaults_to_one(self, account_service, cash_account, base_currency):
        txn = account_service.deposit(cash_account.id, Decimal("10"), base_currency.id, None, date(2024, 1, 1))
        assert txn.rate == Decimal("1")
        assert txn.total == Decimal("10.00")

    def test_missing_rate_is_rejected(self, account_service, currency_service, cash_account, base_currency):
        eur = currency_service.create_currency("EUR")
        with pytest.raises(RateUnavailable):
            account_service.deposit(cash_account.id, Decimal("50"), eur.id, None, date(2024, 1, 1))
        assert account_service.get_account_transactions(cash_account.id) == []

    def test_rate_must_be_positive(self, account_service, cash_account, usd):
        with pytest.raises(InvalidAmount):
            account_service.deposit(cash_account.id, Decimal("10"), usd.id, Decimal("0"), date(2024, 1, 1))

    def test_balances_are_per_currency(self, account_service, cash_account, base_currency, usd):
        account_service.deposit(cash_account.id, Decimal("100"), base_currency.id, Decimal("1"), date(2024, 1, 1))
        account_service.deposit(cash_account.id, Decimal("5"), usd.id, Decimal("1"), date(2024, 1, 1))

        balances = account_service.get_balances(cash_account.id)
        assert balances == {base_currency.id: Decimal("100.00"), usd.id: Decimal("5.00")}

    def test_incremental_balance_consistency(self, account_service, cash_account, base_currency):
        """balance(t2) == balance(t1) + sum of signed totals dated in (t1, t2]."""
        postings = [
            ("deposit", "100", date(2024, 1, 1)),
            ("withdraw", "20", date(2024, 1, 5)),
            ("deposit", "55.55", date(2024, 1, 10)),
            ("withdraw", "0.55", date(2024, 1, 20)),
        ]
        for kind, amount, on in postings:
            post = account_service.deposit if kind == "deposit" else account_service.withdraw
            post(cash_account.id, Decimal(amount), base_currency.id, Decimal("1"), on)

        t1, t2 = date(2024, 1, 5), date(2024, 1, 20)
        between = account_service.get_account_transactions(
            cash_account.id, start_date=date(2024, 1, 6), end_date=t2
        )
        assert account_service.balance(cash_account.id, as_of_date=t2) == (
            account_service.balance(cash_account.id, as_of_date=t1)
            + sum(txn.signed_total for txn in between)
        )
        assert account_service.balance(cash_account.id) == Decimal("135.00")

    def test_full_withdraw_closes_balance(self, account_service, cash_account, base_currency):
        account_service.deposit(cash_account.id, Decimal("80"), base_currency.id, Decimal("1"), date(2024, 1, 1))

        txn = account_service.withdraw(
            cash_account.id, None, base_currency.id, Decimal("1"), date(2024, 1, 2), is_full=True
        )
        assert txn.is_full
        assert txn.total == Decimal("80.00")
        assert account_service.balance(cash_account.id) == Decimal("0.00")

    def test_full_deposit_closes_negative_balance(self, account_service, cash_account, base_currency):
        account_service.withdraw(cash_account.id, Decimal("25"), base_currency.id, Decimal("1"), date(2024, 1, 1))

        account_service.deposit(
            cash_account.id, None, base_currency.id, Decimal("1"), date(2024, 1, 2), is_full=True
        )
        assert account_service.balance(cash_account.id) == Decimal("0.00")

    def test_full_withdraw_of_empty_account(self, account_service, cash_account, base_currency):
        with pytest.raises(InvalidAmount, match="Nothing to close out"):
            account_service.withdraw(
                cash_account.id, None, base_currency.id, Decimal("1"), date(2024, 1, 1), is_full=True
            )

    def test_amount_must_be_positive(self, account_service, cash_account, base_currency):
        with pytest.raises(InvalidAmount):
            account_service.deposit(cash_account.id, Decimal("0"), base_currency.id, Decimal("1"), date(2024, 1, 1))

    def test_delete_manual_transaction(self, account_service, cash_account, base_currency):
        txn = account_service.deposit(
            cash_account.id, Decimal("10"), base_currency.id, Decimal("1"), date(2024, 1, 1)
        )
        account_service.delete_transaction(txn.id)
        assert account_service.balance(cash_account.id) == Decimal("0.00")

    def test_payment_transaction_cannot_be_deleted_directly(
        self, account_service, settlement_service, sale_service, cash_account,
        base_currency, sample_customer, sample_product,
    ):
        from hisab.domain.entities import SaleItemInput

        sale = sale_service.create_sale(
            sample_customer.id, date(2024, 1, 1), base_currency.id,
            [SaleItemInput(sample_product.id, Decimal("10"), Decimal("1"))],
        )
        settlement_service.add_payment(
            sale.id, Decimal("10"), base_currency.id, date(2024, 1, 1), account_id=cash_account.id
        )
        txn = account_service.get_account_transactions(cash_account.id)[0]

        with pytest.raises(ValidationError, match="delete the payment"):
            account_service.delete_transaction(txn.id)
