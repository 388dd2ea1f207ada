"""Tests for amount parsing and name resolution helpers."""

import pytest
from decimal import Decimal

from hisab.domain.errors import NotFoundError
from hisab.utils.account_resolver import resolve_account, resolve_currency
from hisab.utils.amount_parser import parse_amount, parse_positive


class TestParseAmount:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("123.45", Decimal("123.45")),
            ("$1,234.56", Decimal("1234.56")),
            ("؋500", Decimal("500")),
            ("-10", Decimal("-10")),
            ("(42.10)", Decimal("-42.10")),
        ],
    )
    def test_formats(self, text, expected):
        assert parse_amount(text) == expected

    def test_empty(self):
        with pytest.raises(ValueError, match="Empty"):
            parse_amount("  ")

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_amount("12abc")

    def test_not_finite(self):
        with pytest.raises(ValueError):
            parse_amount("NaN")

    def test_parse_positive(self):
        assert parse_positive("3") == Decimal("3")
        with pytest.raises(ValueError, match="Quantity must be positive"):
            parse_positive("0", "Quantity")


class TestResolvers:
    def test_resolve_account_by_name_and_id(self, account_service, cash_account):
        assert resolve_account(account_service, "Cash") == cash_account.id
        assert resolve_account(account_service, str(cash_account.id)) == cash_account.id
        assert resolve_account(account_service, cash_account.id) == cash_account.id

    def test_resolve_missing_account(self, account_service):
        with pytest.raises(NotFoundError, match="Account 'Bank' not found"):
            resolve_account(account_service, "Bank")
        with pytest.raises(ValueError, match="Account ID 9 not found"):
            resolve_account(account_service, "9")

    def test_resolve_currency(self, currency_service, usd):
        assert resolve_currency(currency_service, "USD") == usd.id
