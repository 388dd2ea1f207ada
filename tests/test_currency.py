"""Tests for CurrencyService: base currency and rate resolution."""

import pytest
from datetime import date
from decimal import Decimal

from hisab.domain.errors import (
    ConflictError,
    CurrencyInUse,
    InvalidAmount,
    NoRateAvailable,
    RateUnavailable,
    UnknownReference,
    ValidationError,
)


class TestBaseCurrency:
    def test_first_currency_becomes_base(self, currency_service):
        """The first currency is the base even when not requested."""
        afn = currency_service.create_currency("AFN")
        assert afn.is_base
        assert currency_service.get_base_currency().id == afn.id

    def test_second_currency_is_not_base(self, currency_service, base_currency):
        usd = currency_service.create_currency("USD")
        assert not usd.is_base
        assert currency_service.get_base_currency().id == base_currency.id

    def test_create_as_base_unmarks_previous(self, currency_service, base_currency):
        """Creating a new base currency leaves exactly one base."""
        eur = currency_service.create_currency("EUR", is_base=True)

        bases = [c for c in currency_service.get_currencies() if c.is_base]
        assert [c.id for c in bases] == [eur.id]
        assert not currency_service.get_currency(base_currency.id).is_base

    def test_set_base_currency(self, currency_service, base_currency, usd):
        currency_service.set_base_currency(usd.id)

        bases = [c for c in currency_service.get_currencies() if c.is_base]
        assert len(bases) == 1
        assert bases[0].id == usd.id

    def test_update_cannot_unmark_base(self, currency_service, base_currency):
        with pytest.raises(ValidationError):
            currency_service.update_currency(base_currency.id, "AFN", is_base=False)

    def test_update_promotes_to_base(self, currency_service, base_currency, usd):
        updated = currency_service.update_currency(usd.id, "US Dollar", is_base=True)
        assert updated.is_base
        assert updated.name == "US Dollar"
        assert not currency_service.get_currency(base_currency.id).is_base

    def test_duplicate_name_rejected(self, currency_service, base_currency):
        with pytest.raises(ConflictError, match="already exists"):
            currency_service.create_currency("AFN")

    def test_list_puts_base_first(self, currency_service):
        currency_service.create_currency("USD")
        currency_service.create_currency("AED", is_base=True)

        names = [c.name for c in currency_service.get_currencies()]
        assert names == ["AED", "USD"]


class TestDeleteCurrency:
    def test_delete_unused_currency(self, currency_service, base_currency):
        eur = currency_service.create_currency("EUR")
        currency_service.delete_currency(eur.id)
        assert currency_service.get_currency(eur.id) is None

    def test_delete_referenced_currency_blocked(self, currency_service, usd):
        """USD has an exchange rate pointing at it."""
        with pytest.raises(CurrencyInUse, match="exchange rate"):
            currency_service.delete_currency(usd.id)
        assert currency_service.get_currency(usd.id) is not None

    def test_delete_base_with_others_blocked(self, currency_service, base_currency):
        currency_service.create_currency("EUR")
        with pytest.raises(ValidationError, match="base currency"):
            currency_service.delete_currency(base_currency.id)


class TestExchangeRates:
    def test_base_currency_resolves_to_one(self, currency_service, base_currency):
        assert currency_service.resolve(base_currency.id, date(2024, 6, 1)) == Decimal("1")

    def test_resolve_uses_latest_rate_on_or_before_date(self, currency_service, base_currency, usd):
        currency_service.add_exchange_rate(usd.id, base_currency.id, Decimal("72.5"), date(2024, 3, 1))

        assert currency_service.resolve(usd.id, date(2024, 2, 15)) == Decimal("70")
        assert currency_service.resolve(usd.id, date(2024, 3, 1)) == Decimal("72.5")
        assert currency_service.resolve(usd.id, date(2024, 12, 31)) == Decimal("72.5")

    def test_no_rate_before_first_recorded(self, currency_service, usd):
        with pytest.raises(RateUnavailable):
            currency_service.resolve(usd.id, date(2023, 12, 31))

    def test_no_rate_alias(self):
        assert NoRateAvailable is RateUnavailable

    def test_unknown_currency(self, currency_service, base_currency):
        with pytest.raises(UnknownReference):
            currency_service.resolve(999, date(2024, 1, 1))

    def test_rate_must_be_positive(self, currency_service, base_currency, usd):
        with pytest.raises(InvalidAmount):
            currency_service.add_exchange_rate(usd.id, base_currency.id, Decimal("0"), date(2024, 1, 1))

    def test_rate_needs_two_currencies(self, currency_service, base_currency):
        with pytest.raises(ValidationError):
            currency_service.add_exchange_rate(
                base_currency.id, base_currency.id, Decimal("1"), date(2024, 1, 1)
            )

    def test_cross_rate_through_base(self, currency_service, base_currency, usd):
        eur = currency_service.create_currency("EUR")
        currency_service.add_exchange_rate(eur.id, base_currency.id, Decimal("77"), date(2024, 1, 1))

        rate = currency_service.get_exchange_rate(eur.id, usd.id, date(2024, 2, 1))
        assert rate == Decimal("1.1")

    def test_direct_rate_wins_over_cross(self, currency_service, base_currency, usd):
        eur = currency_service.create_currency("EUR")
        currency_service.add_exchange_rate(eur.id, base_currency.id, Decimal("77"), date(2024, 1, 1))
        currency_service.add_exchange_rate(eur.id, usd.id, Decimal("1.08"), date(2024, 1, 1))

        assert currency_service.get_exchange_rate(eur.id, usd.id, date(2024, 2, 1)) == Decimal("1.08")

    def test_explicit_rate_overrides_stored(self, currency_service, usd):
        rate = currency_service.rate_or_resolve(usd.id, date(2024, 2, 1), Decimal("71.25"))
        assert rate == Decimal("71.25")
