"""Tests for domain entities and money helpers."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, UTC
from decimal import Decimal

from hisab.domain.entities import Currency, Page
from hisab.domain.errors import ValidationError
from hisab.domain.money import convert, to_decimal, to_money, to_rate
from hisab.domain.paging import page_offset


class TestEntities:
    def test_currency_immutability(self):
        now = datetime.now(UTC)
        currency = Currency(id=1, name="AFN", is_base=True, created_at=now, updated_at=now)
        with pytest.raises(FrozenInstanceError):
            currency.name = "USD"

    def test_page_total_pages(self):
        assert Page(items=[], total=0, page=1, per_page=10).total_pages == 0
        assert Page(items=[1], total=21, page=1, per_page=10).total_pages == 3


class TestMoney:
    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_round_half_up(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("-2.345") == Decimal("-2.35")

    def test_rate_places(self):
        assert to_rate("70.1234565") == Decimal("70.123457")

    def test_convert(self):
        assert convert("10", "70.5") == Decimal("705.00")

    def test_bad_value(self):
        with pytest.raises(ValueError):
            to_decimal("ten")


class TestPaging:
    def test_offset(self):
        assert page_offset(1, 10) == 0
        assert page_offset(3, 25) == 50

    @pytest.mark.parametrize("page,per_page", [(0, 10), (1, 0), (1, 501)])
    def test_bad_paging(self, page, per_page):
        with pytest.raises(ValidationError):
            page_offset(page, per_page)
