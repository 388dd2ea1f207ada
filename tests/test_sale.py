"""Tests for SaleService: totals, updates and listing."""

import pytest
from datetime import date
from decimal import Decimal

from hisab.domain.entities import AdditionalCostInput, SaleItemInput
from hisab.domain.errors import (
    InvalidAmount,
    MissingRequiredField,
    NotFoundError,
    UnknownReference,
    ValidationError,
)
from hisab.domain.sale import compute_totals


@pytest.fixture
def sample_sale(sale_service, base_currency, sample_customer, sample_product):
    """Two items (50 x 4, 20 x 1) plus a freight cost of 30."""
    return sale_service.create_sale(
        customer_id=sample_customer.id,
        sale_date=date(2024, 1, 15),
        currency_id=base_currency.id,
        items=[
            SaleItemInput(sample_product.id, per_price=Decimal("50"), amount=Decimal("4")),
            SaleItemInput(sample_product.id, per_price=Decimal("20"), amount=Decimal("1")),
        ],
        additional_costs=[AdditionalCostInput("Freight", Decimal("30"))],
        notes="Weekly order",
    )


class TestCreateSale:
    def test_totals(self, sale_service, sample_sale):
        assert sample_sale.total_amount == Decimal("250.00")
        assert sample_sale.base_amount == Decimal("250.00")
        assert sample_sale.paid_amount == Decimal("0.00")
        assert sample_sale.remaining_amount == Decimal("250.00")

        full = sale_service.get_sale(sample_sale.id)
        assert [item.total for item in full.items] == [Decimal("200.00"), Decimal("20.00")]
        assert [cost.name for cost in full.additional_costs] == ["Freight"]
        assert full.sale.total_amount == (
            sum(item.per_price * item.amount for item in full.items)
            + sum(cost.amount for cost in full.additional_costs)
        )

    def test_unit_defaults_to_product_unit(self, sale_service, sample_sale, sample_unit):
        full = sale_service.get_sale(sample_sale.id)
        assert all(item.unit_id == sample_unit.id for item in full.items)

    def test_explicit_unit(self, sale_service, reference_service, base_currency, sample_customer, sample_product):
        bag = reference_service.create_unit("bag")
        sale = sale_service.create_sale(
            sample_customer.id, date(2024, 1, 1), base_currency.id,
            [SaleItemInput(sample_product.id, Decimal("9"), Decimal("2"), unit_id=bag.id)],
        )
        assert sale_service.get_sale(sale.id).items[0].unit_id == bag.id

    def test_product_without_unit_needs_one(self, sale_service, reference_service, base_currency, sample_customer):
        loose = reference_service.create_product("Loose item")
        with pytest.raises(MissingRequiredField, match="unit"):
            sale_service.create_sale(
                sample_customer.id, date(2024, 1, 1), base_currency.id,
                [SaleItemInput(loose.id, Decimal("1"), Decimal("1"))],
            )

    def test_foreign_currency_base_amount(self, sale_service, usd, sample_customer, sample_product):
        sale = sale_service.create_sale(
            sample_customer.id, date(2024, 2, 1), usd.id,
            [SaleItemInput(sample_product.id, Decimal("12.5"), Decimal("2"))],
        )
        assert sale.exchange_rate == Decimal("70")
        assert sale.total_amount == Decimal("25.00")
        assert sale.base_amount == Decimal("1750.00")

    def test_needs_items(self, sale_service, base_currency, sample_customer):
        with pytest.raises(MissingRequiredField):
            sale_service.create_sale(sample_customer.id, date(2024, 1, 1), base_currency.id, [])

    def test_rejects_non_positive_price(self, sale_service, base_currency, sample_customer, sample_product):
        with pytest.raises(InvalidAmount, match="price"):
            sale_service.create_sale(
                sample_customer.id, date(2024, 1, 1), base_currency.id,
                [SaleItemInput(sample_product.id, Decimal("0"), Decimal("1"))],
            )

    def test_unknown_customer(self, sale_service, base_currency, sample_product):
        with pytest.raises(UnknownReference, match="customer"):
            sale_service.create_sale(
                77, date(2024, 1, 1), base_currency.id,
                [SaleItemInput(sample_product.id, Decimal("1"), Decimal("1"))],
            )


class TestUpdateSale:
    def test_update_replaces_items(self, sale_service, sample_sale, base_currency, sample_customer, sample_product):
        updated = sale_service.update_sale(
            sample_sale.id,
            customer_id=sample_customer.id,
            sale_date=date(2024, 1, 16),
            currency_id=base_currency.id,
            items=[SaleItemInput(sample_product.id, Decimal("10"), Decimal("3"))],
        )
        assert updated.total_amount == Decimal("30.00")
        full = sale_service.get_sale(sample_sale.id)
        assert len(full.items) == 1
        assert full.additional_costs == []

    def test_repeated_update_does_not_drift(
        self, sale_service, sample_sale, base_currency, sample_customer, sample_product
    ):
        full = sale_service.get_sale(sample_sale.id)
        items = [SaleItemInput(i.product_id, i.per_price, i.amount, i.unit_id) for i in full.items]
        costs = [AdditionalCostInput(c.name, c.amount) for c in full.additional_costs]

        totals = []
        for _ in range(2):
            sale = sale_service.update_sale(
                sample_sale.id, sample_customer.id, full.sale.date, base_currency.id, items, costs
            )
            totals.append(sale.total_amount)
        assert totals == [Decimal("250.00"), Decimal("250.00")]

    def test_update_keeps_payments(
        self, sale_service, settlement_service, sample_sale, base_currency, sample_customer, sample_product
    ):
        settlement_service.add_payment(sample_sale.id, Decimal("100"), base_currency.id, date(2024, 1, 20))
        updated = sale_service.update_sale(
            sample_sale.id, sample_customer.id, date(2024, 1, 15), base_currency.id,
            [SaleItemInput(sample_product.id, Decimal("300"), Decimal("1"))],
        )
        assert updated.paid_amount == Decimal("100.00")
        assert updated.remaining_amount == Decimal("200.00")

    def test_update_missing_sale(self, sale_service, base_currency, sample_customer, sample_product):
        with pytest.raises(NotFoundError):
            sale_service.update_sale(
                404, sample_customer.id, date(2024, 1, 1), base_currency.id,
                [SaleItemInput(sample_product.id, Decimal("1"), Decimal("1"))],
            )


class TestListAndDelete:
    def test_list_search_and_sort(self, sale_service, reference_service, base_currency, sample_sale, sample_product):
        other = reference_service.create_customer("Zahra Noori")
        sale_service.create_sale(
            other.id, date(2024, 2, 1), base_currency.id,
            [SaleItemInput(sample_product.id, Decimal("5"), Decimal("1"))],
        )

        page = sale_service.list_sales()
        assert page.total == 2
        assert page.items[0].customer_id == other.id

        found = sale_service.list_sales(search="ahmad")
        assert [s.id for s in found.items] == [sample_sale.id]

        by_notes = sale_service.list_sales(search="weekly")
        assert [s.id for s in by_notes.items] == [sample_sale.id]

        by_total = sale_service.list_sales(sort_by="total_amount", sort_order="asc")
        assert [s.total_amount for s in by_total.items] == [Decimal("5.00"), Decimal("250.00")]

    def test_list_rejects_unknown_sort(self, sale_service):
        with pytest.raises(ValidationError):
            sale_service.list_sales(sort_by="profit")

    def test_delete_sale(self, sale_service, sample_sale):
        sale_service.delete_sale(sample_sale.id)
        with pytest.raises(NotFoundError):
            sale_service.get_sale(sample_sale.id)


def test_compute_totals_rounds_to_cents():
    from hisab.domain.entities import PreparedItem

    items = [PreparedItem(1, 1, Decimal("0.33"), Decimal("3"), Decimal("0.99"))]
    totals = compute_totals(items, [AdditionalCostInput("Fee", Decimal("0.01"))], Decimal("1.005"))
    assert totals.total_amount == Decimal("1.00")
    assert totals.base_amount == Decimal("1.01")
