"""Sale domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from hisab.database.base import Database
from hisab.domain.currency import CurrencyService
from hisab.domain.entities import (
    AdditionalCost,
    AdditionalCostInput,
    Page,
    PreparedItem,
    Sale,
    SaleItemInput,
    SaleTotals,
    SaleWithItems,
)
from hisab.domain.errors import (
    InvalidAmount,
    MissingRequiredField,
    NotFoundError,
    UnknownReference,
    ValidationError,
    sale_not_found,
    unknown_reference,
)
from hisab.domain.money import ZERO, convert, to_money, to_quantity
from hisab.domain.paging import page_offset

logger = logging.getLogger(__name__)

SALE_SORT_KEYS = ("date", "total_amount", "paid_amount", "customer", "id")
SORT_ORDERS = ("asc", "desc")


def compute_totals(
    items: Sequence[PreparedItem],
    additional_costs: Sequence[AdditionalCostInput],
    exchange_rate: Decimal,
) -> SaleTotals:
    """Recompute sale totals from the full item and cost set.

    total_amount = sum(per_price * amount) + sum(additional costs), in the
    sale currency; base_amount = total_amount * exchange_rate.
    """
    total = sum((item.total for item in items), ZERO)
    total += sum((to_money(cost.amount) for cost in additional_costs), ZERO)
    total = to_money(total)
    return SaleTotals(
        total_amount=total,
        base_amount=convert(total, exchange_rate),
        items=list(items),
        additional_costs=list(additional_costs),
    )


class SaleService:
    """Service for sales, their items and additional costs."""

    def __init__(self, db: Database, currency_service: Optional[CurrencyService] = None):
        """Initialize sale service.

        Args:
            db: Database instance
            currency_service: Rate resolver; built from db when omitted
        """
        self.db = db
        self.currencies = currency_service or CurrencyService(db)

    compute_totals = staticmethod(compute_totals)

    def create_sale(
        self,
        customer_id: int,
        sale_date: date,
        currency_id: int,
        items: Sequence[SaleItemInput],
        additional_costs: Sequence[AdditionalCostInput] = (),
        exchange_rate: Optional[Decimal] = None,
        notes: Optional[str] = None,
    ) -> Sale:
        """Create a sale with its items and additional costs in one transaction.

        Args:
            customer_id: Customer ID
            sale_date: Sale date
            currency_id: Currency the sale is priced in
            items: Sale items; each needs product, price and quantity
            additional_costs: Extra charges added to the total
            exchange_rate: Rate to the base currency; resolved by date if omitted
            notes: Optional notes

        Returns:
            Created sale

        Raises:
            ValidationError: On missing fields or non-positive amounts
            UnknownReference: If customer, currency, product or unit does not exist
            RateUnavailable: If no rate is given and none is stored
        """
        rate, totals = self._prepare(
            customer_id, sale_date, currency_id, items, additional_costs, exchange_rate
        )
        sale_id = self.db.create_sale(
            customer_id=customer_id,
            sale_date=sale_date,
            currency_id=currency_id,
            exchange_rate=rate,
            notes=notes,
            totals=totals,
        )
        logger.info("Created sale %s for customer %s: total %s", sale_id, customer_id, totals.total_amount)
        return self.db.get_sale(sale_id)

    def update_sale(
        self,
        sale_id: int,
        customer_id: int,
        sale_date: date,
        currency_id: int,
        items: Sequence[SaleItemInput],
        additional_costs: Sequence[AdditionalCostInput] = (),
        exchange_rate: Optional[Decimal] = None,
        notes: Optional[str] = None,
    ) -> Sale:
        """Replace a sale's fields, items and additional costs.

        Items and costs are deleted and re-inserted, and every total is
        recomputed from scratch. Journal entries already posted for the sale
        are left untouched.

        Raises:
            NotFoundError: If sale not found
        """
        self.require_sale(sale_id)
        rate, totals = self._prepare(
            customer_id, sale_date, currency_id, items, additional_costs, exchange_rate
        )
        self.db.update_sale(
            sale_id=sale_id,
            customer_id=customer_id,
            sale_date=sale_date,
            currency_id=currency_id,
            exchange_rate=rate,
            notes=notes,
            totals=totals,
        )
        logger.info("Updated sale %s: total %s", sale_id, totals.total_amount)
        return self.db.get_sale(sale_id)

    def delete_sale(self, sale_id: int) -> None:
        """Delete a sale with its items, costs, payments and their account postings."""
        self.require_sale(sale_id)
        self.db.delete_sale(sale_id)
        logger.info("Deleted sale %s", sale_id)

    def require_sale(self, sale_id: int) -> Sale:
        sale = self.db.get_sale(sale_id)
        if sale is None:
            raise NotFoundError(sale_not_found(sale_id))
        return sale

    def get_sale(self, sale_id: int) -> SaleWithItems:
        """Get a sale with its items and additional costs."""
        sale = self.require_sale(sale_id)
        return SaleWithItems(
            sale=sale,
            items=self.db.get_sale_items(sale_id),
            additional_costs=self.db.get_additional_costs(sale_id),
        )

    def get_additional_costs(self, sale_id: int) -> list[AdditionalCost]:
        self.require_sale(sale_id)
        return self.db.get_additional_costs(sale_id)

    def list_sales(
        self,
        page: int = 1,
        per_page: int = 10,
        search: Optional[str] = None,
        sort_by: Optional[str] = "date",
        sort_order: Optional[str] = "desc",
    ) -> Page[Sale]:
        """List sales a page at a time.

        Args:
            page: 1-based page number
            per_page: Page size
            search: Case-insensitive match on customer name or notes
            sort_by: One of date, total_amount, paid_amount, customer, id
            sort_order: asc or desc

        Raises:
            ValidationError: On bad paging or sort arguments
        """
        offset = page_offset(page, per_page)
        sort_by = sort_by or "date"
        sort_order = (sort_order or "desc").lower()
        if sort_by not in SALE_SORT_KEYS:
            raise ValidationError(
                f"Cannot sort sales by '{sort_by}'. Supported: {', '.join(SALE_SORT_KEYS)}"
            )
        if sort_order not in SORT_ORDERS:
            raise ValidationError(f"Sort order must be 'asc' or 'desc', got '{sort_order}'")

        search = search.strip() if search else None
        items, total = self.db.list_sales(
            offset=offset,
            limit=per_page,
            search=search or None,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return Page(items=items, total=total, page=page, per_page=per_page)

    def _prepare(
        self,
        customer_id: int,
        sale_date: date,
        currency_id: int,
        items: Sequence[SaleItemInput],
        additional_costs: Sequence[AdditionalCostInput],
        exchange_rate: Optional[Decimal],
    ) -> tuple[Decimal, SaleTotals]:
        if not customer_id or customer_id <= 0:
            raise MissingRequiredField("Customer is required")
        if sale_date is None:
            raise MissingRequiredField("Sale date is required")
        if not currency_id or currency_id <= 0:
            raise MissingRequiredField("Currency is required")
        if not items:
            raise MissingRequiredField("A sale needs at least one item")

        if self.db.get_customer(customer_id) is None:
            raise UnknownReference(unknown_reference("customer", customer_id))
        if self.db.get_currency(currency_id) is None:
            raise UnknownReference(unknown_reference("currency", currency_id))

        prepared = [self._prepare_item(number, item) for number, item in enumerate(items, start=1)]
        costs = [self._prepare_cost(number, cost) for number, cost in enumerate(additional_costs, start=1)]

        rate = self.currencies.rate_or_resolve(currency_id, sale_date, exchange_rate)
        return rate, compute_totals(prepared, costs, rate)

    def _prepare_item(self, number: int, item: SaleItemInput) -> PreparedItem:
        if not item.product_id or item.product_id <= 0:
            raise MissingRequiredField(f"Item {number}: product is required")
        product = self.db.get_product(item.product_id)
        if product is None:
            raise UnknownReference(unknown_reference("product", item.product_id))

        # Resolve the unit at write time from the product's foreign key
        unit_id = item.unit_id or product.default_unit_id
        if not unit_id or unit_id <= 0:
            raise MissingRequiredField(f"Item {number}: unit is required")
        if self.db.get_unit(unit_id) is None:
            raise UnknownReference(unknown_reference("unit", unit_id))

        per_price = to_money(item.per_price if item.per_price is not None else 0)
        amount = to_quantity(item.amount if item.amount is not None else 0)
        if per_price <= 0:
            raise InvalidAmount(f"Item {number}: price must be positive, got {per_price}")
        if amount <= 0:
            raise InvalidAmount(f"Item {number}: quantity must be positive, got {amount}")

        return PreparedItem(
            product_id=item.product_id,
            unit_id=unit_id,
            per_price=per_price,
            amount=amount,
            total=convert(per_price, amount),
        )

    def _prepare_cost(self, number: int, cost: AdditionalCostInput) -> AdditionalCostInput:
        name = (cost.name or "").strip()
        if not name:
            raise MissingRequiredField(f"Additional cost {number}: name is required")
        amount = to_money(cost.amount if cost.amount is not None else 0)
        if amount <= 0:
            raise InvalidAmount(f"Additional cost {number}: amount must be positive, got {amount}")
        return AdditionalCostInput(name=name, amount=amount)
