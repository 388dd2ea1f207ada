"""Settlement of sales: payments recorded against a sale."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from hisab.database.base import Database
from hisab.domain.currency import CurrencyService
from hisab.domain.entities import SalePayment
from hisab.domain.errors import (
    InvalidAmount,
    MissingRequiredField,
    NotFoundError,
    UnknownReference,
    payment_not_found,
    sale_not_found,
    unknown_reference,
)
from hisab.domain.money import convert, to_decimal, to_money

logger = logging.getLogger(__name__)


class SettlementService:
    """Service for recording and removing sale payments.

    A sale's paid amount is always re-summed from its live payments. Payments
    are not capped at the sale total; overpayment shows up as a negative
    remaining amount.
    """

    def __init__(self, db: Database, currency_service: Optional[CurrencyService] = None):
        """Initialize settlement service.

        Args:
            db: Database instance
            currency_service: Rate resolver; built from db when omitted
        """
        self.db = db
        self.currencies = currency_service or CurrencyService(db)

    def add_payment(
        self,
        sale_id: int,
        amount: Decimal,
        currency_id: int,
        payment_date: date,
        account_id: Optional[int] = None,
        exchange_rate: Optional[Decimal] = None,
    ) -> SalePayment:
        """Record a payment against a sale.

        When account_id is given the payment is also deposited into that
        account (total = amount * exchange_rate), in the same transaction.

        Args:
            sale_id: Sale being paid
            amount: Amount paid, in the sale currency
            currency_id: Currency the payment was made in
            payment_date: Payment date
            account_id: Optional account receiving the money
            exchange_rate: Rate to the base currency; resolved by date if omitted

        Raises:
            NotFoundError: If sale not found
            InvalidAmount: If amount is not positive
            MissingRequiredField: If currency or date is missing
            UnknownReference: If account or currency does not exist
        """
        if self.db.get_sale(sale_id) is None:
            raise NotFoundError(sale_not_found(sale_id))
        if amount is None:
            raise MissingRequiredField("Payment amount is required")
        amount = to_money(to_decimal(amount))
        if amount <= 0:
            raise InvalidAmount(f"Payment amount must be positive, got {amount}")
        if not currency_id:
            raise MissingRequiredField("Payment currency is required")
        if payment_date is None:
            raise MissingRequiredField("Payment date is required")
        if self.db.get_currency(currency_id) is None:
            raise UnknownReference(unknown_reference("currency", currency_id))
        if account_id is not None and self.db.get_account(account_id) is None:
            raise UnknownReference(unknown_reference("account", account_id))

        rate = self.currencies.rate_or_resolve(currency_id, payment_date, exchange_rate)
        payment_id = self.db.create_sale_payment(
            sale_id=sale_id,
            account_id=account_id,
            currency_id=currency_id,
            exchange_rate=rate,
            amount=amount,
            base_amount=convert(amount, rate),
            payment_date=payment_date,
        )
        logger.info(
            "Recorded payment %s of %s on sale %s (account %s)", payment_id, amount, sale_id, account_id
        )
        return self.db.get_sale_payment(payment_id)

    def delete_payment(self, payment_id: int) -> None:
        """Remove a payment and undo its effect on the sale and the account."""
        payment = self.db.get_sale_payment(payment_id)
        if payment is None:
            raise NotFoundError(payment_not_found(payment_id))
        self.db.delete_sale_payment(payment_id)
        logger.info("Deleted payment %s from sale %s", payment_id, payment.sale_id)

    def get_payment(self, payment_id: int) -> Optional[SalePayment]:
        return self.db.get_sale_payment(payment_id)

    def list_payments(self, sale_id: int) -> list[SalePayment]:
        """Payments of a sale, oldest first."""
        if self.db.get_sale(sale_id) is None:
            raise NotFoundError(sale_not_found(sale_id))
        return self.db.list_sale_payments(sale_id)

    def remaining(self, sale_id: int) -> Decimal:
        """Outstanding amount of a sale; negative when overpaid."""
        sale = self.db.get_sale(sale_id)
        if sale is None:
            raise NotFoundError(sale_not_found(sale_id))
        return sale.remaining_amount
