"""Currency and exchange-rate domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from hisab.database.base import Database
from hisab.domain.entities import Currency, ExchangeRate
from hisab.domain.errors import (
    ConflictError,
    CurrencyInUse,
    InvalidAmount,
    MissingRequiredField,
    NotFoundError,
    RateUnavailable,
    UnknownReference,
    ValidationError,
    currency_delete_blocked,
    currency_not_found,
    no_rate_available,
    unknown_reference,
)
from hisab.domain.money import ONE, to_rate

logger = logging.getLogger(__name__)


class CurrencyService:
    """Service for currencies, the base currency and rate resolution."""

    def __init__(self, db: Database):
        """Initialize currency service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_currency(self, name: str, is_base: bool = False) -> Currency:
        """Create a currency.

        The first currency becomes the base currency even when ``is_base`` is
        False, so a base always exists once any currency does.

        Raises:
            MissingRequiredField: If name is empty
            ConflictError: If a currency with the same name exists
        """
        name = (name or "").strip()
        if not name:
            raise MissingRequiredField("Currency name is required")
        if self.db.get_currency_by_name(name) is not None:
            raise ConflictError(f"Currency with name '{name}' already exists")

        if self.db.get_base_currency() is None:
            is_base = True

        currency_id = self.db.create_currency(name=name, is_base=is_base)
        logger.info("Created currency %s (id=%s, base=%s)", name, currency_id, is_base)
        return self.require_currency(currency_id)

    def update_currency(self, currency_id: int, name: str, is_base: bool) -> Currency:
        """Rename a currency and optionally promote it to base.

        Raises:
            NotFoundError: If currency not found
            ValidationError: If the call would leave no base currency
        """
        currency = self.require_currency(currency_id)
        name = (name or "").strip()
        if not name:
            raise MissingRequiredField("Currency name is required")

        existing = self.db.get_currency_by_name(name)
        if existing is not None and existing.id != currency_id:
            raise ConflictError(f"Currency with name '{name}' already exists")

        if currency.is_base and not is_base:
            raise ValidationError(
                f"Currency '{currency.name}' is the base currency; "
                "set another currency as base instead"
            )

        self.db.update_currency(currency_id=currency_id, name=name, is_base=is_base)
        return self.require_currency(currency_id)

    def delete_currency(self, currency_id: int) -> None:
        """Delete a currency that nothing references.

        Raises:
            NotFoundError: If currency not found
            CurrencyInUse: If accounts, rates, lines, sales, payments or
                account transactions reference it
            ValidationError: If it is the base currency and others exist
        """
        currency = self.require_currency(currency_id)

        counts = self.db.count_currency_references(currency_id)
        if any(count > 0 for count in counts.values()):
            logger.warning("Refused to delete currency %s: still referenced", currency_id)
            raise CurrencyInUse(currency_delete_blocked(currency_id, counts))

        if currency.is_base and len(self.db.list_currencies()) > 1:
            raise ValidationError(
                f"Cannot delete base currency '{currency.name}'; set another base currency first"
            )

        self.db.delete_currency(currency_id)
        logger.info("Deleted currency %s", currency_id)

    def get_currency(self, currency_id: int) -> Optional[Currency]:
        return self.db.get_currency(currency_id)

    def require_currency(self, currency_id: int) -> Currency:
        """Get currency by ID or raise NotFoundError."""
        currency = self.db.get_currency(currency_id)
        if currency is None:
            raise NotFoundError(currency_not_found(currency_id))
        return currency

    def get_currency_by_name(self, name: str) -> Optional[Currency]:
        return self.db.get_currency_by_name(name)

    def get_currencies(self) -> list[Currency]:
        """List currencies, base first."""
        return self.db.list_currencies()

    def get_base_currency(self) -> Currency:
        """Get the base currency.

        Raises:
            NotFoundError: If no currency has been created yet
        """
        base = self.db.get_base_currency()
        if base is None:
            raise NotFoundError("No base currency configured")
        return base

    def set_base_currency(self, currency_id: int) -> Currency:
        """Make a currency the base currency.

        Stored base amounts on earlier lines, sales and payments are
        point-in-time snapshots and are not recomputed.
        """
        self.require_currency(currency_id)
        self.db.set_base_currency(currency_id)
        logger.info("Base currency set to %s", currency_id)
        return self.require_currency(currency_id)

    # Exchange rates
    def add_exchange_rate(
        self, from_currency_id: int, to_currency_id: int, rate: Decimal, rate_date: date
    ) -> ExchangeRate:
        """Record that 1 unit of from_currency equals ``rate`` to_currency on a date.

        Raises:
            UnknownReference: If either currency does not exist
            InvalidAmount: If rate is not positive
            ValidationError: If both currencies are the same
        """
        if rate_date is None:
            raise MissingRequiredField("Rate date is required")
        for currency_id in (from_currency_id, to_currency_id):
            if self.db.get_currency(currency_id) is None:
                raise UnknownReference(unknown_reference("currency", currency_id))
        if from_currency_id == to_currency_id:
            raise ValidationError("Exchange rate needs two different currencies")

        rate = to_rate(rate)
        if rate <= 0:
            raise InvalidAmount(f"Exchange rate must be positive, got {rate}")

        rate_id = self.db.create_exchange_rate(
            from_currency_id=from_currency_id,
            to_currency_id=to_currency_id,
            rate=rate,
            rate_date=rate_date,
        )
        logger.info(
            "Recorded rate %s -> %s = %s on %s", from_currency_id, to_currency_id, rate, rate_date
        )
        return self.db.get_exchange_rate(rate_id)

    def list_exchange_rates(
        self, from_currency_id: Optional[int] = None, to_currency_id: Optional[int] = None
    ) -> list[ExchangeRate]:
        return self.db.list_exchange_rates(from_currency_id, to_currency_id)

    def resolve(self, currency_id: int, as_of_date: date) -> Decimal:
        """Return the rate converting one unit of currency_id into the base currency.

        Args:
            currency_id: Currency to convert from
            as_of_date: Date of the conversion; the latest rate on or before
                this date is used

        Returns:
            1 for the base currency, otherwise the stored rate

        Raises:
            UnknownReference: If currency does not exist
            RateUnavailable: If no rate exists on or before the date
        """
        if self.db.get_currency(currency_id) is None:
            raise UnknownReference(unknown_reference("currency", currency_id))

        base = self.get_base_currency()
        if currency_id == base.id:
            return to_rate(ONE)

        exchange_rate = self.db.find_latest_rate(currency_id, base.id, as_of_date)
        if exchange_rate is None:
            raise RateUnavailable(no_rate_available(currency_id, as_of_date))
        return exchange_rate.rate

    def get_exchange_rate(
        self, from_currency_id: int, to_currency_id: int, as_of_date: Optional[date] = None
    ) -> Decimal:
        """Return the rate converting from_currency into to_currency.

        A direct rate for the pair wins; otherwise the rate is crossed through
        the base currency.
        """
        if as_of_date is None:
            as_of_date = date.today()
        if from_currency_id == to_currency_id:
            return to_rate(ONE)

        direct = self.db.find_latest_rate(from_currency_id, to_currency_id, as_of_date)
        if direct is not None:
            return direct.rate

        return to_rate(
            self.resolve(from_currency_id, as_of_date) / self.resolve(to_currency_id, as_of_date)
        )

    def rate_or_resolve(
        self, currency_id: int, as_of_date: date, explicit_rate: Optional[Decimal] = None
    ) -> Decimal:
        """Use an explicit positive rate when the caller gave one, else resolve it."""
        if explicit_rate is None:
            return self.resolve(currency_id, as_of_date)
        rate = to_rate(explicit_rate)
        if rate <= 0:
            raise InvalidAmount(f"Exchange rate must be positive, got {rate}")
        return rate
