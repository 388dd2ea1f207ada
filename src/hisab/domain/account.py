"""Account domain service."""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from hisab.database.base import Database
from hisab.domain.currency import CurrencyService
from hisab.domain.entities import (
    DEPOSIT,
    TRANSACTION_TYPES,
    WITHDRAW,
    Account as AccountEntity,
    AccountTransaction,
)
from hisab.domain.errors import (
    AccountInUse,
    ConflictError,
    InvalidAmount,
    MissingRequiredField,
    NotFoundError,
    UnknownReference,
    ValidationError,
    account_delete_blocked,
    account_not_found,
    unknown_reference,
)
from hisab.domain.money import ZERO, to_decimal, to_money

logger = logging.getLogger(__name__)


class AccountService:
    """Service for managing accounts and their derived balances."""

    def __init__(self, db: Database, currency_service: Optional[CurrencyService] = None):
        """Initialize account service.

        Args:
            db: Database instance
            currency_service: Rate resolver; built from db when omitted
        """
        self.db = db
        self.currencies = currency_service or CurrencyService(db)

    def create_account(
        self,
        name: str,
        currency_id: Optional[int] = None,
        initial_balance: Decimal = ZERO,
        notes: Optional[str] = None,
    ) -> AccountEntity:
        """Create a new account.

        Args:
            name: Account name
            currency_id: Currency the initial balance is held in (None means
                the base currency)
            initial_balance: Opening balance
            notes: Optional notes

        Returns:
            Created account

        Raises:
            ConflictError: If account name already exists
            UnknownReference: If currency does not exist
        """
        name = self._check_name(name)
        for acc in self.db.list_accounts():
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")
        self._check_currency(currency_id)

        account_id = self.db.create_account(
            name=name,
            currency_id=currency_id,
            initial_balance=to_money(initial_balance),
            notes=notes,
        )
        logger.info("Created account %s (id=%s)", name, account_id)
        return self.require_account(account_id)

    def update_account(
        self,
        account_id: int,
        name: str,
        currency_id: Optional[int],
        initial_balance: Decimal,
        notes: Optional[str] = None,
    ) -> AccountEntity:
        """Update an account.

        Raises:
            NotFoundError: If account not found
            ConflictError: If name already exists
        """
        self.require_account(account_id)
        name = self._check_name(name)

        # Check for duplicate names (excluding current account)
        for acc in self.db.list_accounts():
            if acc.id != account_id and acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")
        self._check_currency(currency_id)

        self.db.update_account(
            account_id=account_id,
            name=name,
            currency_id=currency_id,
            initial_balance=to_money(initial_balance),
            notes=notes,
        )
        return self.require_account(account_id)

    def get_account(self, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> AccountEntity:
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self) -> list[AccountEntity]:
        """List all accounts.

        Returns:
            List of account entities
        """
        return self.db.list_accounts()

    get_accounts = list_accounts

    def delete_account(self, account_id: int) -> None:
        """Delete an account.

        Args:
            account_id: Account ID to delete

        Raises:
            NotFoundError: If account not found
            AccountInUse: If journal lines or sale payments reference it
        """
        self.require_account(account_id)

        counts = self.db.count_account_references(account_id)
        line_count = counts.get("journal line", 0)
        payment_count = counts.get("sale payment", 0)
        if line_count > 0 or payment_count > 0:
            logger.warning("Refused to delete account %s: still referenced", account_id)
            raise AccountInUse(account_delete_blocked(account_id, line_count, payment_count))

        self.db.delete_account(account_id)
        logger.info("Deleted account %s", account_id)

    # Balances
    def _balance_currency(self, account: AccountEntity, currency_id: Optional[int]) -> int:
        """Currency a balance query is scoped to when the caller gives none."""
        if currency_id is not None:
            return currency_id
        if account.currency_id is not None:
            return account.currency_id
        base = self.db.get_base_currency()
        if base is None:
            raise NotFoundError("No base currency configured")
        return base.id

    def _initial_balance_for(self, account: AccountEntity, currency_id: int) -> Decimal:
        home_currency = account.currency_id
        if home_currency is None:
            base = self.db.get_base_currency()
            home_currency = base.id if base is not None else None
        return account.initial_balance if home_currency == currency_id else ZERO

    def balance(
        self,
        account_id: int,
        currency_id: Optional[int] = None,
        as_of_date: Optional[date] = None,
    ) -> Decimal:
        """Compute an account balance from its transaction history.

        Args:
            account_id: Account ID
            currency_id: Currency to report; defaults to the account currency,
                or the base currency for accounts without one
            as_of_date: Only count transactions dated on or before this date

        Returns:
            Initial balance (if in that currency) plus deposits minus withdrawals
        """
        account = self.require_account(account_id)
        currency_id = self._balance_currency(account, currency_id)

        transactions = self.db.list_account_transactions(
            account_id, currency_id=currency_id, end_date=as_of_date
        )
        total = self._initial_balance_for(account, currency_id)
        for txn in transactions:
            total += txn.signed_total
        return to_money(total)

    get_account_balance = balance

    def get_balances(self, account_id: int) -> dict[int, Decimal]:
        """Balance per currency for every currency the account has touched."""
        account = self.require_account(account_id)
        balances: dict[int, Decimal] = defaultdict(lambda: ZERO)

        home_currency = self._balance_currency(account, None)
        balances[home_currency] += account.initial_balance
        for txn in self.db.list_account_transactions(account_id):
            balances[txn.currency_id] += txn.signed_total
        return {currency_id: to_money(value) for currency_id, value in balances.items()}

    # Transactions
    def deposit(
        self,
        account_id: int,
        amount: Optional[Decimal],
        currency_id: int,
        rate: Optional[Decimal],
        txn_date: date,
        is_full: bool = False,
        notes: Optional[str] = None,
    ) -> AccountTransaction:
        """Deposit into an account. With is_full, close out a negative balance."""
        return self._post(DEPOSIT, account_id, amount, currency_id, rate, txn_date, is_full, notes)

    def withdraw(
        self,
        account_id: int,
        amount: Optional[Decimal],
        currency_id: int,
        rate: Optional[Decimal],
        txn_date: date,
        is_full: bool = False,
        notes: Optional[str] = None,
    ) -> AccountTransaction:
        """Withdraw from an account. With is_full, withdraw the whole balance."""
        return self._post(WITHDRAW, account_id, amount, currency_id, rate, txn_date, is_full, notes)

    def _post(
        self,
        txn_type: str,
        account_id: int,
        amount: Optional[Decimal],
        currency_id: int,
        rate: Optional[Decimal],
        txn_date: date,
        is_full: bool,
        notes: Optional[str],
    ) -> AccountTransaction:
        if txn_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type '{txn_type}'")
        if txn_date is None:
            raise MissingRequiredField("Transaction date is required")
        if not currency_id:
            raise MissingRequiredField("Currency is required")
        self.require_account(account_id)
        self._check_currency(currency_id)

        # Without an explicit rate only the base currency resolves to 1
        rate = self.currencies.rate_or_resolve(currency_id, txn_date, rate)

        if is_full:
            current = self.balance(account_id, currency_id)
            # Sign of the closing transaction depends on its type
            total = current if txn_type == WITHDRAW else -current
            if total <= 0:
                raise InvalidAmount(
                    f"Nothing to close out: balance in currency {currency_id} is {current}"
                )
            amount = to_money(total / rate)
        else:
            if amount is None:
                raise MissingRequiredField("Amount is required")
            amount = to_money(to_decimal(amount))
            if amount <= 0:
                raise InvalidAmount(f"Amount must be positive, got {amount}")
            total = to_money(amount * rate)

        transaction_id = self.db.create_account_transaction(
            account_id=account_id,
            type=txn_type,
            amount=amount,
            currency_id=currency_id,
            rate=rate,
            total=total,
            txn_date=txn_date,
            is_full=is_full,
            notes=notes,
        )
        logger.info(
            "Posted %s of %s (currency %s) to account %s", txn_type, total, currency_id, account_id
        )
        return self.db.get_account_transaction(transaction_id)

    def get_account_transactions(
        self,
        account_id: int,
        currency_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[AccountTransaction]:
        """List transactions of an account, oldest first, optionally filtered."""
        self.require_account(account_id)
        return self.db.list_account_transactions(
            account_id, currency_id=currency_id, start_date=start_date, end_date=end_date
        )

    def delete_transaction(self, transaction_id: int) -> None:
        """Delete a manual deposit or withdrawal.

        Raises:
            NotFoundError: If transaction not found
            ValidationError: If the transaction was posted by a sale payment
        """
        txn = self.db.get_account_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(f"Account transaction {transaction_id} not found")
        if txn.sale_payment_id is not None:
            raise ValidationError(
                f"Transaction {transaction_id} belongs to payment {txn.sale_payment_id}; "
                "delete the payment instead"
            )
        self.db.delete_account_transaction(transaction_id)
        logger.info("Deleted account transaction %s", transaction_id)

    def _check_name(self, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise MissingRequiredField("Account name is required")
        return name

    def _check_currency(self, currency_id: Optional[int]) -> None:
        if currency_id is not None and self.db.get_currency(currency_id) is None:
            raise UnknownReference(unknown_reference("currency", currency_id))
