"""Journal (double-entry ledger) domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from hisab.database.base import Database
from hisab.domain.currency import CurrencyService
from hisab.domain.entities import (
    REFERENCE_MANUAL,
    REFERENCE_REVERSAL,
    REFERENCE_SALE,
    JournalEntry,
    JournalEntryLine,
    JournalLineInput,
    Page,
    PreparedLine,
)
from hisab.domain.errors import (
    ConflictError,
    InvalidAmount,
    MissingRequiredField,
    NotFoundError,
    UnbalancedEntry,
    UnknownReference,
    ValidationError,
    entry_not_found,
    sale_not_found,
    unbalanced_entry,
    unknown_reference,
)
from hisab.domain.money import ZERO, convert, to_money
from hisab.domain.paging import page_offset

logger = logging.getLogger(__name__)


def validate_lines(lines: Sequence[JournalLineInput]) -> tuple[Decimal, Decimal]:
    """Check the structure of draft lines without touching the database.

    Every line needs an account and a currency and exactly one strictly
    positive side. Debits and credits must be equal to the cent.

    Returns:
        (total debit, total credit)

    Raises:
        MissingRequiredField: If there are no lines or a line lacks account/currency
        InvalidAmount: If a line has a negative amount, both sides or neither
        UnbalancedEntry: If total debit differs from total credit
    """
    if not lines:
        raise MissingRequiredField("A journal entry needs at least one line")

    total_debit = ZERO
    total_credit = ZERO
    for number, line in enumerate(lines, start=1):
        if not line.account_id or line.account_id <= 0:
            raise MissingRequiredField(f"Line {number}: account is required")
        if not line.currency_id or line.currency_id <= 0:
            raise MissingRequiredField(f"Line {number}: currency is required")

        debit = to_money(line.debit_amount or 0)
        credit = to_money(line.credit_amount or 0)
        if debit < 0 or credit < 0:
            raise InvalidAmount(f"Line {number}: amounts cannot be negative")
        if debit > 0 and credit > 0:
            raise InvalidAmount(f"Line {number}: cannot be both debit and credit")
        if debit == 0 and credit == 0:
            raise InvalidAmount(f"Line {number}: needs a debit or a credit amount")

        total_debit += debit
        total_credit += credit

    if total_debit != total_credit:
        raise UnbalancedEntry(unbalanced_entry(total_debit, total_credit))
    return total_debit, total_credit


class LedgerService:
    """Service for posting and reading journal entries.

    Entries are immutable once posted. Corrections are made by posting a
    reversal, never by editing or deleting lines.
    """

    def __init__(self, db: Database, currency_service: Optional[CurrencyService] = None):
        """Initialize ledger service.

        Args:
            db: Database instance
            currency_service: Rate resolver; built from db when omitted
        """
        self.db = db
        self.currencies = currency_service or CurrencyService(db)

    validate_lines = staticmethod(validate_lines)

    def create_entry(
        self,
        entry_date: date,
        lines: Sequence[JournalLineInput],
        description: Optional[str] = None,
        reference_type: str = REFERENCE_MANUAL,
        reference_id: Optional[int] = None,
    ) -> JournalEntry:
        """Validate and post a journal entry with all of its lines.

        Args:
            entry_date: Entry date; also the date rates are resolved for
            lines: Draft lines
            description: Optional description
            reference_type: "manual" or the kind of business event that created it
            reference_id: ID of that business event

        Returns:
            Posted entry

        Raises:
            ValidationError: On missing fields, bad amounts or unbalanced lines
            UnknownReference: If an account or currency does not exist
            RateUnavailable: If a line currency has no rate for the entry date
        """
        if entry_date is None:
            raise MissingRequiredField("Entry date is required")
        if not reference_type:
            raise MissingRequiredField("Reference type is required")

        try:
            validate_lines(lines)
        except ValidationError as e:
            logger.warning("Rejected journal entry dated %s: %s", entry_date, e)
            raise

        prepared = [self._prepare_line(line, entry_date) for line in lines]

        entry_id = self.db.create_journal_entry(
            entry_date=entry_date,
            description=description,
            reference_type=reference_type,
            reference_id=reference_id,
            lines=prepared,
        )
        entry = self.db.get_journal_entry(entry_id)
        logger.info(
            "Posted journal entry %s (%s lines, %s %s)",
            entry.entry_number,
            len(prepared),
            reference_type,
            reference_id,
        )
        return entry

    create_journal_entry = create_entry

    def _prepare_line(self, line: JournalLineInput, entry_date: date) -> PreparedLine:
        if self.db.get_account(line.account_id) is None:
            raise UnknownReference(unknown_reference("account", line.account_id))
        if self.db.get_currency(line.currency_id) is None:
            raise UnknownReference(unknown_reference("currency", line.currency_id))

        rate = self.currencies.rate_or_resolve(line.currency_id, entry_date, line.exchange_rate)
        debit = to_money(line.debit_amount or 0)
        credit = to_money(line.credit_amount or 0)
        amount = debit if debit > 0 else credit
        return PreparedLine(
            account_id=line.account_id,
            currency_id=line.currency_id,
            debit_amount=debit,
            credit_amount=credit,
            exchange_rate=rate,
            base_amount=convert(amount, rate),
            description=line.description,
        )

    def get_entry(self, entry_id: int) -> tuple[JournalEntry, list[JournalEntryLine]]:
        """Get an entry with its lines.

        Raises:
            NotFoundError: If entry not found
        """
        entry = self.db.get_journal_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id))
        return entry, self.db.get_journal_lines(entry_id)

    get_journal_entry = get_entry

    def list_entries(self, page: int = 1, per_page: int = 10) -> Page[JournalEntry]:
        """List entries, newest entry date first."""
        offset = page_offset(page, per_page)
        items, total = self.db.list_journal_entries(offset=offset, limit=per_page)
        return Page(items=items, total=total, page=page, per_page=per_page)

    list_journal_entries = list_entries

    def find_entries(self, reference_type: str, reference_id: int) -> list[JournalEntry]:
        """Entries posted for a business event, oldest first."""
        return self.db.find_journal_entries(reference_type, reference_id)

    def reverse_entry(self, entry_id: int, entry_date: Optional[date] = None) -> JournalEntry:
        """Post a new entry that cancels an existing one.

        The reversal swaps every debit and credit and keeps the original
        rates and base amounts, so both entries net to zero in every currency.

        Raises:
            NotFoundError: If entry not found
            ValidationError: If the entry is itself a reversal
            ConflictError: If the entry was already reversed
        """
        original, lines = self.get_entry(entry_id)
        if original.reference_type == REFERENCE_REVERSAL:
            raise ValidationError(f"Entry {original.entry_number} is a reversal and cannot be reversed")
        if self.db.find_journal_entries(REFERENCE_REVERSAL, entry_id):
            raise ConflictError(f"Entry {original.entry_number} has already been reversed")

        swapped = [
            PreparedLine(
                account_id=line.account_id,
                currency_id=line.currency_id,
                debit_amount=line.credit_amount,
                credit_amount=line.debit_amount,
                exchange_rate=line.exchange_rate,
                base_amount=line.base_amount,
                description=line.description,
            )
            for line in lines
        ]
        reversal_id = self.db.create_journal_entry(
            entry_date=entry_date or date.today(),
            description=f"Reversal of {original.entry_number}",
            reference_type=REFERENCE_REVERSAL,
            reference_id=original.id,
            lines=swapped,
        )
        reversal = self.db.get_journal_entry(reversal_id)
        logger.info("Reversed %s with %s", original.entry_number, reversal.entry_number)
        return reversal

    def post_sale_entry(
        self,
        sale_id: int,
        receivable_account_id: int,
        revenue_account_id: int,
        description: Optional[str] = None,
    ) -> JournalEntry:
        """Post the revenue entry for a sale.

        Debits the receivable account and credits the revenue account with
        the sale total, in the sale currency at the sale's exchange rate.
        """
        sale = self.db.get_sale(sale_id)
        if sale is None:
            raise NotFoundError(sale_not_found(sale_id))
        if sale.total_amount <= 0:
            raise InvalidAmount(f"Sale {sale_id} has no amount to post")

        lines = [
            JournalLineInput(
                account_id=receivable_account_id,
                currency_id=sale.currency_id,
                debit_amount=sale.total_amount,
                exchange_rate=sale.exchange_rate,
                description="Receivable",
            ),
            JournalLineInput(
                account_id=revenue_account_id,
                currency_id=sale.currency_id,
                credit_amount=sale.total_amount,
                exchange_rate=sale.exchange_rate,
                description="Revenue",
            ),
        ]
        return self.create_entry(
            entry_date=sale.date,
            lines=lines,
            description=description or f"Sale {sale_id}",
            reference_type=REFERENCE_SALE,
            reference_id=sale_id,
        )
