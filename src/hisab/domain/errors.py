"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class UnbalancedEntry(ValidationError):
    """Journal entry debits and credits do not match."""


class MissingRequiredField(ValidationError):
    """A required field was not supplied."""


class InvalidAmount(ValidationError):
    """An amount, quantity or rate is out of range."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ReferentialIntegrityError(DomainError):
    """A foreign reference is missing or still depended upon."""


class AccountInUse(ReferentialIntegrityError):
    """Account is referenced by journal lines or sale payments."""


class CurrencyInUse(ReferentialIntegrityError):
    """Currency is referenced by accounts, rates, lines, sales or payments."""


class UnknownReference(ReferentialIntegrityError):
    """A referenced entity does not exist."""


class RateUnavailable(DomainError):
    """No exchange rate exists for the requested currency and date."""


NoRateAvailable = RateUnavailable


class StorageError(RuntimeError):
    """Underlying persistence failure. The write has been rolled back."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def currency_not_found(currency_id: int) -> str:
    """Return message for missing currency."""
    return f"Currency {currency_id} not found"


def sale_not_found(sale_id: int) -> str:
    """Return message for missing sale."""
    return f"Sale {sale_id} not found"


def payment_not_found(payment_id: int) -> str:
    """Return message for missing sale payment."""
    return f"Payment {payment_id} not found"


def entry_not_found(entry_id: int) -> str:
    """Return message for missing journal entry."""
    return f"Journal entry {entry_id} not found"


def unknown_reference(kind: str, ref_id: int) -> str:
    """Return message for a foreign reference that does not exist."""
    return f"Unknown {kind} {ref_id}"


def unbalanced_entry(total_debit: Decimal, total_credit: Decimal) -> str:
    """Return message for a journal entry whose sides differ."""
    return (
        f"Entry is not balanced: debits {total_debit} != credits {total_credit} "
        f"(difference {total_debit - total_credit})"
    )


def no_rate_available(currency_id: int, as_of: object) -> str:
    """Return message when no rate to the base currency exists."""
    return f"No exchange rate to base currency for currency {currency_id} on or before {as_of}"


def _dependents(counts: dict[str, int]) -> str:
    parts = []
    for label, count in counts.items():
        if count > 0:
            parts.append(f"{count} {label}{'s' if count != 1 else ''}")
    return ", ".join(parts)


def account_delete_blocked(account_id: int, line_count: int, payment_count: int) -> str:
    """Return message when account is referenced by journal lines or payments."""
    deps = _dependents({"journal line": line_count, "sale payment": payment_count})
    return (
        f"Cannot delete account {account_id}: it has {deps}. "
        "Journal lines and payments keep their account for audit purposes."
    )


def currency_delete_blocked(currency_id: int, counts: dict[str, int]) -> str:
    """Return message when currency is still referenced."""
    return (
        f"Cannot delete currency {currency_id}: it is used by {_dependents(counts)}. "
        "Please remove them first."
    )
