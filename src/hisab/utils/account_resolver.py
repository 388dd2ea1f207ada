"""Resolve names or IDs typed on the command line to record IDs."""

from typing import Callable, Iterable, Optional, TypeVar

from hisab.domain.account import AccountService
from hisab.domain.currency import CurrencyService
from hisab.domain.errors import NotFoundError

T = TypeVar("T")


def _resolve(
    kind: str,
    value: str | int,
    get_by_id: Callable[[int], Optional[T]],
    candidates: Callable[[], Iterable[T]],
    name_of: Callable[[T], str],
) -> int:
    # A numeric value is always an ID, never a name
    try:
        record_id = int(value)
    except (ValueError, TypeError):
        record_id = None

    if record_id is not None:
        if get_by_id(record_id) is None:
            raise NotFoundError(f"{kind.capitalize()} ID {record_id} not found")
        return record_id

    wanted = str(value).strip()
    for record in candidates():
        if name_of(record) == wanted:
            return record.id
    raise NotFoundError(f"{kind.capitalize()} '{wanted}' not found")


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Raises:
        NotFoundError: If account is not found
    """
    return _resolve(
        "account",
        account,
        account_service.get_account,
        account_service.list_accounts,
        lambda acc: acc.name,
    )


def resolve_currency(currency_service: CurrencyService, currency: str | int) -> int:
    """Resolve currency name (e.g. "USD") or ID to currency ID."""
    return _resolve(
        "currency",
        currency,
        currency_service.get_currency,
        currency_service.get_currencies,
        lambda cur: cur.name,
    )


def resolve_named(
    kind: str,
    value: str | int,
    get_by_id: Callable[[int], Optional[T]],
    candidates: Callable[[], Iterable[T]],
    name_of: Callable[[T], str],
) -> int:
    """Resolve any other named record (customer, product, unit) to its ID."""
    return _resolve(kind, value, get_by_id, candidates, name_of)
