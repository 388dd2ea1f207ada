"""CLI helpers for resolving accounts, currencies and dates or exiting."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

import click
from hisab.domain.account import AccountService
from hisab.domain.currency import CurrencyService
from hisab.utils.account_resolver import resolve_account, resolve_currency
from hisab.utils.amount_parser import parse_amount
from hisab.utils.date_parser import parse_date


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, account)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def resolve_currency_or_exit(
    ctx: click.Context, currency_service: CurrencyService, currency: Optional[str | int]
) -> int:
    """Resolve currency name or ID; no currency means the base currency."""
    try:
        if currency is None:
            return currency_service.get_base_currency().id
        return resolve_currency(currency_service, currency)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def parse_date_or_exit(ctx: click.Context, value: Optional[str], label: str = "date") -> date:
    """Parse a date option, defaulting to today when it was not given."""
    if value is None:
        return date.today()
    try:
        return parse_date(value)
    except ValueError as exc:
        click.echo(f"Error: Invalid {label}: {exc}", err=True)
        ctx.exit(1)


def parse_amount_or_exit(
    ctx: click.Context, value: Optional[str], label: str = "amount"
) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as exc:
        click.echo(f"Error: Invalid {label}: {exc}", err=True)
        ctx.exit(1)
