"""Utility functions for hisab."""

from hisab.utils.date_parser import parse_date
from hisab.utils.amount_parser import parse_amount
from hisab.utils.account_resolver import resolve_account, resolve_currency

__all__ = ["parse_date", "parse_amount", "resolve_account", "resolve_currency"]
