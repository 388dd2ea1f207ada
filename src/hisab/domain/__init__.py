"""Domain layer for hisab application."""

from hisab.domain.currency import CurrencyService
from hisab.domain.ledger import LedgerService
from hisab.domain.account import AccountService
from hisab.domain.sale import SaleService
from hisab.domain.settlement import SettlementService
from hisab.domain.reference import ReferenceService

__all__ = [
    "CurrencyService",
    "LedgerService",
    "AccountService",
    "SaleService",
    "SettlementService",
    "ReferenceService",
]
