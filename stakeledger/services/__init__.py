"""
Ledger services.

LedgerService is the public entry point; the managers below it operate
on a caller-supplied session and never commit.
"""

from stakeledger.services.accounting_service import (
    AccountAggregates,
    AccountingService,
    AggregateDrift,
)
from stakeledger.services.ledger_service import LedgerService


__all__ = [
    "LedgerService",
    "AccountingService",
    "AccountAggregates",
    "AggregateDrift",
]
