"""
Staking ledger engine.

Referral network and stake lifecycle bookkeeping behind the staking
dashboard. The public entry point is
:class:`stakeledger.services.ledger_service.LedgerService`.
"""

__version__ = "1.0.0"
