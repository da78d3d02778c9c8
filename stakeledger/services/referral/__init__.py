"""
Referral services package.

Contains modular services for referral processing:
- config: Commission rate table (REFERRAL_DEPTH, REFERRAL_RATES)
- chain_manager: Builds and walks referral chains
- earnings_manager: Credits commission and handles claims
- statistics: Per-level network counts
"""

from stakeledger.services.referral.chain_manager import ReferralChainManager
from stakeledger.services.referral.config import (
    REFERRAL_DEPTH,
    REFERRAL_RATES,
    get_commission_rate,
    iter_commission_rates,
)
from stakeledger.services.referral.earnings_manager import (
    ClaimResult,
    ReferralEarningsManager,
    calculate_commission,
)
from stakeledger.services.referral.statistics import (
    LevelSummary,
    NetworkSummary,
    ReferralStatisticsManager,
)


__all__ = [
    # Configuration
    "REFERRAL_DEPTH",
    "REFERRAL_RATES",
    "get_commission_rate",
    "iter_commission_rates",
    # Managers
    "ReferralChainManager",
    "ReferralEarningsManager",
    "ReferralStatisticsManager",
    # Results
    "ClaimResult",
    "LevelSummary",
    "NetworkSummary",
    "calculate_commission",
]
