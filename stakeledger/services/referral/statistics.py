"""
Referral statistics module.

Provides per-level network counts for dashboards.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.repositories.referral_repository import ReferralRepository
from stakeledger.services.base_service import BaseService
from stakeledger.services.referral.config import iter_commission_rates


@dataclass(frozen=True)
class LevelSummary:
    """Network size and commission rate at one level."""

    level: int
    rate: Decimal
    count: int


@dataclass
class NetworkSummary:
    """Referral network overview for one account."""

    account_id: int
    direct_referrals: int
    network_size: int
    total_commission: Decimal
    levels: list[LevelSummary] = field(default_factory=list)


class ReferralStatisticsManager(BaseService):
    """Provides referral statistics."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize statistics manager."""
        super().__init__(session)
        self.referral_repo = ReferralRepository(session)

    async def get_level_counts(self, account_id: int) -> dict[int, int]:
        """
        Get referral counts for every level, zero-filled.

        Args:
            account_id: Referrer account ID

        Returns:
            Dict mapping each level 1..REFERRAL_DEPTH to its count
        """
        counts = await self.referral_repo.get_level_counts(account_id)
        return {level: counts.get(level, 0) for level, _ in iter_commission_rates()}

    async def get_network_summary(self, account_id: int) -> NetworkSummary:
        """
        Summarize an account's downline.

        Args:
            account_id: Referrer account ID

        Returns:
            NetworkSummary with per-level counts and commission earned
        """
        edges = await self.referral_repo.get_by_referrer(account_id)
        counts = await self.get_level_counts(account_id)

        levels = [
            LevelSummary(level=level, rate=rate, count=counts[level])
            for level, rate in iter_commission_rates()
        ]

        return NetworkSummary(
            account_id=account_id,
            direct_referrals=counts[1],
            network_size=len(edges),
            total_commission=sum(
                (edge.total_earned for edge in edges), Decimal("0")
            ),
            levels=levels,
        )
