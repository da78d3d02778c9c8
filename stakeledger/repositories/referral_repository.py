"""
Referral repository.

Data access layer for Referral model (the referral directory).
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.models.referral import Referral
from stakeledger.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_by_referrer(
        self, referrer_id: int, level: int | None = None
    ) -> list[Referral]:
        """
        Get referrals by referrer.

        Args:
            referrer_id: Referrer account ID
            level: Optional level filter (1-25)

        Returns:
            List of referrals
        """
        filters: dict[str, int] = {"referrer_id": referrer_id}
        if level:
            filters["level"] = level

        return await self.find_by(**filters)

    async def get_by_referred(
        self, referred_id: int
    ) -> list[Referral]:
        """
        Get the ancestor edges of a referred account.

        Args:
            referred_id: Referred account ID

        Returns:
            List of referrals ordered by level (direct referrer first)
        """
        stmt = (
            select(Referral)
            .where(Referral.referred_id == referred_id)
            .order_by(Referral.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_level_counts(
        self, referrer_id: int
    ) -> dict[int, int]:
        """
        Get referral counts per level in a single query.

        Args:
            referrer_id: Referrer account ID

        Returns:
            Dict mapping level to count, only levels that have edges
        """
        stmt = (
            select(
                Referral.level,
                func.count(Referral.id).label("count")
            )
            .where(Referral.referrer_id == referrer_id)
            .group_by(Referral.level)
        )

        result = await self.session.execute(stmt)
        return {row.level: row.count for row in result.all()}

    async def get_direct_referral_counts(self) -> dict[int, int]:
        """
        Count level 1 edges per referrer across the whole network.

        Returns:
            Dict mapping referrer account ID to direct-referral count
            (accounts without direct referrals are absent)
        """
        stmt = (
            select(
                Referral.referrer_id,
                func.count(Referral.id).label("count")
            )
            .where(Referral.level == 1)
            .group_by(Referral.referrer_id)
        )

        result = await self.session.execute(stmt)
        return {row.referrer_id: row.count for row in result.all()}
