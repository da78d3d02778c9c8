"""
ReferralEarning repository.

Data access layer for ReferralEarning model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.models.referral_earning import ReferralEarning
from stakeledger.repositories.base import BaseRepository
from stakeledger.utils.decimal_utils import sum_money


class ReferralEarningRepository(BaseRepository[ReferralEarning]):
    """ReferralEarning repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral earning repository."""
        super().__init__(ReferralEarning, session)

    async def get_unpaid_by_referrer(
        self, referrer_id: int
    ) -> list[ReferralEarning]:
        """
        Get claimable earnings of a referrer.

        Args:
            referrer_id: Referrer account ID

        Returns:
            List of unpaid earnings
        """
        return await self.find_by(referrer_id=referrer_id, paid=False)

    async def mark_paid_for_referrer(
        self, referrer_id: int, paid_at: datetime
    ) -> int:
        """
        Mark all unpaid earnings of a referrer as paid.

        Args:
            referrer_id: Referrer account ID
            paid_at: Claim timestamp

        Returns:
            Number of earnings marked
        """
        stmt = (
            update(ReferralEarning)
            .where(
                ReferralEarning.referrer_id == referrer_id,
                ReferralEarning.paid == False,  # noqa: E712
            )
            .values(paid=True, paid_at=paid_at)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_total_by_referrer(
        self, referrer_id: int, paid: bool
    ) -> Decimal:
        """
        Sum earnings of a referrer by claim status.

        Args:
            referrer_id: Referrer account ID
            paid: True for claimed earnings, False for pending

        Returns:
            Total amount
        """
        stmt = select(ReferralEarning.amount).where(
            ReferralEarning.referrer_id == referrer_id,
            ReferralEarning.paid == paid,
        )
        result = await self.session.execute(stmt)
        return sum_money(result.scalars().all())

    async def get_total_by_referral(self, referral_id: int) -> Decimal:
        """
        Sum earnings credited along one referral edge.

        Args:
            referral_id: Referral edge ID

        Returns:
            Total amount
        """
        stmt = select(ReferralEarning.amount).where(
            ReferralEarning.referral_id == referral_id
        )
        result = await self.session.execute(stmt)
        return sum_money(result.scalars().all())
