"""
Stake repository.

Data access layer for Stake model (the stake directory).
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.models.stake import Stake
from stakeledger.repositories.base import BaseRepository
from stakeledger.utils.decimal_utils import sum_money


class StakeRepository(BaseRepository[Stake]):
    """Stake repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize stake repository."""
        super().__init__(Stake, session)

    async def get_by_account(
        self, account_id: int, active_only: bool = False
    ) -> list[Stake]:
        """
        Get stakes owned by an account.

        Args:
            account_id: Owner account ID
            active_only: Only return stakes that are not closed

        Returns:
            List of stakes ordered by ID
        """
        filters: dict[str, object] = {"account_id": account_id}
        if active_only:
            filters["is_active"] = True
        return await self.find_by(**filters)

    async def get_active_total(self, account_id: int) -> Decimal:
        """
        Sum principal of the account's active stakes.

        Args:
            account_id: Owner account ID

        Returns:
            Total principal currently committed
        """
        stmt = select(Stake.amount).where(
            Stake.account_id == account_id,
            Stake.is_active == True,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return sum_money(result.scalars().all())

    async def get_closed_earned_total(self, account_id: int) -> Decimal:
        """
        Sum rewards written to the account's closed stakes.

        Args:
            account_id: Owner account ID

        Returns:
            Total staking reward earned
        """
        stmt = select(Stake.earned_amount).where(
            Stake.account_id == account_id,
            Stake.is_active == False,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return sum_money(result.scalars().all())
