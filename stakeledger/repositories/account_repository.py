"""
Account repository.

Data access layer for Account model (the account directory).
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.models.account import Account
from stakeledger.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Account repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account repository."""
        super().__init__(Account, session)

    async def get_by_wallet_address(
        self, wallet_address: str
    ) -> Account | None:
        """
        Get account by wallet address (case-insensitive).

        Args:
            wallet_address: Wallet address (any case)

        Returns:
            Account or None
        """
        if not wallet_address:
            return None
        stmt = select(Account).where(
            func.lower(Account.wallet_address) == wallet_address.strip().lower()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_referral_code(
        self, referral_code: str
    ) -> Account | None:
        """
        Get account by referral code.

        Args:
            referral_code: Referral code

        Returns:
            Account or None
        """
        return await self.get_by(referral_code=referral_code)

    async def get_by_telegram_id(
        self, telegram_id: str
    ) -> Account | None:
        """
        Get account by linked Telegram ID.

        Args:
            telegram_id: Telegram user ID

        Returns:
            Account or None
        """
        return await self.get_by(telegram_id=telegram_id)

    async def get_all_ids(self) -> list[int]:
        """
        Get all account IDs.

        Optimized to avoid fetching full objects - only returns IDs.

        Returns:
            List of account IDs in creation order
        """
        stmt = select(Account.id).order_by(Account.id)
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]
