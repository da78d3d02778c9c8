"""
Referral chain management module.

Handles referral chain retrieval and construction of the edges linking a
new account to every ancestor up to REFERRAL_DEPTH.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.models.account import Account
from stakeledger.models.referral import Referral
from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.repositories.referral_repository import ReferralRepository
from stakeledger.services.base_service import BaseService
from stakeledger.services.referral.config import (
    REFERRAL_DEPTH,
    get_commission_rate,
)
from stakeledger.utils.datetime_utils import Clock
from stakeledger.utils.exceptions import (
    DuplicateError,
    NotFoundError,
    ValidationError,
)


class ReferralChainManager(BaseService):
    """Manages referral chain operations."""

    def __init__(
        self, session: AsyncSession, clock: Clock | None = None
    ) -> None:
        """Initialize chain manager."""
        super().__init__(session, clock)
        self.account_repo = AccountRepository(session)
        self.referral_repo = ReferralRepository(session)

    async def get_referral_chain(
        self, account_id: int, depth: int = REFERRAL_DEPTH
    ) -> list[Account]:
        """
        Get the ancestors of an account, nearest first.

        Walks ``referrer_id`` pointers with an explicit bound; stops early
        on a missing ancestor or a pointer back into the walked chain.

        Args:
            account_id: Account ID
            depth: Maximum number of ancestors to return

        Returns:
            List of accounts from direct referrer to Nth level

        Raises:
            NotFoundError: If the account does not exist
        """
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError(
                f"Account {account_id} not found", account_id=account_id
            )

        chain: list[Account] = []
        visited = {account.id}
        next_id = account.referrer_id

        while next_id is not None and len(chain) < depth:
            if next_id in visited:
                self.logger.warning(
                    "Referral loop detected",
                    extra={"account_id": account_id, "loop_at": next_id},
                )
                break
            ancestor = await self.account_repo.get_by_id(next_id)
            if ancestor is None:
                break
            chain.append(ancestor)
            visited.add(ancestor.id)
            next_id = ancestor.referrer_id

        return chain

    async def link_new_account(
        self, new_account_id: int, direct_referrer_id: int
    ) -> list[Referral]:
        """
        Create referral edges for a newly registered account.

        One edge per ancestor at increasing level, each carrying the
        commission rate of its level. Level 1 also increments the direct
        referrer's ``total_referrals``. The walk ends when the rate table
        has no entry for the next level, when an ancestor has no referrer,
        or when it would revisit an account.

        Not idempotent: must run exactly once per account.

        Args:
            new_account_id: Newly created account ID
            direct_referrer_id: Account that referred it

        Returns:
            Created edges, level 1 first

        Raises:
            ValidationError: If the account would refer itself
            DuplicateError: If the account already has referral edges
            NotFoundError: If the direct referrer does not exist
        """
        if new_account_id == direct_referrer_id:
            raise ValidationError(
                "Account cannot refer itself",
                code="self_referral",
                account_id=new_account_id,
            )

        if await self.referral_repo.exists(referred_id=new_account_id):
            raise DuplicateError(
                f"Account {new_account_id} is already linked into the "
                f"referral network",
                code="already_linked",
                account_id=new_account_id,
            )

        referrer = await self.account_repo.get_by_id(direct_referrer_id)
        if referrer is None:
            raise NotFoundError(
                f"Referrer {direct_referrer_id} not found",
                code="referrer_not_found",
                referrer_id=direct_referrer_id,
            )

        now = self.now()
        created: list[Referral] = []
        visited = {new_account_id}
        level = 1

        while referrer is not None:
            rate = get_commission_rate(level)
            if rate is None:
                break

            if referrer.id in visited:
                self.logger.warning(
                    "Referral loop detected",
                    extra={
                        "new_account_id": new_account_id,
                        "loop_at": referrer.id,
                        "level": level,
                    },
                )
                break
            visited.add(referrer.id)

            edge = await self.referral_repo.create(
                referrer_id=referrer.id,
                referred_id=new_account_id,
                level=level,
                commission_rate=rate,
                total_earned=Decimal("0"),
                created_at=now,
            )
            created.append(edge)

            if level == 1:
                await self.account_repo.update(
                    referrer.id,
                    total_referrals=referrer.total_referrals + 1,
                )

            self.logger.debug(
                "Referral relationship created",
                extra={
                    "referrer_id": referrer.id,
                    "referred_id": new_account_id,
                    "level": level,
                },
            )

            if referrer.referrer_id is None:
                break
            referrer = await self.account_repo.get_by_id(referrer.referrer_id)
            level += 1

        self.logger.info(
            "Referral chain created",
            extra={
                "new_account_id": new_account_id,
                "direct_referrer_id": direct_referrer_id,
                "levels_created": len(created),
            },
        )

        return created
