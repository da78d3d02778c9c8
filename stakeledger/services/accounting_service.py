"""
Aggregate accounting service.

Recomputes every account's denormalized totals from the raw stake,
referral and earning records and repairs drift. The incremental updates
made by the other managers must always agree with what this service
derives.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.repositories.referral_earning_repository import (
    ReferralEarningRepository,
)
from stakeledger.repositories.referral_repository import ReferralRepository
from stakeledger.repositories.stake_repository import StakeRepository
from stakeledger.services.base_service import BaseService
from stakeledger.utils.datetime_utils import Clock
from stakeledger.utils.exceptions import NotFoundError

AGGREGATE_FIELDS = (
    "total_staked",
    "total_earned",
    "referral_earnings",
    "total_referrals",
)


@dataclass(frozen=True)
class AccountAggregates:
    """Totals of one account as derived from raw records."""

    account_id: int
    total_staked: Decimal
    total_earned: Decimal
    referral_earnings: Decimal
    total_referrals: int


@dataclass(frozen=True)
class AggregateDrift:
    """A recorded total that disagrees with its derivation."""

    account_id: int
    field: str
    recorded: Decimal | int
    expected: Decimal | int


class AccountingService(BaseService):
    """Derives and repairs account aggregates."""

    def __init__(
        self, session: AsyncSession, clock: Clock | None = None
    ) -> None:
        """Initialize accounting service."""
        super().__init__(session, clock)
        self.account_repo = AccountRepository(session)
        self.stake_repo = StakeRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.earning_repo = ReferralEarningRepository(session)

    async def compute_aggregates(self, account_id: int) -> AccountAggregates:
        """
        Derive an account's totals from raw records.

        - total_staked: principal of active stakes
        - total_earned: rewards of closed stakes + claimed commission
        - referral_earnings: unclaimed commission
        - total_referrals: level-1 edges

        Args:
            account_id: Account ID

        Returns:
            AccountAggregates

        Raises:
            NotFoundError: If the account does not exist
        """
        if not await self.account_repo.exists(id=account_id):
            raise NotFoundError(
                f"Account {account_id} not found", account_id=account_id
            )

        closed_rewards = await self.stake_repo.get_closed_earned_total(account_id)
        claimed = await self.earning_repo.get_total_by_referrer(
            account_id, paid=True
        )

        return AccountAggregates(
            account_id=account_id,
            total_staked=await self.stake_repo.get_active_total(account_id),
            total_earned=closed_rewards + claimed,
            referral_earnings=await self.earning_repo.get_total_by_referrer(
                account_id, paid=False
            ),
            total_referrals=await self.referral_repo.count(
                referrer_id=account_id, level=1
            ),
        )

    async def recalculate_referral_counts(self) -> int:
        """
        Reset every account's direct-referral counter from level-1 edges.

        Returns:
            Number of accounts whose counter changed
        """
        counts = await self.referral_repo.get_direct_referral_counts()
        account_ids = await self.account_repo.get_all_ids()
        updated = 0

        for account_id in account_ids:
            account = await self.account_repo.get_by_id(account_id)
            if account is None:
                continue
            expected = counts.get(account_id, 0)
            if account.total_referrals != expected:
                self.logger.info(
                    "Referral count corrected",
                    extra={
                        "account_id": account_id,
                        "recorded": account.total_referrals,
                        "expected": expected,
                    },
                )
                await self.account_repo.update(
                    account_id, total_referrals=expected
                )
                updated += 1

        self.logger.info(
            "Referral counts recalculated",
            extra={"accounts": len(account_ids), "updated": updated},
        )
        return updated

    async def recompute_aggregates(
        self, repair: bool = True
    ) -> list[AggregateDrift]:
        """
        Compare every recorded aggregate with its derivation.

        Covers the four account totals and each referral edge's
        ``total_earned`` (reported under the edge's referrer with field
        ``referral:<edge id>.total_earned``).

        Args:
            repair: Overwrite drifted values with the derived ones

        Returns:
            Every drift found (empty when the ledger is consistent)
        """
        drifts: list[AggregateDrift] = []

        for account_id in await self.account_repo.get_all_ids():
            account = await self.account_repo.get_by_id(account_id)
            if account is None:
                continue
            expected = await self.compute_aggregates(account_id)

            fixes = {}
            for name in AGGREGATE_FIELDS:
                recorded_value = getattr(account, name)
                expected_value = getattr(expected, name)
                if recorded_value != expected_value:
                    drifts.append(
                        AggregateDrift(
                            account_id=account_id,
                            field=name,
                            recorded=recorded_value,
                            expected=expected_value,
                        )
                    )
                    fixes[name] = expected_value

            if repair and fixes:
                await self.account_repo.update(account_id, **fixes)

        for edge in await self.referral_repo.find_all():
            expected_total = await self.earning_repo.get_total_by_referral(
                edge.id
            )
            if edge.total_earned != expected_total:
                drifts.append(
                    AggregateDrift(
                        account_id=edge.referrer_id,
                        field=f"referral:{edge.id}.total_earned",
                        recorded=edge.total_earned,
                        expected=expected_total,
                    )
                )
                if repair:
                    await self.referral_repo.update(
                        edge.id, total_earned=expected_total
                    )

        if drifts:
            self.logger.warning(
                "Aggregate drift detected",
                extra={"drifts": len(drifts), "repaired": repair},
            )
        else:
            self.logger.info("Aggregates consistent")

        return drifts
