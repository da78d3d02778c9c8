"""
Referral earnings management module.

Credits commission along a referred account's ancestor edges and lets
referrers claim what has accumulated.
"""

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.config.business_constants import MONEY_QUANTUM
from stakeledger.models.referral_earning import ReferralEarning
from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.repositories.referral_earning_repository import (
    ReferralEarningRepository,
)
from stakeledger.repositories.referral_repository import ReferralRepository
from stakeledger.services.base_service import BaseService
from stakeledger.utils.datetime_utils import Clock
from stakeledger.utils.exceptions import NotFoundError, StateConflictError


@dataclass(frozen=True)
class ClaimResult:
    """Result of a referral earnings claim."""

    account_id: int
    claimed: Decimal
    total_earned: Decimal


def calculate_commission(base_amount: Decimal, rate: Decimal) -> Decimal:
    """
    Commission for one edge: base * rate / 100, 8 dp rounded down.

    Args:
        base_amount: Amount the commission is taken from
        rate: Commission rate in percent

    Returns:
        Commission amount (0 for non-positive inputs)
    """
    if base_amount <= 0 or rate <= 0:
        return Decimal("0")
    return (base_amount * rate / 100).quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


class ReferralEarningsManager(BaseService):
    """Manages referral earnings operations."""

    def __init__(
        self, session: AsyncSession, clock: Clock | None = None
    ) -> None:
        """Initialize earnings manager."""
        super().__init__(session, clock)
        self.account_repo = AccountRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.earning_repo = ReferralEarningRepository(session)

    async def credit_commissions(
        self,
        referred_id: int,
        base_amount: Decimal,
        source_stake_id: int | None = None,
    ) -> list[ReferralEarning]:
        """
        Credit commission to every ancestor of ``referred_id``.

        Each edge pays ``base_amount * commission_rate / 100`` using the rate
        frozen on the edge. The amount is added to the edge's
        ``total_earned`` and to the referrer's pending ``referral_earnings``.

        Args:
            referred_id: Account whose activity produced the base amount
            base_amount: Amount commission is computed from
            source_stake_id: Stake that produced the base amount

        Returns:
            Created earning records (empty when nothing was credited)
        """
        if base_amount <= 0:
            return []

        edges = await self.referral_repo.get_by_referred(referred_id)
        now = self.now()
        earnings: list[ReferralEarning] = []

        for edge in edges:
            commission = calculate_commission(base_amount, edge.commission_rate)
            if commission <= 0:
                continue

            earning = await self.earning_repo.create(
                referral_id=edge.id,
                referrer_id=edge.referrer_id,
                source_stake_id=source_stake_id,
                amount=commission,
                paid=False,
                created_at=now,
            )
            await self.referral_repo.update(
                edge.id, total_earned=edge.total_earned + commission
            )

            referrer = await self.account_repo.get_for_update(edge.referrer_id)
            if referrer is None:
                raise NotFoundError(
                    f"Referrer {edge.referrer_id} of edge {edge.id} not found",
                    code="referrer_not_found",
                    referral_id=edge.id,
                )
            await self.account_repo.update(
                referrer.id,
                referral_earnings=referrer.referral_earnings + commission,
            )
            earnings.append(earning)

        if earnings:
            self.logger.info(
                "Referral commissions credited",
                extra={
                    "referred_id": referred_id,
                    "base_amount": str(base_amount),
                    "rewards_count": len(earnings),
                    "total": str(sum((e.amount for e in earnings), Decimal("0"))),
                },
            )

        return earnings

    async def get_pending_amount(self, account_id: int) -> Decimal:
        """
        Get claimable referral earnings of an account.

        Args:
            account_id: Account ID

        Returns:
            Pending amount as recorded on the account

        Raises:
            NotFoundError: If the account does not exist
        """
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError(
                f"Account {account_id} not found", account_id=account_id
            )
        return account.referral_earnings

    async def claim(self, account_id: int) -> ClaimResult:
        """
        Claim pending referral earnings.

        Zeroes ``referral_earnings``, folds the amount into
        ``total_earned`` and marks the underlying earning records paid.

        Args:
            account_id: Claiming account ID

        Returns:
            ClaimResult with claimed amount and new total earned

        Raises:
            NotFoundError: If the account does not exist
            StateConflictError: If there is nothing to claim
        """
        account = await self.account_repo.get_for_update(account_id)
        if account is None:
            raise NotFoundError(
                f"Account {account_id} not found", account_id=account_id
            )

        pending = account.referral_earnings
        if pending <= 0:
            raise StateConflictError(
                "No rewards to claim",
                code="nothing_to_claim",
                account_id=account_id,
            )

        now = self.now()
        marked = await self.earning_repo.mark_paid_for_referrer(account_id, now)
        new_total = account.total_earned + pending
        await self.account_repo.update(
            account_id,
            referral_earnings=Decimal("0"),
            total_earned=new_total,
        )

        self.logger.info(
            "Referral earnings claimed",
            extra={
                "account_id": account_id,
                "claimed": str(pending),
                "earnings_marked": marked,
            },
        )

        return ClaimResult(
            account_id=account_id,
            claimed=pending,
            total_earned=new_total,
        )
