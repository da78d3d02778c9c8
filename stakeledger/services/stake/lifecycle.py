"""
Stake lifecycle management.

Handles stake creation, the lazy locked -> unlockable transition and the
two terminal transitions (normal unstake and emergency unstake).
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.models.enums import CloseReason
from stakeledger.models.stake import Stake
from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.repositories.global_settings_repository import (
    GlobalSettingsRepository,
)
from stakeledger.repositories.stake_repository import StakeRepository
from stakeledger.services.base_service import BaseService
from stakeledger.services.referral.earnings_manager import (
    ReferralEarningsManager,
)
from stakeledger.services.stake.reward_calculator import StakeRewardCalculator
from stakeledger.utils.datetime_utils import Clock
from stakeledger.utils.exceptions import (
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from stakeledger.validators.common import validate_amount, validate_lock_period


class StakeLifecycleManager(BaseService):
    """
    Stake lifecycle manager.

    States: LOCKED (active) -> UNLOCKABLE (active, matured) -> CLOSED.
    ``can_unstake`` is only ever set, never cleared; ``earned_amount`` is
    written once, when the stake closes.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        calculator: StakeRewardCalculator | None = None,
    ) -> None:
        """
        Initialize lifecycle manager.

        Args:
            session: Async database session
            clock: Time source
            calculator: Reward calculator (default 30-day periods)
        """
        super().__init__(session, clock)
        self.stake_repo = StakeRepository(session)
        self.account_repo = AccountRepository(session)
        self.settings_repo = GlobalSettingsRepository(session)
        self.earnings_manager = ReferralEarningsManager(session, clock)
        self.calculator = calculator or StakeRewardCalculator()

    async def get_stake(self, stake_id: int, lock: bool = False) -> Stake:
        """
        Get stake by ID.

        With ``lock`` the row is read with SELECT FOR UPDATE for a
        following write.

        Raises:
            NotFoundError: If the stake does not exist
        """
        if lock:
            stake = await self.stake_repo.get_for_update(stake_id)
        else:
            stake = await self.stake_repo.get_by_id(stake_id)
        if stake is None:
            raise NotFoundError(
                f"Stake {stake_id} not found",
                code="stake_not_found",
                stake_id=stake_id,
            )
        return stake

    async def create_stake(
        self,
        account_id: int,
        amount: Decimal | str | int,
        lock_period_months: int,
    ) -> Stake:
        """
        Create a locked stake and add it to the owner's total staked.

        Args:
            account_id: Owner account ID
            amount: Principal (must be positive)
            lock_period_months: One of the offered lock periods

        Returns:
            Created stake

        Raises:
            ValidationError: Non-positive amount or unsupported lock period
            NotFoundError: If the account does not exist
        """
        is_valid, parsed_amount, error = validate_amount(amount)
        if not is_valid or parsed_amount is None:
            raise ValidationError(
                error or "Invalid amount", code="invalid_amount", amount=str(amount)
            )

        is_valid, lock_period, error = validate_lock_period(lock_period_months)
        if not is_valid or lock_period is None:
            raise ValidationError(
                error or "Invalid lock period",
                code="invalid_lock_period",
                lock_period_months=lock_period_months,
            )

        account = await self.account_repo.get_for_update(account_id)
        if account is None:
            raise NotFoundError(
                f"Account {account_id} not found", account_id=account_id
            )

        now = self.now()
        stake = await self.stake_repo.create(
            account_id=account.id,
            amount=parsed_amount,
            lock_period_months=lock_period.months,
            apy_rate=lock_period.apy_rate,
            earned_amount=Decimal("0"),
            start_date=now,
            end_date=self.calculator.calculate_maturity(now, lock_period.months),
            is_active=True,
            can_unstake=False,
        )

        await self.account_repo.update(
            account.id, total_staked=account.total_staked + parsed_amount
        )

        self.logger.info(
            "Stake created",
            extra={
                "stake_id": stake.id,
                "account_id": account.id,
                "amount": str(parsed_amount),
                "lock_period_months": lock_period.months,
                "apy_rate": str(lock_period.apy_rate),
            },
        )

        return stake

    async def refresh_unlockable(self, stake: Stake) -> Stake:
        """
        Persist the locked -> unlockable transition once maturity passes.

        Closed and already-unlockable stakes are returned untouched.

        Args:
            stake: Stake to evaluate

        Returns:
            The (possibly updated) stake
        """
        if not stake.is_active or stake.can_unstake:
            return stake

        if not stake.is_mature(self.now()):
            return stake

        updated = await self.stake_repo.update(stake.id, can_unstake=True)
        self.logger.debug(
            "Stake unlockable", extra={"stake_id": stake.id}
        )
        return updated or stake

    async def list_stakes(self, account_id: int) -> list[Stake]:
        """
        List an account's stakes, refreshing unlockability on the way.

        Args:
            account_id: Owner account ID

        Returns:
            Stakes ordered by ID

        Raises:
            NotFoundError: If the account does not exist
        """
        if not await self.account_repo.exists(id=account_id):
            raise NotFoundError(
                f"Account {account_id} not found", account_id=account_id
            )

        stakes = await self.stake_repo.get_by_account(account_id)
        return [await self.refresh_unlockable(stake) for stake in stakes]

    async def unstake(self, stake_id: int) -> Stake:
        """
        Close a matured stake and credit its reward.

        Reward = monthly reward * whole periods since start. The owner's
        total earned grows by the reward, total staked shrinks by the
        principal, and ancestors receive commission on the reward.

        Args:
            stake_id: Stake ID

        Returns:
            Closed stake

        Raises:
            NotFoundError: If the stake does not exist
            StateConflictError: If the stake is closed or still locked
        """
        stake = await self.get_stake(stake_id, lock=True)

        if not stake.is_active:
            raise StateConflictError(
                "Stake is already inactive",
                code="stake_closed",
                stake_id=stake_id,
            )

        stake = await self.refresh_unlockable(stake)
        if not stake.can_unstake:
            raise StateConflictError(
                "Stake cannot be unstaked yet",
                code="stake_locked",
                stake_id=stake_id,
                unlocks_at=stake.end_date.isoformat(),
            )

        account = await self.account_repo.get_for_update(stake.account_id)
        if account is None:
            raise NotFoundError(
                f"Owner {stake.account_id} of stake {stake_id} not found",
                account_id=stake.account_id,
            )

        now = self.now()
        reward = self.calculator.calculate_accrued_reward(
            stake.amount, stake.apy_rate, stake.start_date, now
        )

        closed = await self.stake_repo.update(
            stake.id,
            is_active=False,
            earned_amount=reward,
            closed_at=now,
            close_reason=CloseReason.UNSTAKE.value,
        )
        await self.account_repo.update(
            account.id,
            total_earned=account.total_earned + reward,
            total_staked=account.total_staked - stake.amount,
        )
        await self.earnings_manager.credit_commissions(
            account.id, reward, source_stake_id=stake.id
        )

        self.logger.info(
            "Stake unstaked",
            extra={
                "stake_id": stake.id,
                "account_id": account.id,
                "reward": str(reward),
            },
        )

        return closed or stake

    async def emergency_unstake(self, stake_id: int) -> Stake:
        """
        Close an active stake returning principal only.

        Only available while the platform is paused with emergency
        unstaking switched on. The reward is forfeited (``earned_amount``
        stays 0) and no commission is paid.

        Args:
            stake_id: Stake ID

        Returns:
            Closed stake

        Raises:
            StateConflictError: If emergency unstake is unavailable or the
                stake is already closed
            NotFoundError: If the stake does not exist
        """
        settings_row = await self.settings_repo.get_settings()
        snapshot = settings_row.snapshot()
        if not snapshot.emergency_unstake_available:
            raise StateConflictError(
                "Emergency unstake not available",
                code="emergency_unstake_unavailable",
                is_paused=snapshot.is_paused,
                emergency_unstake_enabled=snapshot.emergency_unstake_enabled,
            )

        stake = await self.get_stake(stake_id, lock=True)
        if not stake.is_active:
            raise StateConflictError(
                "Stake is already inactive",
                code="stake_closed",
                stake_id=stake_id,
            )

        account = await self.account_repo.get_for_update(stake.account_id)
        if account is None:
            raise NotFoundError(
                f"Owner {stake.account_id} of stake {stake_id} not found",
                account_id=stake.account_id,
            )

        closed = await self.stake_repo.update(
            stake.id,
            is_active=False,
            earned_amount=Decimal("0"),
            closed_at=self.now(),
            close_reason=CloseReason.EMERGENCY.value,
        )
        await self.account_repo.update(
            account.id, total_staked=account.total_staked - stake.amount
        )

        self.logger.warning(
            "Emergency unstake",
            extra={
                "stake_id": stake.id,
                "account_id": account.id,
                "principal": str(stake.amount),
            },
        )

        return closed or stake
