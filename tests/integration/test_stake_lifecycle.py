"""Integration tests for the stake lifecycle."""

from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from stakeledger.config.business_constants import PERIOD
from stakeledger.models.enums import CloseReason, StakeState
from stakeledger.utils.exceptions import (
    NotFoundError,
    StateConflictError,
    ValidationError,
)


@pytest_asyncio.fixture
async def owner(ledger, make_wallet):
    return await ledger.register(make_wallet(1))


class TestCreateStake:
    """Test stake creation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "months,rate", [(12, Decimal("10")), (24, Decimal("12")), (36, Decimal("15"))]
    )
    async def test_terms(self, ledger, owner, clock, months, rate):
        """Rate and maturity are fixed at creation."""
        stake = await ledger.create_stake(owner.id, Decimal("1000"), months)

        assert stake.apy_rate == rate
        assert stake.start_date == clock()
        assert stake.end_date == clock() + PERIOD * months
        assert stake.state is StakeState.LOCKED
        assert stake.earned_amount == Decimal("0")
        assert stake.monthly_reward == Decimal("1000") * rate / 100

    @pytest.mark.asyncio
    async def test_total_staked_grows(self, ledger, owner):
        await ledger.create_stake(owner.id, Decimal("1000"), 12)
        await ledger.create_stake(owner.id, "250.5", 24)

        account = await ledger.get_account(owner.id)
        assert account.total_staked == Decimal("1250.5")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), "abc"])
    async def test_invalid_amount(self, ledger, owner, amount):
        with pytest.raises(ValidationError) as exc_info:
            await ledger.create_stake(owner.id, amount, 12)
        assert exc_info.value.code == "invalid_amount"

        assert await ledger.list_stakes(owner.id) == []

    @pytest.mark.asyncio
    async def test_unsupported_period(self, ledger, owner):
        with pytest.raises(ValidationError) as exc_info:
            await ledger.create_stake(owner.id, Decimal("1000"), 6)
        assert exc_info.value.code == "invalid_lock_period"

    @pytest.mark.asyncio
    async def test_unknown_account(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.create_stake(999, Decimal("1000"), 12)


class TestAmountPrecision:
    """Amounts survive storage exactly at the edges of their range."""

    LARGEST = Decimal("9999999999.99999999")

    @pytest.mark.asyncio
    async def test_largest_principal_round_trips(self, ledger, owner):
        stake = await ledger.create_stake(owner.id, self.LARGEST, 12)

        [listed] = await ledger.list_stakes(owner.id)
        assert listed.id == stake.id
        assert listed.amount == self.LARGEST
        assert (await ledger.get_account(owner.id)).total_staked == self.LARGEST

    @pytest.mark.asyncio
    async def test_smallest_unit_round_trips(self, ledger, owner):
        await ledger.create_stake(owner.id, Decimal("0.00000001"), 12)
        await ledger.create_stake(owner.id, Decimal("1234567.12345678"), 24)

        amounts = [s.amount for s in await ledger.list_stakes(owner.id)]
        assert sorted(amounts) == [
            Decimal("0.00000001"),
            Decimal("1234567.12345678"),
        ]
        assert (await ledger.get_account(owner.id)).total_staked == Decimal(
            "1234567.12345679"
        )

    @pytest.mark.asyncio
    async def test_above_largest_rejected(self, ledger, owner):
        with pytest.raises(ValidationError) as exc_info:
            await ledger.create_stake(owner.id, Decimal("10000000000"), 12)
        assert exc_info.value.code == "invalid_amount"

    @pytest.mark.asyncio
    async def test_largest_reward_fits(self, ledger, owner, clock):
        """36 periods at 15% on the largest principal is stored exactly."""
        stake = await ledger.create_stake(owner.id, self.LARGEST, 36)
        clock.set(stake.end_date)

        closed = await ledger.unstake(stake.id)

        expected = Decimal("53999999999.99999994")
        assert closed.earned_amount == expected
        [listed] = await ledger.list_stakes(owner.id)
        assert listed.earned_amount == expected
        account = await ledger.get_account(owner.id)
        assert account.total_earned == expected
        assert account.total_staked == Decimal("0")

        aggregates = await ledger.compute_aggregates(owner.id)
        assert aggregates.total_earned == expected


class TestUnlockable:
    """Test the locked -> unlockable transition."""

    @pytest.mark.asyncio
    async def test_exactly_at_maturity(self, ledger, owner, clock):
        """Unlockable at maturity, not one second before."""
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)

        clock.set(stake.end_date - timedelta(seconds=1))
        [listed] = await ledger.list_stakes(owner.id)
        assert listed.state is StakeState.LOCKED

        clock.set(stake.end_date)
        [listed] = await ledger.list_stakes(owner.id)
        assert listed.state is StakeState.UNLOCKABLE
        assert listed.can_unstake is True

    @pytest.mark.asyncio
    async def test_monotonic(self, ledger, owner, clock):
        """Moving the clock back does not re-lock a stake."""
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)

        clock.set(stake.end_date + timedelta(days=1))
        await ledger.list_stakes(owner.id)

        clock.set(stake.start_date)
        [listed] = await ledger.list_stakes(owner.id)
        assert listed.can_unstake is True


class TestUnstake:
    """Test normal unstake."""

    @pytest.mark.asyncio
    async def test_locked_stake_rejected(self, ledger, owner, clock):
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)
        clock.advance(days=359)

        with pytest.raises(StateConflictError) as exc_info:
            await ledger.unstake(stake.id)
        assert exc_info.value.code == "stake_locked"

    @pytest.mark.asyncio
    async def test_unstake_at_maturity(self, ledger, owner, clock):
        """1000 at 10% for 12 periods earns 1200."""
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)
        clock.set(stake.end_date)

        closed = await ledger.unstake(stake.id)

        assert closed.state is StakeState.CLOSED
        assert closed.close_reason == CloseReason.UNSTAKE.value
        assert closed.earned_amount == Decimal("1200")
        assert closed.closed_at == clock()

        account = await ledger.get_account(owner.id)
        assert account.total_earned == Decimal("1200")
        assert account.total_staked == Decimal("0")

    @pytest.mark.asyncio
    async def test_partial_period_truncated(self, ledger, owner, clock):
        """Half a period past maturity still pays 12 periods."""
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)
        clock.set(stake.end_date + timedelta(days=15))

        closed = await ledger.unstake(stake.id)

        assert closed.earned_amount == Decimal("1200")

    @pytest.mark.asyncio
    async def test_periods_past_maturity_accrue(self, ledger, owner, clock):
        """Whole periods after maturity keep accruing."""
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)
        clock.set(stake.start_date + PERIOD * 13)

        closed = await ledger.unstake(stake.id)

        assert closed.earned_amount == Decimal("1300")

    @pytest.mark.asyncio
    async def test_double_unstake_rejected(self, ledger, owner, clock):
        """Second unstake fails and changes nothing."""
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)
        clock.set(stake.end_date)
        await ledger.unstake(stake.id)
        before = await ledger.get_account(owner.id)

        clock.advance(PERIOD * 5)
        with pytest.raises(StateConflictError) as exc_info:
            await ledger.unstake(stake.id)
        assert exc_info.value.code == "stake_closed"

        after = await ledger.get_account(owner.id)
        [listed] = await ledger.list_stakes(owner.id)
        assert after.total_earned == before.total_earned
        assert listed.earned_amount == Decimal("1200")

    @pytest.mark.asyncio
    async def test_unknown_stake(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.unstake(12345)

    @pytest.mark.asyncio
    async def test_other_stakes_untouched(self, ledger, owner, clock):
        short = await ledger.create_stake(owner.id, Decimal("1000"), 12)
        await ledger.create_stake(owner.id, Decimal("500"), 24)
        clock.set(short.end_date)

        await ledger.unstake(short.id)

        stakes = await ledger.list_stakes(owner.id)
        assert [s.state for s in stakes] == [StakeState.CLOSED, StakeState.LOCKED]
        account = await ledger.get_account(owner.id)
        assert account.total_staked == Decimal("500")


class TestEmergencyUnstake:
    """Test emergency unstake gating and effects."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "paused,enabled", [(False, False), (True, False), (False, True)]
    )
    async def test_rejected_unless_both_flags(
        self, ledger, owner, paused, enabled
    ):
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)
        await ledger.update_settings(
            is_paused=paused, emergency_unstake_enabled=enabled
        )

        with pytest.raises(StateConflictError) as exc_info:
            await ledger.emergency_unstake(stake.id)
        assert exc_info.value.code == "emergency_unstake_unavailable"

        [listed] = await ledger.list_stakes(owner.id)
        assert listed.state is StakeState.LOCKED

    @pytest.mark.asyncio
    async def test_settings_checked_before_stake(self, ledger):
        """A missing stake reports the gate first, then not-found."""
        with pytest.raises(StateConflictError):
            await ledger.emergency_unstake(404)

        await ledger.update_settings(is_paused=True, emergency_unstake_enabled=True)
        with pytest.raises(NotFoundError):
            await ledger.emergency_unstake(404)

    @pytest.mark.asyncio
    async def test_principal_only(self, ledger, owner, clock):
        """Locked stake closes with zero reward while paused."""
        stake = await ledger.create_stake(owner.id, Decimal("1000"), 12)
        clock.advance(PERIOD * 3)
        await ledger.update_settings(is_paused=True, emergency_unstake_enabled=True)

        closed = await ledger.emergency_unstake(stake.id)

        assert closed.state is StakeState.CLOSED
        assert closed.close_reason == CloseReason.EMERGENCY.value
        assert closed.earned_amount == Decimal("0")

        account = await ledger.get_account(owner.id)
        assert account.total_staked == Decimal("0")
        assert account.total_earned == Decimal("0")

        with pytest.raises(StateConflictError) as exc_info:
            await ledger.emergency_unstake(stake.id)
        assert exc_info.value.code == "stake_closed"

        with pytest.raises(StateConflictError):
            await ledger.unstake(stake.id)


class TestProjection:
    """Test the dashboard projection through the ledger."""

    @pytest.mark.asyncio
    async def test_project_stake(self, ledger):
        projection = ledger.project_stake("1000", 24)

        assert projection.monthly_reward == Decimal("120")
        assert projection.total_rewards == Decimal("2880")
        assert projection.total_payout == Decimal("3880")

    @pytest.mark.asyncio
    async def test_project_invalid_amount(self, ledger):
        with pytest.raises(ValidationError):
            ledger.project_stake("-1", 12)
