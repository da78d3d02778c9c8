"""Integration tests for aggregate recomputation and drift repair."""

from decimal import Decimal

import pytest

from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.repositories.referral_repository import ReferralRepository
from stakeledger.utils.exceptions import NotFoundError


async def build_history(ledger, clock, register_chain):
    """Chain of four with stakes opened, closed and claimed."""
    a, b, c, d = await register_chain(4)
    first = await ledger.create_stake(d.id, Decimal("1000"), 12)
    await ledger.create_stake(c.id, Decimal("300"), 24)
    clock.set(first.end_date)
    await ledger.unstake(first.id)
    await ledger.claim_referral_earnings(b.id)
    return a, b, c, d


class TestComputeAggregates:
    """Derived totals match incremental ones."""

    @pytest.mark.asyncio
    async def test_matches_incremental(self, ledger, clock, register_chain):
        accounts = await build_history(ledger, clock, register_chain)

        for account in accounts:
            recorded = await ledger.get_account(account.id)
            derived = await ledger.compute_aggregates(account.id)
            assert derived.total_staked == recorded.total_staked
            assert derived.total_earned == recorded.total_earned
            assert derived.referral_earnings == recorded.referral_earnings
            assert derived.total_referrals == recorded.total_referrals

        assert await ledger.recompute_aggregates(repair=False) == []

    @pytest.mark.asyncio
    async def test_expected_values(self, ledger, clock, register_chain):
        a, b, c, d = await build_history(ledger, clock, register_chain)

        # d's 1200 reward: c 12% pending, b 8% claimed, a 6% pending
        assert (await ledger.compute_aggregates(c.id)).referral_earnings == Decimal("144")
        assert (await ledger.compute_aggregates(b.id)).total_earned == Decimal("96")
        assert (await ledger.compute_aggregates(a.id)).referral_earnings == Decimal("72")
        assert (await ledger.compute_aggregates(c.id)).total_staked == Decimal("300")
        assert (await ledger.compute_aggregates(d.id)).total_earned == Decimal("1200")

    @pytest.mark.asyncio
    async def test_unknown_account(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.compute_aggregates(999)


class TestDriftRepair:
    """Corrupted aggregates are detected and repaired."""

    @pytest.mark.asyncio
    async def test_detect_and_repair(
        self, ledger, database, clock, register_chain
    ):
        a, b, c, d = await build_history(ledger, clock, register_chain)
        async with database.transaction() as session:
            repo = AccountRepository(session)
            await repo.update(a.id, total_referrals=5)
            await repo.update(c.id, total_staked=Decimal("1"))
            await repo.update(d.id, total_earned=Decimal("7"))

        drifts = await ledger.recompute_aggregates(repair=False)

        assert {(x.account_id, x.field) for x in drifts} == {
            (a.id, "total_referrals"),
            (c.id, "total_staked"),
            (d.id, "total_earned"),
        }
        [staked] = [x for x in drifts if x.field == "total_staked"]
        assert staked.recorded == Decimal("1")
        assert staked.expected == Decimal("300")

        # dry run left the values alone
        assert (await ledger.get_account(a.id)).total_referrals == 5

        repaired = await ledger.recompute_aggregates()
        assert len(repaired) == 3
        assert await ledger.recompute_aggregates(repair=False) == []
        assert (await ledger.get_account(a.id)).total_referrals == 1
        assert (await ledger.get_account(c.id)).total_staked == Decimal("300")
        assert (await ledger.get_account(d.id)).total_earned == Decimal("1200")

    @pytest.mark.asyncio
    async def test_edge_total_repaired(
        self, ledger, database, clock, register_chain
    ):
        _, b, c, d = await build_history(ledger, clock, register_chain)
        [edge] = [
            e for e in await ledger.list_referrals(c.id) if e.referred_id == d.id
        ]
        async with database.transaction() as session:
            await ReferralRepository(session).update(
                edge.id, total_earned=Decimal("0")
            )

        drifts = await ledger.recompute_aggregates()

        assert [(x.account_id, x.field) for x in drifts] == [
            (c.id, f"referral:{edge.id}.total_earned")
        ]
        [fixed] = [
            e for e in await ledger.list_referrals(c.id) if e.referred_id == d.id
        ]
        assert fixed.total_earned == Decimal("144")

    @pytest.mark.asyncio
    async def test_recalculate_referral_counts(
        self, ledger, database, register_chain
    ):
        """Counter repair touches only drifted accounts."""
        a, b, c = await register_chain(3)
        async with database.transaction() as session:
            repo = AccountRepository(session)
            await repo.update(a.id, total_referrals=0)
            await repo.update(c.id, total_referrals=3)

        assert await ledger.recalculate_referral_counts() == 2

        assert (await ledger.get_account(a.id)).total_referrals == 1
        assert (await ledger.get_account(b.id)).total_referrals == 1
        assert (await ledger.get_account(c.id)).total_referrals == 0
        assert await ledger.recalculate_referral_counts() == 0
