"""Integration tests for account registration."""

import re

import pytest
from web3 import Web3

from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.utils.exceptions import (
    DuplicateError,
    NotFoundError,
    ValidationError,
)


class TestRegister:
    """Test wallet registration."""

    @pytest.mark.asyncio
    async def test_register_without_referrer(self, ledger, make_wallet):
        wallet = make_wallet(1)

        account = await ledger.register(wallet)

        assert account.wallet_address == Web3.to_checksum_address(wallet)
        assert account.is_registered is True
        assert account.referrer_id is None
        assert account.total_referrals == 0
        assert re.fullmatch(r"REF[A-Z0-9]{6}", account.referral_code)
        assert await ledger.list_referrals(account.id) == []

    @pytest.mark.asyncio
    async def test_requested_code_used(self, ledger, make_wallet):
        account = await ledger.register(make_wallet(1), referral_code="ALICE01")
        assert account.referral_code == "ALICE01"

    @pytest.mark.asyncio
    async def test_register_with_referrer(self, ledger, make_wallet):
        parent = await ledger.register(make_wallet(1))

        child = await ledger.register(
            make_wallet(2), referrer_code=parent.referral_code
        )

        assert child.referrer_id == parent.id
        assert (await ledger.get_account(parent.id)).total_referrals == 1

    @pytest.mark.asyncio
    async def test_duplicate_wallet_any_case(self, ledger, make_wallet):
        """Same wallet in another letter case is still a duplicate."""
        wallet = "0x" + "ab" * 20
        await ledger.register(wallet)

        with pytest.raises(DuplicateError) as exc_info:
            await ledger.register(Web3.to_checksum_address(wallet))
        assert exc_info.value.code == "wallet_taken"

    @pytest.mark.asyncio
    async def test_duplicate_requested_code(self, ledger, make_wallet):
        await ledger.register(make_wallet(1), referral_code="TAKEN01")

        with pytest.raises(DuplicateError) as exc_info:
            await ledger.register(make_wallet(2), referral_code="TAKEN01")
        assert exc_info.value.code == "referral_code_taken"

    @pytest.mark.asyncio
    async def test_unknown_referrer_leaves_nothing(
        self, ledger, database, make_wallet
    ):
        with pytest.raises(NotFoundError) as exc_info:
            await ledger.register(make_wallet(1), referrer_code="NOSUCHCODE")
        assert exc_info.value.code == "referrer_not_found"

        async with database.session() as session:
            assert await AccountRepository(session).count() == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "wallet,referral_code",
        [("not-a-wallet", None), ("0x1234", None), (None, "bad code!")],
    )
    async def test_validation(self, ledger, make_wallet, wallet, referral_code):
        with pytest.raises(ValidationError):
            await ledger.register(
                wallet or make_wallet(1), referral_code=referral_code
            )

    @pytest.mark.asyncio
    async def test_generated_codes_unique(self, ledger, make_wallet):
        accounts = [await ledger.register(make_wallet(n)) for n in range(1, 21)]
        assert len({a.referral_code for a in accounts}) == 20


class TestAccountLookup:
    """Test account lookups."""

    @pytest.mark.asyncio
    async def test_by_wallet(self, ledger, make_wallet):
        wallet = make_wallet(7)
        account = await ledger.register(wallet)

        found = await ledger.get_account_by_wallet(wallet.upper().replace("0X", "0x"))

        assert found.id == account.id

    @pytest.mark.asyncio
    async def test_missing(self, ledger, make_wallet):
        with pytest.raises(NotFoundError):
            await ledger.get_account(1)
        with pytest.raises(NotFoundError):
            await ledger.get_account_by_wallet(make_wallet(1))
        with pytest.raises(NotFoundError):
            await ledger.list_referrals(1)
        with pytest.raises(NotFoundError):
            await ledger.get_level_counts(1)


class TestLinkTelegram:
    """Test linking a Telegram identity."""

    @pytest.mark.asyncio
    async def test_link(self, ledger, make_wallet):
        account = await ledger.register(make_wallet(1))

        linked = await ledger.link_telegram(account.id, 123456789)

        assert linked.telegram_id == "123456789"
        assert (await ledger.link_telegram(account.id, "123456789")).id == account.id

    @pytest.mark.asyncio
    async def test_taken_by_other_account(self, ledger, make_wallet):
        first = await ledger.register(make_wallet(1))
        second = await ledger.register(make_wallet(2))
        await ledger.link_telegram(first.id, 42)

        with pytest.raises(DuplicateError) as exc_info:
            await ledger.link_telegram(second.id, "42")
        assert exc_info.value.code == "telegram_id_taken"

    @pytest.mark.asyncio
    async def test_invalid_id(self, ledger, make_wallet):
        account = await ledger.register(make_wallet(1))
        with pytest.raises(ValidationError):
            await ledger.link_telegram(account.id, "-5")

    @pytest.mark.asyncio
    async def test_unknown_account(self, ledger):
        with pytest.raises(NotFoundError):
            await ledger.link_telegram(99, 42)
