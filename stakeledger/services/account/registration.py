"""
Account registration service.

Registers wallets, assigns referral codes and hooks new accounts into the
referral network.
"""

import secrets
import string

from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.config.settings import settings
from stakeledger.models.account import Account
from stakeledger.models.referral import Referral
from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.repositories.referral_repository import ReferralRepository
from stakeledger.services.base_service import BaseService
from stakeledger.services.referral.chain_manager import ReferralChainManager
from stakeledger.utils.datetime_utils import Clock
from stakeledger.utils.exceptions import (
    DuplicateError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from stakeledger.validators.common import (
    validate_referral_code,
    validate_telegram_id,
    validate_wallet_address,
)

CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_CODE_ATTEMPTS = 10


def normalize_wallet(wallet_address: str) -> str:
    """
    Validate a wallet address and return its checksummed form.

    Raises:
        ValidationError: If the address is malformed
    """
    is_valid, wallet, error = validate_wallet_address(wallet_address)
    if not is_valid or wallet is None:
        raise ValidationError(
            error or "Invalid wallet address",
            code="invalid_wallet_address",
        )
    return wallet


def generate_referral_code(
    prefix: str | None = None, length: int | None = None
) -> str:
    """
    Generate a random referral code, e.g. ``REF7K2QZD``.

    Args:
        prefix: Code prefix (defaults to settings)
        length: Number of random characters (defaults to settings)

    Returns:
        Referral code
    """
    prefix = settings.referral_code_prefix if prefix is None else prefix
    length = settings.referral_code_length if length is None else length
    return prefix + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


class AccountRegistrationService(BaseService):
    """Account registration and identity operations."""

    def __init__(
        self, session: AsyncSession, clock: Clock | None = None
    ) -> None:
        """Initialize registration service."""
        super().__init__(session, clock)
        self.account_repo = AccountRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.chain_manager = ReferralChainManager(session, clock)

    async def get_account(self, account_id: int) -> Account:
        """
        Get account by ID.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = await self.account_repo.get_by_id(account_id)
        if account is None:
            raise NotFoundError(
                f"Account {account_id} not found", account_id=account_id
            )
        return account

    async def get_account_by_wallet(self, wallet_address: str) -> Account:
        """
        Get account by wallet address (any letter case).

        Raises:
            ValidationError: If the address is malformed
            NotFoundError: If no account uses the wallet
        """
        wallet = normalize_wallet(wallet_address)
        account = await self.account_repo.get_by_wallet_address(wallet)
        if account is None:
            raise NotFoundError(
                f"No account for wallet {wallet}",
                code="account_not_found",
                wallet_address=wallet,
            )
        return account

    async def resolve_referrer(self, referrer_code: str) -> Account:
        """
        Find the account owning a referral code.

        Raises:
            ValidationError: If the code is malformed
            NotFoundError: If no account owns the code
        """
        is_valid, code, error = validate_referral_code(referrer_code)
        if not is_valid or code is None:
            raise ValidationError(
                error or "Invalid referrer code",
                code="invalid_referrer_code",
            )

        referrer = await self.account_repo.get_by_referral_code(code)
        if referrer is None:
            raise NotFoundError(
                f"Referral code {code} not found",
                code="referrer_not_found",
                referrer_code=code,
            )
        return referrer

    async def register(
        self,
        wallet_address: str,
        referral_code: str | None = None,
        referrer_code: str | None = None,
    ) -> Account:
        """
        Register a wallet and link it under its referrer.

        Every check runs before the first write, so a rejected
        registration leaves no account behind.

        Args:
            wallet_address: EVM wallet address
            referral_code: Requested own code (generated when omitted)
            referrer_code: Code of the sponsoring account, if any

        Returns:
            Created account

        Raises:
            ValidationError: Malformed wallet or code
            DuplicateError: Wallet or requested code already registered
            NotFoundError: Unknown referrer code
        """
        wallet = normalize_wallet(wallet_address)

        requested_code: str | None = None
        if referral_code is not None:
            is_valid, requested_code, error = validate_referral_code(
                referral_code
            )
            if not is_valid:
                raise ValidationError(
                    error or "Invalid referral code",
                    code="invalid_referral_code",
                )

        if await self.account_repo.get_by_wallet_address(wallet) is not None:
            raise DuplicateError(
                f"Wallet {wallet} is already registered",
                code="wallet_taken",
                wallet_address=wallet,
            )

        if requested_code is not None:
            if await self.account_repo.exists(referral_code=requested_code):
                raise DuplicateError(
                    f"Referral code {requested_code} is already taken",
                    code="referral_code_taken",
                    referral_code=requested_code,
                )

        referrer: Account | None = None
        if referrer_code is not None:
            referrer = await self.resolve_referrer(referrer_code)

        code = requested_code or await self._generate_unique_code()
        now = self.now()

        account = await self.account_repo.create(
            wallet_address=wallet,
            referral_code=code,
            referrer_id=referrer.id if referrer else None,
            is_registered=True,
            created_at=now,
            updated_at=now,
        )

        if referrer is not None:
            await self.chain_manager.link_new_account(account.id, referrer.id)

        self.logger.info(
            "Account registered",
            extra={
                "account_id": account.id,
                "wallet_address": wallet,
                "referrer_id": referrer.id if referrer else None,
            },
        )

        return account

    async def link_telegram(
        self, account_id: int, telegram_id: str | int
    ) -> Account:
        """
        Attach a Telegram identity to an account.

        Re-linking the same ID to the same account is a no-op.

        Args:
            account_id: Account ID
            telegram_id: Telegram user ID

        Returns:
            Updated account

        Raises:
            ValidationError: If the ID is not a positive integer
            NotFoundError: If the account does not exist
            DuplicateError: If the ID belongs to another account
        """
        is_valid, normalized, error = validate_telegram_id(telegram_id)
        if not is_valid or normalized is None:
            raise ValidationError(
                error or "Invalid Telegram ID", code="invalid_telegram_id"
            )

        account = await self.get_account(account_id)

        owner = await self.account_repo.get_by_telegram_id(normalized)
        if owner is not None and owner.id != account.id:
            raise DuplicateError(
                "Telegram ID is linked to another account",
                code="telegram_id_taken",
                account_id=account_id,
            )
        if account.telegram_id == normalized:
            return account

        updated = await self.account_repo.update(
            account.id, telegram_id=normalized, updated_at=self.now()
        )
        self.logger.info(
            "Telegram linked",
            extra={"account_id": account.id},
        )
        return updated or account

    async def list_referrals(self, account_id: int) -> list[Referral]:
        """
        List edges where the account is the referrer, all levels.

        Raises:
            NotFoundError: If the account does not exist
        """
        await self.get_account(account_id)
        return await self.referral_repo.get_by_referrer(account_id)

    async def _generate_unique_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_referral_code()
            if not await self.account_repo.exists(referral_code=code):
                return code
        raise LedgerError(
            "Could not generate a unique referral code",
            code="referral_code_exhausted",
        )
