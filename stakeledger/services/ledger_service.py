"""
Ledger service.

Entry point for the surrounding service layer. Each public operation runs
in one database transaction while holding the per-account locks of every
account it writes, so concurrent requests on the same accounts never
interleave and a failed operation leaves no partial change behind.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.database import Database
from stakeledger.models.account import Account
from stakeledger.models.global_settings import SettingsSnapshot
from stakeledger.models.referral import Referral
from stakeledger.models.stake import Stake
from stakeledger.repositories.account_repository import AccountRepository
from stakeledger.repositories.global_settings_repository import (
    GlobalSettingsRepository,
)
from stakeledger.repositories.stake_repository import StakeRepository
from stakeledger.services.account.registration import (
    AccountRegistrationService,
    normalize_wallet,
)
from stakeledger.services.accounting_service import (
    AccountAggregates,
    AccountingService,
    AggregateDrift,
)
from stakeledger.services.referral.chain_manager import ReferralChainManager
from stakeledger.services.referral.config import iter_commission_rates
from stakeledger.services.referral.earnings_manager import (
    ClaimResult,
    ReferralEarningsManager,
)
from stakeledger.services.referral.statistics import (
    NetworkSummary,
    ReferralStatisticsManager,
)
from stakeledger.services.stake.lifecycle import StakeLifecycleManager
from stakeledger.services.stake.reward_calculator import (
    StakeProjection,
    StakeRewardCalculator,
)
from stakeledger.utils.datetime_utils import Clock, ensure_utc, utc_now
from stakeledger.utils.exceptions import ValidationError, is_client_error
from stakeledger.utils.locks import KeyedLock, account_key, wallet_key
from stakeledger.validators.common import validate_amount

SETTINGS_LOCK_KEY = "settings"


class LedgerService:
    """
    Referral network and staking ledger.

    Example:
        ledger = LedgerService()
        await ledger.initialize()
        alice = await ledger.register("0x...")
        bob = await ledger.register("0x...", referrer_code=alice.referral_code)
        stake = await ledger.create_stake(bob.id, Decimal("1000"), 12)
    """

    def __init__(
        self, database: Database | None = None, clock: Clock | None = None
    ) -> None:
        """
        Initialize ledger.

        Args:
            database: Store backend (defaults to settings.database_url)
            clock: Time source (defaults to the wall clock)
        """
        self.database = database or Database()
        self.clock = clock or utc_now
        self.locks = KeyedLock()
        self.calculator = StakeRewardCalculator()
        self.logger = logger.bind(service=self.__class__.__name__)

    async def initialize(self) -> None:
        """Create the ledger tables if they do not exist."""
        await self.database.create_all()

    async def close(self) -> None:
        """Release database connections."""
        await self.database.dispose()

    @asynccontextmanager
    async def _write(
        self, operation: str, *lock_keys: str
    ) -> AsyncIterator[AsyncSession]:
        async with self.locks.acquire(*lock_keys):
            try:
                async with self.database.transaction() as session:
                    yield session
            except Exception as e:
                self._log_failure(operation, e)
                raise

    @asynccontextmanager
    async def _read(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.database.session() as session:
                yield session
        except Exception as e:
            self._log_failure(operation, e)
            raise

    def _log_failure(self, operation: str, error: Exception) -> None:
        if is_client_error(error):
            self.logger.warning(
                "Operation rejected",
                extra={
                    "operation": operation,
                    "code": getattr(error, "code", None),
                    "reason": str(error),
                },
            )
        else:
            self.logger.exception(
                "Operation failed",
                extra={"operation": operation},
            )

    # Accounts

    async def register(
        self,
        wallet_address: str,
        referral_code: str | None = None,
        referrer_code: str | None = None,
    ) -> Account:
        """
        Register a wallet, optionally under the owner of ``referrer_code``.

        Raises:
            ValidationError: Malformed wallet or codes
            DuplicateError: Wallet or requested code already taken
            NotFoundError: Unknown referrer code
        """
        try:
            wallet = normalize_wallet(wallet_address)
        except ValidationError as e:
            self._log_failure("register", e)
            raise

        keys = [wallet_key(wallet)]
        if referrer_code is not None:
            async with self._read("register") as session:
                referrer = await AccountRegistrationService(
                    session, self.clock
                ).resolve_referrer(referrer_code)
            keys.append(account_key(referrer.id))

        async with self._write("register", *keys) as session:
            return await AccountRegistrationService(
                session, self.clock
            ).register(
                wallet,
                referral_code=referral_code,
                referrer_code=referrer_code,
            )

    async def get_account(self, account_id: int) -> Account:
        """Get account by ID (NotFoundError if missing)."""
        async with self._read("get_account") as session:
            return await AccountRegistrationService(
                session, self.clock
            ).get_account(account_id)

    async def get_account_by_wallet(self, wallet_address: str) -> Account:
        """Get account by wallet address (NotFoundError if missing)."""
        async with self._read("get_account_by_wallet") as session:
            return await AccountRegistrationService(
                session, self.clock
            ).get_account_by_wallet(wallet_address)

    async def link_telegram(
        self, account_id: int, telegram_id: str | int
    ) -> Account:
        """Attach a Telegram identity to an account."""
        async with self._write(
            "link_telegram", account_key(account_id)
        ) as session:
            return await AccountRegistrationService(
                session, self.clock
            ).link_telegram(account_id, telegram_id)

    # Stakes

    async def create_stake(
        self,
        account_id: int,
        amount: Decimal | str | int,
        lock_period_months: int,
    ) -> Stake:
        """Open a locked stake for an account."""
        async with self._write(
            "create_stake", account_key(account_id)
        ) as session:
            return await StakeLifecycleManager(
                session, self.clock, self.calculator
            ).create_stake(account_id, amount, lock_period_months)

    async def list_stakes(self, account_id: int) -> list[Stake]:
        """List an account's stakes with unlockability refreshed."""
        async with self._write(
            "list_stakes", account_key(account_id)
        ) as session:
            return await StakeLifecycleManager(
                session, self.clock, self.calculator
            ).list_stakes(account_id)

    async def unstake(self, stake_id: int) -> Stake:
        """
        Close a matured stake, paying its reward and upline commission.

        Locks the owner and every ancestor that receives commission.
        """
        keys: list[str] = []
        async with self._read("unstake") as session:
            stake = await StakeRepository(session).get_by_id(stake_id)
            if stake is not None:
                keys.append(account_key(stake.account_id))
                chain = await ReferralChainManager(
                    session, self.clock
                ).get_referral_chain(stake.account_id)
                keys.extend(account_key(ancestor.id) for ancestor in chain)

        async with self._write("unstake", *keys) as session:
            return await StakeLifecycleManager(
                session, self.clock, self.calculator
            ).unstake(stake_id)

    async def emergency_unstake(self, stake_id: int) -> Stake:
        """Return principal only while emergency unstaking is enabled."""
        keys: list[str] = []
        async with self._read("emergency_unstake") as session:
            stake = await StakeRepository(session).get_by_id(stake_id)
            if stake is not None:
                keys.append(account_key(stake.account_id))

        async with self._write("emergency_unstake", *keys) as session:
            return await StakeLifecycleManager(
                session, self.clock, self.calculator
            ).emergency_unstake(stake_id)

    def project_stake(
        self, amount: Decimal | str | int, lock_period_months: int
    ) -> StakeProjection:
        """
        Project a stake held to maturity (no state is touched).

        Raises:
            ValidationError: Invalid amount or unsupported lock period
        """
        is_valid, parsed_amount, error = validate_amount(amount)
        if not is_valid or parsed_amount is None:
            raise ValidationError(
                error or "Invalid amount", code="invalid_amount"
            )
        return self.calculator.project(parsed_amount, lock_period_months)

    # Referral network

    async def claim_referral_earnings(self, account_id: int) -> ClaimResult:
        """Fold pending referral earnings into total earned."""
        async with self._write(
            "claim_referral_earnings", account_key(account_id)
        ) as session:
            return await ReferralEarningsManager(
                session, self.clock
            ).claim(account_id)

    async def get_pending_referral_earnings(self, account_id: int) -> Decimal:
        """Claimable referral earnings of an account."""
        async with self._read("get_pending_referral_earnings") as session:
            return await ReferralEarningsManager(
                session, self.clock
            ).get_pending_amount(account_id)

    async def list_referrals(self, account_id: int) -> list[Referral]:
        """Edges where the account is the referrer."""
        async with self._read("list_referrals") as session:
            return await AccountRegistrationService(
                session, self.clock
            ).list_referrals(account_id)

    async def get_referral_chain(self, account_id: int) -> list[Account]:
        """Ancestors of an account, direct referrer first."""
        async with self._read("get_referral_chain") as session:
            return await ReferralChainManager(
                session, self.clock
            ).get_referral_chain(account_id)

    async def get_level_counts(self, account_id: int) -> dict[int, int]:
        """Downline size per level, all levels present."""
        async with self._read("get_level_counts") as session:
            await AccountRegistrationService(session, self.clock).get_account(
                account_id
            )
            return await ReferralStatisticsManager(session).get_level_counts(
                account_id
            )

    async def get_network_summary(self, account_id: int) -> NetworkSummary:
        """Downline overview with commission earned per account."""
        async with self._read("get_network_summary") as session:
            await AccountRegistrationService(session, self.clock).get_account(
                account_id
            )
            return await ReferralStatisticsManager(
                session
            ).get_network_summary(account_id)

    @staticmethod
    def commission_rates() -> list[tuple[int, Decimal]]:
        """Commission rate per level, level 1 first."""
        return list(iter_commission_rates())

    # Settings

    async def get_settings(self) -> SettingsSnapshot:
        """Consistent snapshot of the operational switches."""
        async with self._write("get_settings") as session:
            row = await GlobalSettingsRepository(session).get_settings()
            return row.snapshot()

    async def update_settings(
        self,
        is_paused: bool | None = None,
        emergency_unstake_enabled: bool | None = None,
    ) -> SettingsSnapshot:
        """
        Change operational switches atomically.

        Args:
            is_paused: New pause flag (unchanged when None)
            emergency_unstake_enabled: New emergency flag (unchanged when None)

        Returns:
            Snapshot after the update

        Raises:
            ValidationError: If a flag is not a bool
        """
        data: dict[str, object] = {}
        for name, value in (
            ("is_paused", is_paused),
            ("emergency_unstake_enabled", emergency_unstake_enabled),
        ):
            if value is None:
                continue
            if not isinstance(value, bool):
                raise ValidationError(
                    f"{name} must be a boolean", code="invalid_setting"
                )
            data[name] = value

        async with self._write("update_settings", SETTINGS_LOCK_KEY) as session:
            repo = GlobalSettingsRepository(session)
            row = await repo.update_settings(
                **data, last_updated=ensure_utc(self.clock())
            )
            snapshot = row.snapshot()

        self.logger.info(
            "Settings updated",
            extra={
                "is_paused": snapshot.is_paused,
                "emergency_unstake_enabled": snapshot.emergency_unstake_enabled,
            },
        )
        return snapshot

    # Accounting

    async def compute_aggregates(self, account_id: int) -> AccountAggregates:
        """Derive an account's totals from raw records."""
        async with self._read("compute_aggregates") as session:
            return await AccountingService(
                session, self.clock
            ).compute_aggregates(account_id)

    async def recompute_aggregates(
        self, repair: bool = True
    ) -> list[AggregateDrift]:
        """Check (and by default repair) every account's aggregates."""
        keys = await self._all_account_keys()
        async with self._write("recompute_aggregates", *keys) as session:
            return await AccountingService(
                session, self.clock
            ).recompute_aggregates(repair=repair)

    async def recalculate_referral_counts(self) -> int:
        """Reset direct-referral counters from level-1 edges."""
        keys = await self._all_account_keys()
        async with self._write(
            "recalculate_referral_counts", *keys
        ) as session:
            return await AccountingService(
                session, self.clock
            ).recalculate_referral_counts()

    async def _all_account_keys(self) -> list[str]:
        async with self._read("list_accounts") as session:
            ids = await AccountRepository(session).get_all_ids()
        return [account_key(account_id) for account_id in ids]
