"""Pytest configuration and shared fixtures for all tests."""

from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.database import Database
from stakeledger.services.ledger_service import LedgerService

IN_MEMORY_URL = "sqlite+aiosqlite://"


class FakeClock:
    """Controllable time source passed to the ledger as ``clock``."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        self.current += delta if delta is not None else timedelta(**kwargs)
        return self.current

    def set(self, value: datetime) -> datetime:
        self.current = value
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at 2025-01-01 00:00 UTC until advanced."""
    return FakeClock(datetime(2025, 1, 1, tzinfo=UTC))


@pytest.fixture
def make_wallet() -> Callable[[int], str]:
    """Deterministic distinct lower-case wallet addresses."""

    def _make(n: int) -> str:
        return "0x" + f"{n:040x}"

    return _make


@pytest_asyncio.fixture
async def database() -> AsyncIterator[Database]:
    """Fresh in-memory ledger store with tables created."""
    db = Database(IN_MEMORY_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncIterator[AsyncSession]:
    """
    Transactional session for manager-level tests.

    Holds the store for the duration of the test; do not combine with
    the ``ledger`` fixture in the same test.
    """
    async with database.transaction() as session:
        yield session


@pytest_asyncio.fixture
async def ledger(database: Database, clock: FakeClock) -> LedgerService:
    """LedgerService on the in-memory store with the fake clock."""
    return LedgerService(database, clock=clock)


@pytest_asyncio.fixture
async def register_chain(
    ledger: LedgerService, make_wallet: Callable[[int], str]
):
    """
    Factory registering a linear referral chain.

    Returns:
        Coroutine function ``(length, start=1)`` returning the accounts,
        root first.
    """

    async def _register(length: int, start: int = 1):
        accounts = []
        referrer_code = None
        for n in range(start, start + length):
            account = await ledger.register(
                make_wallet(n), referrer_code=referrer_code
            )
            accounts.append(account)
            referrer_code = account.referral_code
        return accounts

    return _register
