"""
Keyed asyncio locks.

Serializes ledger mutations per account (or per wallet during
registration) without a global lock.
"""

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager


def account_key(account_id: int) -> str:
    """Lock key for an account."""
    return f"account:{account_id}"


def wallet_key(wallet_address: str) -> str:
    """Lock key for a wallet address (registration)."""
    return f"wallet:{wallet_address.lower()}"


class KeyedLock:
    """
    Registry of one ``asyncio.Lock`` per key.

    Multiple keys are always acquired in sorted order and released in
    reverse, so two callers locking overlapping key sets cannot deadlock.

    Example:
        locks = KeyedLock()
        async with locks.acquire(account_key(1), account_key(7)):
            ...
    """

    def __init__(self) -> None:
        """Initialize empty lock registry."""
        self._locks: dict[Hashable, asyncio.Lock] = {}
        # holders + waiters per key; the entry goes when it drops to 0
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        return len(self._locks)

    def _checkout(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
            self._users[key] = 0
        self._users[key] += 1
        return lock

    def _checkin(self, key: Hashable) -> None:
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    def locked(self, key: Hashable) -> bool:
        """Check whether ``key`` is currently held."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def acquire(self, *keys: Hashable) -> AsyncIterator[None]:
        """
        Hold the locks for all ``keys`` for the duration of the block.

        Duplicate keys are collapsed. Calling with no keys is a no-op.
        A key's lock is dropped from the registry once nobody holds or
        waits for it.

        Args:
            *keys: Lock keys
        """
        ordered = sorted(set(keys), key=str)
        checked_out: list[Hashable] = []
        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                checked_out.append(key)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in checked_out:
                self._checkin(key)
