"""
Base service class.

Provides common functionality for the ledger managers: session access,
an injectable clock and logging with bound service context.
"""

from datetime import datetime

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from stakeledger.utils.datetime_utils import Clock, ensure_utc, utc_now


class BaseService:
    """
    Base service class.

    Managers are constructed per transaction with the session of that
    transaction. They flush but never commit: the caller that opened the
    transaction decides whether all of it lands.
    """

    def __init__(
        self, session: AsyncSession, clock: Clock | None = None
    ) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
            clock: Time source (defaults to the wall clock)
        """
        self.session = session
        self.clock = clock or utc_now
        self.logger = logger.bind(service=self.__class__.__name__)

    def now(self) -> datetime:
        """Current time from the injected clock, as aware UTC."""
        return ensure_utc(self.clock())
