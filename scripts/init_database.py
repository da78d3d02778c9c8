#!/usr/bin/env python3
"""Initialize ledger database tables."""

import asyncio
import sys

from loguru import logger

from stakeledger.config.settings import settings
from stakeledger.database import Database
from stakeledger.utils.logging import setup_logging


async def init_database() -> None:
    """Create all ledger tables."""
    if settings.is_in_memory:
        logger.error(
            "DATABASE_URL points at an in-memory store; tables would vanish "
            "on exit"
        )
        sys.exit(1)

    logger.info("Connecting to database...")
    database = Database()
    try:
        logger.info("Creating tables (checkfirst=True)...")
        await database.create_all()
    finally:
        await database.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database())
