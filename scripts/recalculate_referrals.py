#!/usr/bin/env python3
"""
Repair account aggregates.

Usage:
    python scripts/recalculate_referrals.py            # counters only
    python scripts/recalculate_referrals.py --full     # every aggregate
    python scripts/recalculate_referrals.py --full --dry-run
"""

import argparse
import asyncio
import sys

from loguru import logger

from stakeledger.config.settings import settings
from stakeledger.services.ledger_service import LedgerService
from stakeledger.utils.logging import setup_logging


async def main(full: bool, dry_run: bool) -> None:
    """Run the repair pass against settings.database_url."""
    if settings.is_in_memory:
        logger.error(
            "DATABASE_URL points at an in-memory store; there is nothing "
            "to repair"
        )
        sys.exit(1)

    ledger = LedgerService()
    try:
        if not full:
            updated = await ledger.recalculate_referral_counts()
            logger.success(f"Referral counters corrected: {updated}")
            return

        drifts = await ledger.recompute_aggregates(repair=not dry_run)
        for drift in drifts:
            logger.warning(
                f"account={drift.account_id} field={drift.field} "
                f"recorded={drift.recorded} expected={drift.expected}"
            )
        action = "found" if dry_run else "repaired"
        logger.success(f"Aggregate drifts {action}: {len(drifts)}")
    finally:
        await ledger.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--full", action="store_true", help="Recompute every aggregate"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Report drift without fixing"
    )
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.full, args.dry_run))
