#!/usr/bin/env python3
"""
Record the trading result of a date.

Usage:
    python scripts/record_trading_result.py 2.5 --date 2024-06-01
    python scripts/record_trading_result.py -- -1.2 --description "Bad day"
"""

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from payout.config.database import async_session_maker, engine
from payout.services.trading_result_service import TradingResultService
from payout.utils.exceptions import DistributionError

# Configure logger
logger.remove()
logger.add(sys.stderr, level="INFO", format="{time:HH:mm:ss} | {level} | {message}")


async def record(
    profit_percent: str,
    trading_date: str,
    description: str | None,
    admin_id: int | None,
) -> int:
    """Record a trading result and return its ID."""
    try:
        async with async_session_maker() as session:
            result = await TradingResultService(session).record_result(
                profit_percent=profit_percent,
                trading_date=trading_date,
                description=description,
                admin_id=admin_id,
            )
            return result.id
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Record a trading result")
    parser.add_argument("profit_percent", help="Signed percentage, e.g. 2.5 or -1")
    parser.add_argument(
        "--date",
        default=date.today().isoformat(),
        help="Trading date (YYYY-MM-DD, default today)",
    )
    parser.add_argument("--description", default=None, help="Operator note")
    parser.add_argument("--admin-id", type=int, default=None, help="Operator ID")
    args = parser.parse_args()

    try:
        result_id = asyncio.run(
            record(args.profit_percent, args.date, args.description, args.admin_id)
        )
    except DistributionError as e:
        logger.error(str(e))
        sys.exit(1)

    logger.success(f"Trading result {result_id} recorded for {args.date}")


if __name__ == "__main__":
    main()
