#!/usr/bin/env python3
"""
Distribute a trading result, or check its ledger.

Usage:
    python scripts/distribute_profit.py 42               # Distribute result 42
    python scripts/distribute_profit.py --pending        # Distribute every pending result
    python scripts/distribute_profit.py 42 --reconcile   # Check ledger vs. progress
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import redis.asyncio as redis
from loguru import logger
from redis.exceptions import RedisError

from payout.config.database import async_session_maker, engine
from payout.config.logging import setup_logging
from payout.config.settings import settings
from payout.services.distribution.runner import DistributionRunner
from payout.services.trading_result_service import TradingResultService
from payout.utils.exceptions import DistributionError


async def _redis_client() -> redis.Redis | None:
    """Redis client for the lock, or None to lock in-process."""
    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )
    try:
        await client.ping()
    except RedisError as e:
        logger.warning(f"Redis unavailable, using process-local lock: {e}")
        await client.aclose()
        return None
    return client


async def distribute(trading_result_ids: list[int], pending: bool) -> None:
    redis_client = await _redis_client()
    try:
        if pending:
            async with async_session_maker() as session:
                results = await TradingResultService(session).get_pending_results()
                trading_result_ids = [result.id for result in results]
            logger.info(f"{len(trading_result_ids)} pending trading result(s)")

        runner = DistributionRunner(async_session_maker, redis_client=redis_client)
        for trading_result_id in trading_result_ids:
            summary = await runner.run(trading_result_id)
            for key, value in summary.as_dict().items():
                logger.info(f"  {key}: {value}")
    finally:
        if redis_client:
            await redis_client.aclose()
        await engine.dispose()


async def reconcile(trading_result_id: int) -> bool:
    try:
        report = await DistributionRunner(async_session_maker).reconcile(
            trading_result_id
        )
    finally:
        await engine.dispose()

    logger.info(f"Trading result {trading_result_id}:")
    logger.info(
        f"  ledger:  {report.ledger.profit_entries} profit rows "
        f"({report.ledger.profit_total}), {report.ledger.bonus_entries} bonus rows "
        f"({report.ledger.bonus_total}), {report.ledger.transaction_entries} transactions "
        f"({report.ledger.transaction_total})"
    )
    logger.info(
        f"  markers: {report.markers.completed}/{report.markers.users} completed, "
        f"profit {report.markers.profit_total}, bonus {report.markers.bonus_total}, "
        f"{report.markers.walks_aborted} aborted walk(s)"
    )
    return report.is_balanced


def main() -> None:
    parser = argparse.ArgumentParser(description="Distribute trading results")
    parser.add_argument("trading_result_id", type=int, nargs="?", help="Trading result ID")
    parser.add_argument(
        "--pending",
        action="store_true",
        help="Distribute every trading result not yet processed",
    )
    parser.add_argument(
        "--reconcile",
        action="store_true",
        help="Compare ledger rows with distribution progress instead of distributing",
    )
    args = parser.parse_args()

    if args.trading_result_id is None and not args.pending:
        parser.error("trading_result_id or --pending is required")
    if args.reconcile and args.trading_result_id is None:
        parser.error("--reconcile needs a trading_result_id")

    setup_logging(log_file=settings.log_file)

    try:
        if args.reconcile:
            if not asyncio.run(reconcile(args.trading_result_id)):
                logger.error("Ledger does NOT reconcile")
                sys.exit(2)
            logger.success("Ledger reconciles")
            return

        ids = [] if args.pending else [args.trading_result_id]
        asyncio.run(distribute(ids, pending=args.pending))
    except DistributionError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
