"""
Profit distribution task.

Distributes a trading result in the background under the distribution lock.
"""

import asyncio

import dramatiq
import redis.asyncio as redis
from loguru import logger

from jobs.utils.database import create_task_engine, create_task_session_maker
from payout.config.settings import settings
from payout.services.distribution.runner import DistributionRunner
from payout.utils.exceptions import is_terminal


@dramatiq.actor(max_retries=5, time_limit=settings.distribution_lock_timeout * 1000)
def distribute_trading_result(
    trading_result_id: int, admin_id: int | None = None
) -> None:
    """
    Distribute a trading result.

    Terminal errors (unknown or already processed result, bad configuration)
    are logged and dropped. Lost balance races and a busy lock propagate so
    the broker retries; the retry resumes from the pending users.

    Args:
        trading_result_id: Trading result ID
        admin_id: Operator who queued the run
    """
    logger.info(f"Starting distribution of trading result {trading_result_id}...")

    try:
        summary = asyncio.run(
            _distribute_async(trading_result_id, admin_id)
        )
    except Exception as e:
        if is_terminal(e):
            logger.error(
                f"Distribution of trading result {trading_result_id} "
                f"rejected: {e}"
            )
            return
        logger.exception(
            f"Distribution of trading result {trading_result_id} failed: {e}"
        )
        raise

    logger.info(
        f"Distribution complete: {summary['usersAffected']} users, "
        f"bonus {summary['totalBonusDistributed']}"
    )


async def _distribute_async(
    trading_result_id: int, admin_id: int | None
) -> dict:
    """Async implementation of distribution."""
    redis_client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        password=settings.redis_password,
        db=settings.redis_db,
        decode_responses=True,
    )
    engine = create_task_engine()

    try:
        runner = DistributionRunner(
            create_task_session_maker(engine), redis_client=redis_client
        )
        summary = await runner.run(trading_result_id, admin_id=admin_id)
        return summary.as_dict()
    finally:
        await redis_client.aclose()
        await engine.dispose()
