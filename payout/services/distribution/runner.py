"""
Distribution runner.

Runs ProfitDistributor under the single-writer distribution lock, one fresh
session per run.
"""

from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from payout.config.settings import settings
from payout.services.distribution.ledger_recorder import (
    LedgerRecorder,
    ReconciliationReport,
)
from payout.services.distribution.profit_distributor import (
    DistributionSummary,
    ProfitDistributor,
)
from payout.utils.distributed_lock import DistributedLock

# One lock for every trading result: runs never overlap
DISTRIBUTION_LOCK_KEY = "profit_distribution"


class DistributionRunner:
    """Serializes distribution runs across workers."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        redis_client=None,
        network_scale: Decimal | None = None,
    ) -> None:
        """
        Initialize distribution runner.

        Args:
            session_maker: Session factory
            redis_client: redis.asyncio client for the lock
                (None = process-local lock)
            network_scale: Override for the configured network scale
        """
        self.session_maker = session_maker
        self.lock = DistributedLock(redis_client=redis_client)
        self.network_scale = network_scale

    async def run(
        self,
        trading_result_id: int,
        admin_id: int | None = None,
        blocking_timeout: float | None = 0,
    ) -> DistributionSummary:
        """
        Distribute a trading result while holding the distribution lock.

        Args:
            trading_result_id: Trading result ID
            admin_id: Operator triggering the run
            blocking_timeout: Seconds to wait for a running distribution

        Returns:
            DistributionSummary

        Raises:
            LockAcquisitionError: If another run holds the lock
            DistributionError: Whatever ProfitDistributor.distribute raises
        """
        async with self.lock.lock(
            DISTRIBUTION_LOCK_KEY,
            timeout=settings.distribution_lock_timeout,
            blocking_timeout=blocking_timeout,
        ):
            async with self.session_maker() as session:
                distributor = ProfitDistributor(
                    session, network_scale=self.network_scale
                )
                summary = await distributor.distribute(
                    trading_result_id, admin_id=admin_id
                )

        logger.info(
            f"Distribution of trading result {trading_result_id} complete: "
            f"{summary.users_affected} users, "
            f"bonus {summary.total_bonus_distributed}"
        )
        return summary

    async def reconcile(self, trading_result_id: int) -> ReconciliationReport:
        """
        Compare ledger rows of a trading result with its markers.

        Args:
            trading_result_id: Trading result ID

        Returns:
            ReconciliationReport
        """
        async with self.session_maker() as session:
            return await LedgerRecorder(session).reconcile(trading_result_id)
