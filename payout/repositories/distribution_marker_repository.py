"""
Distribution marker repository.

Data access layer for DistributionMarker model.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.distribution_marker import DistributionMarker
from payout.models.enums import MarkerStatus
from payout.repositories.base import BaseRepository
from payout.utils.money import quantize_money


@dataclass(frozen=True)
class MarkerTotals:
    """Aggregated completed markers of one trading result."""

    users: int
    completed: int
    profit_total: Decimal
    bonus_total: Decimal
    walks_aborted: int


class DistributionMarkerRepository(BaseRepository[DistributionMarker]):
    """Distribution marker repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize distribution marker repository."""
        super().__init__(DistributionMarker, session)

    async def create_snapshot(
        self,
        trading_result_id: int,
        balances: list[tuple[int, Decimal]],
    ) -> int:
        """
        Create pending markers for a user snapshot in one statement.

        Args:
            trading_result_id: Trading result ID
            balances: (user_id, snapshot balance) pairs

        Returns:
            Number of markers created
        """
        if not balances:
            return 0

        stmt = insert(DistributionMarker).values(
            [
                {
                    "trading_result_id": trading_result_id,
                    "user_id": user_id,
                    "status": MarkerStatus.PENDING.value,
                    "base_balance": balance,
                    "profit_amount": Decimal("0"),
                    "bonus_total": Decimal("0"),
                    "bonus_walk_aborted": False,
                }
                for user_id, balance in balances
            ]
        )
        await self.session.execute(stmt)
        return len(balances)

    async def get_pending(
        self, trading_result_id: int
    ) -> list[DistributionMarker]:
        """
        Get markers still waiting to be credited, in user order.

        Args:
            trading_result_id: Trading result ID

        Returns:
            Pending markers ordered by user ID
        """
        stmt = (
            select(DistributionMarker)
            .where(
                DistributionMarker.trading_result_id == trading_result_id,
                DistributionMarker.status == MarkerStatus.PENDING.value,
            )
            .order_by(DistributionMarker.user_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_totals(self, trading_result_id: int) -> MarkerTotals:
        """
        Aggregate markers of one trading result.

        Args:
            trading_result_id: Trading result ID

        Returns:
            MarkerTotals
        """
        completed = DistributionMarker.status == MarkerStatus.COMPLETED.value
        stmt = select(
            func.count(DistributionMarker.id),
            func.count(DistributionMarker.id).filter(completed),
            func.sum(DistributionMarker.profit_amount).filter(completed),
            func.sum(DistributionMarker.bonus_total).filter(completed),
            func.count(DistributionMarker.id).filter(
                DistributionMarker.bonus_walk_aborted == True  # noqa: E712
            ),
        ).where(DistributionMarker.trading_result_id == trading_result_id)

        users, done, profit_sum, bonus_sum, aborted = (
            await self.session.execute(stmt)
        ).one()

        return MarkerTotals(
            users=users or 0,
            completed=done or 0,
            profit_total=quantize_money(Decimal(str(profit_sum or 0))),
            bonus_total=quantize_money(Decimal(str(bonus_sum or 0))),
            walks_aborted=aborted or 0,
        )
