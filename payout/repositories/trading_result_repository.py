"""
Trading result repository.

Data access layer for TradingResult model.
"""

from datetime import date, datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.trading_result import TradingResult
from payout.repositories.base import BaseRepository


class TradingResultRepository(BaseRepository[TradingResult]):
    """Trading result repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize trading result repository."""
        super().__init__(TradingResult, session)

    async def get_by_date(self, trading_date: date) -> TradingResult | None:
        """
        Get trading result for a calendar date.

        Args:
            trading_date: Trading date

        Returns:
            Trading result or None
        """
        return await self.get_by(trading_date=trading_date)

    async def get_fresh(self, trading_result_id: int) -> TradingResult | None:
        """
        Read trading result straight from the database, locking the row.

        Args:
            trading_result_id: Trading result ID

        Returns:
            Trading result or None
        """
        stmt = (
            select(TradingResult)
            .where(TradingResult.id == trading_result_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_unprocessed(self) -> list[TradingResult]:
        """
        Get trading results not yet distributed, oldest first.

        Returns:
            List of unprocessed trading results
        """
        stmt = (
            select(TradingResult)
            .where(TradingResult.processed_at.is_(None))
            .order_by(TradingResult.trading_date)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def mark_processed(
        self, trading_result_id: int, processed_at: datetime
    ) -> bool:
        """
        Set processed_at exactly once.

        Args:
            trading_result_id: Trading result ID
            processed_at: Completion timestamp

        Returns:
            True if this call set the flag, False if it was already set
        """
        stmt = (
            update(TradingResult)
            .where(
                TradingResult.id == trading_result_id,
                TradingResult.processed_at.is_(None),
            )
            .values(processed_at=processed_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
