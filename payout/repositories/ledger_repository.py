"""
Ledger repository.

Append-only access to profit history, bonus history and transactions.
Rows are never updated or deleted here.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.bonus_history import BonusHistory
from payout.models.enums import TransactionType
from payout.models.profit_history import ProfitHistory
from payout.models.transaction import Transaction
from payout.utils.money import quantize_money


def _to_money(value) -> Decimal:
    """Normalize an aggregate (Decimal on PostgreSQL, float on SQLite)."""
    if value is None:
        return Decimal("0")
    return quantize_money(Decimal(str(value)))


@dataclass(frozen=True)
class LedgerTotals:
    """Aggregated ledger rows of one trading result."""

    profit_entries: int
    profit_total: Decimal
    profit_users: int
    bonus_entries: int
    bonus_total: Decimal
    transaction_entries: int
    transaction_total: Decimal


class LedgerRepository:
    """Ledger repository over the three append-only tables."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize ledger repository."""
        self.session = session

    async def _append(self, entity):
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def add_profit(self, **data) -> ProfitHistory:
        """Append a profit history row."""
        return await self._append(ProfitHistory(**data))

    async def add_bonus(self, **data) -> BonusHistory:
        """Append a bonus history row."""
        return await self._append(BonusHistory(**data))

    async def add_transaction(self, **data) -> Transaction:
        """Append a transaction row."""
        return await self._append(Transaction(**data))

    async def get_profit_history(
        self, user_id: int, limit: int = 50
    ) -> list[ProfitHistory]:
        """
        Get latest profit rows of a user.

        Args:
            user_id: User ID
            limit: Max rows

        Returns:
            Rows ordered by trading date, newest first
        """
        stmt = (
            select(ProfitHistory)
            .where(ProfitHistory.user_id == user_id)
            .order_by(ProfitHistory.trading_date.desc(), ProfitHistory.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_bonus_history(
        self, user_id: int, limit: int = 50
    ) -> list[BonusHistory]:
        """
        Get latest bonus rows received by a user.

        Args:
            user_id: Recipient user ID
            limit: Max rows

        Returns:
            Rows ordered newest first
        """
        stmt = (
            select(BonusHistory)
            .where(BonusHistory.user_id == user_id)
            .order_by(BonusHistory.created_at.desc(), BonusHistory.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_totals(self, trading_result_id: int) -> LedgerTotals:
        """
        Aggregate ledger rows for one trading result.

        Uses SQL aggregation so large runs are not loaded into memory.

        Args:
            trading_result_id: Trading result ID

        Returns:
            LedgerTotals
        """
        profit_stmt = select(
            func.count(ProfitHistory.id),
            func.sum(ProfitHistory.profit_amount),
            func.count(func.distinct(ProfitHistory.user_id)),
        ).where(ProfitHistory.trading_result_id == trading_result_id)
        profit_count, profit_sum, profit_users = (
            await self.session.execute(profit_stmt)
        ).one()

        bonus_stmt = select(
            func.count(BonusHistory.id),
            func.sum(BonusHistory.bonus_amount),
        ).where(BonusHistory.trading_result_id == trading_result_id)
        bonus_count, bonus_sum = (await self.session.execute(bonus_stmt)).one()

        tx_stmt = select(
            func.count(Transaction.id),
            func.sum(Transaction.amount),
        ).where(
            Transaction.trading_result_id == trading_result_id,
            Transaction.type.in_(
                [TransactionType.PROFIT.value, TransactionType.BONUS.value]
            ),
        )
        tx_count, tx_sum = (await self.session.execute(tx_stmt)).one()

        return LedgerTotals(
            profit_entries=profit_count or 0,
            profit_total=_to_money(profit_sum),
            profit_users=profit_users or 0,
            bonus_entries=bonus_count or 0,
            bonus_total=_to_money(bonus_sum),
            transaction_entries=tx_count or 0,
            transaction_total=_to_money(tx_sum),
        )
