"""
Ledger recorder.

Appends the immutable history rows that back every credited amount and
reconciles them against distribution progress.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.bonus_history import BonusHistory
from payout.models.enums import BonusType, TransactionStatus, TransactionType
from payout.models.profit_history import ProfitHistory
from payout.models.trading_result import TradingResult
from payout.repositories.distribution_marker_repository import (
    DistributionMarkerRepository,
    MarkerTotals,
)
from payout.repositories.ledger_repository import LedgerRepository, LedgerTotals


@dataclass(frozen=True)
class ReconciliationReport:
    """Ledger rows compared with distribution markers of one trading result."""

    trading_result_id: int
    ledger: LedgerTotals
    markers: MarkerTotals

    @property
    def is_balanced(self) -> bool:
        """Every credited amount has its ledger rows and vice versa."""
        return (
            self.ledger.profit_users == self.markers.completed
            and self.ledger.profit_total == self.markers.profit_total
            and self.ledger.bonus_total == self.markers.bonus_total
            and self.ledger.transaction_entries
            == self.ledger.profit_entries + self.ledger.bonus_entries
            and self.ledger.transaction_total
            == self.ledger.profit_total + self.ledger.bonus_total
        )


class LedgerRecorder:
    """Writes profit and bonus ledger entries."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger recorder.

        Args:
            session: Database session
        """
        self.session = session
        self.ledger_repo = LedgerRepository(session)
        self.marker_repo = DistributionMarkerRepository(session)

    async def record_profit(
        self,
        user_id: int,
        trading_result: TradingResult,
        base_balance: Decimal,
        rank: str,
        user_share_percent: Decimal,
        amount: Decimal,
    ) -> ProfitHistory:
        """
        Record profit credited to a user.

        Args:
            user_id: Credited user
            trading_result: Source trading result
            base_balance: Balance the profit was computed from
            rank: Rank that set the profit split
            user_share_percent: User share applied
            amount: Credited amount (rounded)

        Returns:
            Profit history row
        """
        entry = await self.ledger_repo.add_profit(
            user_id=user_id,
            trading_result_id=trading_result.id,
            trading_date=trading_result.trading_date,
            profit_percent=trading_result.profit_percent,
            base_balance=base_balance,
            rank=rank,
            user_share_percent=user_share_percent,
            profit_amount=amount,
        )
        await self.ledger_repo.add_transaction(
            user_id=user_id,
            type=TransactionType.PROFIT.value,
            status=TransactionStatus.COMPLETED.value,
            amount=amount,
            trading_result_id=trading_result.id,
            remarks=(
                "Profit distribution for "
                f"{trading_result.trading_date:%a %b %d %Y}"
            ),
        )
        return entry

    async def record_bonus(
        self,
        recipient_id: int,
        source_user_id: int,
        trading_result: TradingResult,
        level: int,
        rate: Decimal,
        company_portion: Decimal,
        amount: Decimal,
    ) -> BonusHistory:
        """
        Record a referral commission.

        Args:
            recipient_id: Upline receiving the bonus
            source_user_id: Downline whose trade funded it
            trading_result: Source trading result
            level: Referral depth of the recipient
            rate: Level percentage applied
            company_portion: Amount the rate was applied to
            amount: Credited amount (rounded)

        Returns:
            Bonus history row
        """
        entry = await self.ledger_repo.add_bonus(
            user_id=recipient_id,
            source_user_id=source_user_id,
            trading_result_id=trading_result.id,
            trading_date=trading_result.trading_date,
            bonus_type=BonusType.NETWORK_LEVEL_BONUS.value,
            level=level,
            rate=rate,
            calculated_from=company_portion,
            bonus_amount=amount,
            description=f"Level {level} bonus ({rate}%)",
        )
        await self.ledger_repo.add_transaction(
            user_id=recipient_id,
            type=TransactionType.BONUS.value,
            status=TransactionStatus.COMPLETED.value,
            amount=amount,
            trading_result_id=trading_result.id,
            remarks=f"Level {level} network bonus",
        )
        return entry

    async def summarize(self, trading_result_id: int) -> LedgerTotals:
        """Aggregate ledger rows of one trading result."""
        return await self.ledger_repo.get_totals(trading_result_id)

    async def reconcile(self, trading_result_id: int) -> ReconciliationReport:
        """
        Compare ledger rows with distribution markers.

        Args:
            trading_result_id: Trading result ID

        Returns:
            ReconciliationReport
        """
        report = ReconciliationReport(
            trading_result_id=trading_result_id,
            ledger=await self.summarize(trading_result_id),
            markers=await self.marker_repo.get_totals(trading_result_id),
        )

        if not report.is_balanced:
            logger.error(
                "Ledger does not reconcile with distribution markers",
                extra={
                    "trading_result_id": trading_result_id,
                    "ledger_profit": str(report.ledger.profit_total),
                    "marker_profit": str(report.markers.profit_total),
                    "ledger_bonus": str(report.ledger.bonus_total),
                    "marker_bonus": str(report.markers.bonus_total),
                },
            )

        return report

    async def get_profit_history(
        self, user_id: int, limit: int = 50
    ) -> list[ProfitHistory]:
        """Latest profit rows of a user."""
        return await self.ledger_repo.get_profit_history(user_id, limit=limit)

    async def get_bonus_history(
        self, user_id: int, limit: int = 50
    ) -> list[BonusHistory]:
        """Latest bonus rows received by a user."""
        return await self.ledger_repo.get_bonus_history(user_id, limit=limit)
