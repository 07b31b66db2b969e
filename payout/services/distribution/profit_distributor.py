"""
Profit distributor.

Distributes one trading result: credits each user's share of the trade,
re-derives ranks, and funds referral commissions from the company share.
Runs exactly once per trading result and resumes after a crash without
crediting anyone twice.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.distribution_marker import DistributionMarker
from payout.models.enums import AdminActionType, MarkerStatus
from payout.models.trading_result import TradingResult
from payout.repositories.admin_action_repository import AdminActionRepository
from payout.repositories.distribution_marker_repository import (
    DistributionMarkerRepository,
)
from payout.repositories.trading_result_repository import (
    TradingResultRepository,
)
from payout.repositories.user_repository import UserRepository
from payout.services.base_service import BaseService, log_operation
from payout.services.distribution.balance_writer import BalanceWriter
from payout.services.distribution.bonus_walker import BonusWalker
from payout.services.distribution.config_snapshot import (
    ConfigLoader,
    ConfigSnapshot,
)
from payout.services.distribution.ledger_recorder import LedgerRecorder
from payout.services.distribution.rank_resolver import RankResolver
from payout.utils.datetime_utils import utc_now
from payout.utils.exceptions import (
    AlreadyProcessedError,
    ConfigurationError,
    DistributionError,
    NotFoundError,
    ReferralCycleError,
)
from payout.utils.money import HUNDRED, percent_of, quantize_money


@dataclass(frozen=True)
class DistributionSummary:
    """Aggregate outcome of a distribution run."""

    trading_result_id: int
    trading_date: date
    profit_percent: Decimal
    users_affected: int
    total_profit_distributed: Decimal
    total_bonus_distributed: Decimal
    bonus_walks_aborted: int
    resumed: bool
    config_version: str
    processed_at: datetime

    def as_dict(self) -> dict[str, Any]:
        """Operator-facing summary."""
        return {
            "tradingResultId": self.trading_result_id,
            "tradingDate": self.trading_date.isoformat(),
            "profitPercent": str(self.profit_percent),
            "usersAffected": self.users_affected,
            "totalProfitDistributed": str(self.total_profit_distributed),
            "totalBonusDistributed": str(self.total_bonus_distributed),
            "bonusWalksAborted": self.bonus_walks_aborted,
            "resumed": self.resumed,
            "configVersion": self.config_version,
            "processedAt": self.processed_at.isoformat(),
        }


class ProfitDistributor(BaseService):
    """
    Distributes trading results to users and their uplines.

    The first attempt snapshots every user with a positive balance as a
    pending DistributionMarker. Each user is then credited in its own
    transaction, which also completes the user's marker; a later attempt
    only processes markers still pending. processed_at is set once, after
    the last marker completes.
    """

    def __init__(
        self,
        session: AsyncSession,
        network_scale: Decimal | None = None,
        max_depth: int | None = None,
    ) -> None:
        """
        Initialize profit distributor.

        Args:
            session: Database session
            network_scale: Override for the configured network scale
            max_depth: Override for the referral walk depth
        """
        super().__init__(session)
        self.network_scale = network_scale
        self.max_depth = max_depth
        self.trading_result_repo = TradingResultRepository(session)
        self.user_repo = UserRepository(session)
        self.marker_repo = DistributionMarkerRepository(session)
        self.admin_action_repo = AdminActionRepository(session)
        self.config_loader = ConfigLoader(session)

    @log_operation
    async def distribute(
        self, trading_result_id: int, admin_id: int | None = None
    ) -> DistributionSummary:
        """
        Distribute a trading result.

        Args:
            trading_result_id: Trading result ID
            admin_id: Operator triggering the run (None for jobs)

        Returns:
            DistributionSummary over every user of the run

        Raises:
            NotFoundError: If the trading result does not exist
            AlreadyProcessedError: If it was already distributed
            ConfigurationError: If the configuration is invalid or changed
                since an interrupted run started
            ConcurrencyConflictError: If a balance update kept losing races;
                completed users stay completed and the run can be resumed
        """
        try:
            trading_result, snapshot = await self._prepare(trading_result_id)
        except DistributionError:
            await self.rollback()
            raise

        # Plain values survive a rollback that expires ORM state
        result_id = trading_result.id
        trading_date = trading_result.trading_date
        profit_percent = trading_result.profit_percent
        resumed = trading_result.started_at is not None

        if resumed:
            self.logger.info(
                "Resuming interrupted distribution",
                extra={
                    "trading_result_id": result_id,
                    "config_version": snapshot.version,
                },
            )
        else:
            await self._start_run(trading_result, snapshot)

        resolver = RankResolver(snapshot)
        ledger = LedgerRecorder(self.session)
        balance_writer = BalanceWriter(self.session, resolver)
        walker = BonusWalker(
            self.session,
            resolver,
            balance_writer,
            ledger,
            max_depth=self.max_depth,
        )

        ratio = profit_percent / HUNDRED
        pending = await self.marker_repo.get_pending(result_id)

        self.logger.info(
            "Distributing trading result",
            extra={
                "trading_result_id": result_id,
                "trading_date": trading_date.isoformat(),
                "profit_percent": str(profit_percent),
                "pending_users": len(pending),
            },
        )

        for marker in pending:
            user_id = marker.user_id
            try:
                await self._distribute_to_user(
                    marker, trading_result, ratio, resolver, balance_writer, ledger, walker
                )
            except Exception as e:
                await self.rollback()
                self.logger.error(
                    "User distribution failed, run left resumable",
                    extra={
                        "trading_result_id": result_id,
                        "user_id": user_id,
                        "error": str(e),
                    },
                )
                raise

        return await self._finish_run(
            result_id, trading_date, profit_percent, snapshot, resumed, admin_id
        )

    async def _prepare(
        self, trading_result_id: int
    ) -> tuple[TradingResult, ConfigSnapshot]:
        """Run every guard; nothing is written here."""
        trading_result = await self.trading_result_repo.get_fresh(trading_result_id)
        if trading_result is None:
            raise NotFoundError("TradingResult", trading_result_id)

        if trading_result.is_processed:
            self.logger.warning(
                "Trading result already processed",
                extra={
                    "trading_result_id": trading_result_id,
                    "processed_at": trading_result.processed_at.isoformat(),
                },
            )
            raise AlreadyProcessedError(trading_result_id)

        snapshot = await self.config_loader.load(self.network_scale)

        if (
            trading_result.started_at is not None
            and trading_result.config_version != snapshot.version
        ):
            raise ConfigurationError(
                f"Configuration changed since distribution of trading result "
                f"{trading_result_id} started "
                f"(pinned {trading_result.config_version}, "
                f"current {snapshot.version})"
            )

        return trading_result, snapshot

    async def _start_run(
        self, trading_result: TradingResult, snapshot: ConfigSnapshot
    ) -> None:
        """Snapshot eligible users as pending markers and pin the config."""
        users = await self.user_repo.get_users_with_balance()
        created = await self.marker_repo.create_snapshot(
            trading_result.id,
            [(user.id, user.balance) for user in users],
        )

        trading_result.started_at = utc_now()
        trading_result.config_version = snapshot.version
        await self.commit()

        self.logger.info(
            "User snapshot taken",
            extra={
                "trading_result_id": trading_result.id,
                "users": created,
                "config_version": snapshot.version,
            },
        )

    async def _distribute_to_user(
        self,
        marker: DistributionMarker,
        trading_result: TradingResult,
        ratio: Decimal,
        resolver: RankResolver,
        balance_writer: BalanceWriter,
        ledger: LedgerRecorder,
        walker: BonusWalker,
    ) -> None:
        """Credit one user and their uplines, then complete the marker."""
        base_balance = marker.base_balance
        tier = resolver.resolve_rank(base_balance)
        user_share, company_share = resolver.get_share_split(tier)

        trade_notional = base_balance * ratio
        user_profit = quantize_money(percent_of(trade_notional, user_share))

        user = await self.user_repo.get_fresh(marker.user_id)
        if user is None:
            raise NotFoundError("User", marker.user_id)

        await balance_writer.apply_delta(user.id, user_profit, user=user)
        await ledger.record_profit(
            user_id=user.id,
            trading_result=trading_result,
            base_balance=base_balance,
            rank=tier.value,
            user_share_percent=user_share,
            amount=user_profit,
        )

        # Negative on losses: uplines are debited their level share
        company_portion = percent_of(trade_notional, company_share)
        bonus_total = Decimal("0")
        walk_aborted = False
        if user_share == 0:
            self.logger.debug(
                "Zero user share, no bonus walk",
                extra={"user_id": user.id, "rank": tier.value},
            )
        else:
            try:
                walk = await walker.walk_and_credit(
                    user, company_portion, trading_result
                )
                bonus_total = walk.total_credited
            except ReferralCycleError as e:
                bonus_total = e.credited
                walk_aborted = True
                self.logger.error(
                    "Bonus walk aborted on referral cycle",
                    extra={
                        "trading_result_id": trading_result.id,
                        "user_id": user.id,
                        "repeated_user_id": e.repeated_user_id,
                        "credited": str(e.credited),
                        "hops_credited": e.hops_credited,
                    },
                )

        marker.status = MarkerStatus.COMPLETED.value
        marker.profit_amount = user_profit
        marker.bonus_total = bonus_total
        marker.bonus_walk_aborted = walk_aborted
        marker.completed_at = utc_now()
        await self.commit()

        self.logger.debug(
            "User distributed",
            extra={
                "user_id": marker.user_id,
                "rank": tier.value,
                "profit": str(user_profit),
                "bonus_total": str(bonus_total),
            },
        )

    async def _finish_run(
        self,
        result_id: int,
        trading_date: date,
        profit_percent: Decimal,
        snapshot: ConfigSnapshot,
        resumed: bool,
        admin_id: int | None,
    ) -> DistributionSummary:
        """Set processed_at once and audit the run."""
        processed_at = utc_now()
        if not await self.trading_result_repo.mark_processed(result_id, processed_at):
            await self.rollback()
            raise AlreadyProcessedError(result_id)

        totals = await self.marker_repo.get_totals(result_id)
        summary = DistributionSummary(
            trading_result_id=result_id,
            trading_date=trading_date,
            profit_percent=profit_percent,
            users_affected=totals.completed,
            total_profit_distributed=totals.profit_total,
            total_bonus_distributed=totals.bonus_total,
            bonus_walks_aborted=totals.walks_aborted,
            resumed=resumed,
            config_version=snapshot.version,
            processed_at=processed_at,
        )

        await self.admin_action_repo.log_action(
            AdminActionType.DISTRIBUTE_PROFIT,
            admin_id=admin_id,
            target_id=result_id,
            details=(
                f"Distributed {profit_percent}% for {trading_date.isoformat()}: "
                f"{summary.users_affected} users, "
                f"profit {summary.total_profit_distributed}, "
                f"bonus {summary.total_bonus_distributed}"
            ),
        )
        await self.commit()

        self.logger.success(
            "Trading result distributed",
            extra=summary.as_dict(),
        )
        return summary
