"""
Bonus walker.

Walks a user's referrer chain and pays rank-gated level commissions out of
the company portion of the user's trade.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from payout.config.rank_tiers import MAX_REFERRAL_DEPTH
from payout.config.settings import settings
from payout.models.trading_result import TradingResult
from payout.models.user import User
from payout.repositories.user_repository import UserRepository
from payout.services.distribution.balance_writer import BalanceWriter
from payout.services.distribution.ledger_recorder import LedgerRecorder
from payout.services.distribution.rank_resolver import RankResolver
from payout.utils.exceptions import ReferralCycleError
from payout.utils.money import percent_of, quantize_money


@dataclass
class WalkResult:
    """Totals of one referral walk."""

    total_credited: Decimal = Decimal("0")
    hops_visited: int = 0
    hops_credited: int = 0


class BonusWalker:
    """
    Pays level commissions up a referrer chain.

    Each hop reads the referrer's live rank: ineligibility at one level skips
    that referrer but the walk goes on. The walk stops at the chain's root or
    after max_depth hops, and raises ReferralCycleError if a user comes back.
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: RankResolver,
        balance_writer: BalanceWriter,
        ledger: LedgerRecorder,
        max_depth: int | None = None,
    ) -> None:
        """
        Initialize bonus walker.

        Args:
            session: Database session
            resolver: Rank resolver of the current run
            balance_writer: Balance writer sharing the session
            ledger: Ledger recorder sharing the session
            max_depth: Hop limit (default from settings, never above
                MAX_REFERRAL_DEPTH)
        """
        self.session = session
        self.resolver = resolver
        self.level_bonuses = resolver.snapshot.level_bonuses
        self.balance_writer = balance_writer
        self.ledger = ledger
        self.user_repo = UserRepository(session)
        if max_depth is None:
            max_depth = settings.max_referral_depth
        self.max_depth = min(max_depth, MAX_REFERRAL_DEPTH)

    async def walk_and_credit(
        self,
        source_user: User,
        company_portion: Decimal,
        trading_result: TradingResult,
    ) -> WalkResult:
        """
        Credit eligible uplines of source_user.

        Args:
            source_user: User whose trade funds the commissions
            company_portion: Company-retained share of that trade
            trading_result: Trading result being distributed

        Returns:
            WalkResult with the total credited

        Raises:
            ReferralCycleError: If the chain revisits a user; credits made
                before the cycle was found stay in place
        """
        result = WalkResult()
        visited = {source_user.id}
        current_id = source_user.referrer_id
        depth = 1

        while current_id is not None and depth <= self.max_depth:
            if current_id in visited:
                logger.error(
                    "Referral cycle detected, aborting bonus walk",
                    extra={
                        "source_user_id": source_user.id,
                        "repeated_user_id": current_id,
                        "depth": depth,
                        "credited": str(result.total_credited),
                    },
                )
                raise ReferralCycleError(
                    source_user_id=source_user.id,
                    repeated_user_id=current_id,
                    credited=result.total_credited,
                    hops_credited=result.hops_credited,
                )
            visited.add(current_id)

            referrer = await self.user_repo.get_fresh(current_id)
            if referrer is None:
                logger.warning(
                    "Referrer not found, ending bonus walk",
                    extra={
                        "source_user_id": source_user.id,
                        "referrer_id": current_id,
                        "depth": depth,
                    },
                )
                break

            result.hops_visited += 1
            next_id = referrer.referrer_id

            if self.resolver.is_eligible(referrer.rank, depth):
                credited = await self._credit_hop(
                    referrer, source_user, depth, company_portion, trading_result
                )
                if credited:
                    result.total_credited += credited
                    result.hops_credited += 1
            else:
                logger.debug(
                    "Referrer rank not eligible at this level",
                    extra={
                        "referrer_id": referrer.id,
                        "rank": referrer.rank,
                        "depth": depth,
                    },
                )

            current_id = next_id
            depth += 1

        return result

    async def _credit_hop(
        self,
        referrer: User,
        source_user: User,
        depth: int,
        company_portion: Decimal,
        trading_result: TradingResult,
    ) -> Decimal:
        """Credit one eligible referrer; returns the amount (0 if it rounds away)."""
        percentage = self.level_bonuses.percentage_for(depth)
        amount = quantize_money(percent_of(company_portion, percentage))
        if amount == 0:
            return Decimal("0")

        await self.balance_writer.apply_delta(referrer.id, amount, user=referrer)
        await self.ledger.record_bonus(
            recipient_id=referrer.id,
            source_user_id=source_user.id,
            trading_result=trading_result,
            level=depth,
            rate=percentage,
            company_portion=company_portion,
            amount=amount,
        )

        logger.info(
            "Level bonus credited",
            extra={
                "referrer_id": referrer.id,
                "source_user_id": source_user.id,
                "level": depth,
                "rate": str(percentage),
                "amount": str(amount),
            },
        )
        return amount
