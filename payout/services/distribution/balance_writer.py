"""
Balance writer.

Applies a balance delta and re-derives the rank in one compare-and-set
update, retrying when another writer got there first.
"""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from payout.config.settings import settings
from payout.models.user import User
from payout.repositories.user_repository import UserRepository
from payout.services.distribution.rank_resolver import RankResolver
from payout.utils.exceptions import ConcurrencyConflictError, NotFoundError


@dataclass(frozen=True)
class BalanceChange:
    """Outcome of one balance update."""

    user: User
    previous_balance: Decimal
    new_balance: Decimal
    previous_rank: str
    new_rank: str

    @property
    def rank_changed(self) -> bool:
        return self.previous_rank != self.new_rank


class BalanceWriter:
    """Read-modify-write of balance and rank, atomically per row."""

    def __init__(
        self,
        session: AsyncSession,
        resolver: RankResolver,
        max_attempts: int | None = None,
    ) -> None:
        """
        Initialize balance writer.

        Args:
            session: Database session
            resolver: Rank resolver of the current run
            max_attempts: Compare-and-set attempts (default from settings)
        """
        self.session = session
        self.resolver = resolver
        self.user_repo = UserRepository(session)
        self.max_attempts = max_attempts or settings.row_update_retries

    async def apply_delta(
        self,
        user_id: int,
        delta: Decimal,
        user: User | None = None,
    ) -> BalanceChange:
        """
        Add delta to a user's balance and persist the re-resolved rank.

        Args:
            user_id: User ID
            delta: Signed amount, already rounded to ledger precision
            user: Freshly read row to use for the first attempt

        Returns:
            BalanceChange

        Raises:
            NotFoundError: If the user does not exist
            ConcurrencyConflictError: If every attempt lost the race
        """
        for attempt in range(1, self.max_attempts + 1):
            if user is None:
                user = await self.user_repo.get_fresh(user_id)
            if user is None:
                raise NotFoundError("User", user_id)

            previous_balance = user.balance
            previous_rank = user.rank
            new_balance = previous_balance + delta
            new_rank = self.resolver.resolve_rank(new_balance).value

            updated = await self.user_repo.compare_and_set_balance(
                user_id=user.id,
                expected_version=user.version,
                balance=new_balance,
                rank=new_rank,
            )
            if updated:
                # Keep the identity map in step without marking the row dirty
                set_committed_value(user, "balance", new_balance)
                set_committed_value(user, "rank", new_rank)
                set_committed_value(user, "version", user.version + 1)

                if previous_rank != new_rank:
                    logger.info(
                        "User rank changed",
                        extra={
                            "user_id": user_id,
                            "old_rank": previous_rank,
                            "new_rank": new_rank,
                            "balance": str(new_balance),
                        },
                    )

                return BalanceChange(
                    user=user,
                    previous_balance=previous_balance,
                    new_balance=new_balance,
                    previous_rank=previous_rank,
                    new_rank=new_rank,
                )

            logger.warning(
                "Balance update conflict, retrying",
                extra={
                    "user_id": user_id,
                    "attempt": attempt,
                    "expected_version": user.version,
                },
            )
            user = None

        raise ConcurrencyConflictError(user_id, attempts=self.max_attempts)
