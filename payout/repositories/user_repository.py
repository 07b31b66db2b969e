"""
User repository.

Data access layer for User model: snapshot reads, locked fresh reads and
compare-and-set balance/rank writes.
"""

from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.user import User
from payout.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_users_with_balance(self) -> list[User]:
        """
        Get all users holding a positive balance.

        Single snapshot read ordered by ID.

        Returns:
            List of users with balance > 0
        """
        stmt = (
            select(User)
            .where(User.balance > 0)
            .order_by(User.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_fresh(
        self, user_id: int, for_update: bool = True
    ) -> User | None:
        """
        Read user state straight from the database.

        Bypasses the identity map so a balance written earlier in the same
        session (or by another writer) is always seen.

        Args:
            user_id: User ID
            for_update: Lock the row (SELECT FOR UPDATE where supported)

        Returns:
            User or None if not found
        """
        stmt = (
            select(User)
            .where(User.id == user_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def compare_and_set_balance(
        self,
        user_id: int,
        expected_version: int,
        balance: Decimal,
        rank: str,
    ) -> bool:
        """
        Write balance and rank together if nobody else wrote in between.

        Args:
            user_id: User ID
            expected_version: Version read before computing the new values
            balance: New balance
            rank: New rank value

        Returns:
            True if the row was updated, False if the version moved on
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.version == expected_version)
            .values(
                balance=balance,
                rank=rank,
                version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
