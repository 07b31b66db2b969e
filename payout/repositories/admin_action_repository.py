"""
Admin action repository.

Append-only audit log of operator actions.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.admin_action import AdminAction
from payout.models.enums import AdminActionType
from payout.repositories.base import BaseRepository


class AdminActionRepository(BaseRepository[AdminAction]):
    """Admin action repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize admin action repository."""
        super().__init__(AdminAction, session)

    async def log_action(
        self,
        action_type: AdminActionType,
        admin_id: int | None = None,
        target_id: int | None = None,
        details: str | None = None,
    ) -> AdminAction:
        """
        Record an operator action.

        Args:
            action_type: Action type
            admin_id: Acting admin (None for jobs)
            target_id: Affected entity ID
            details: Human-readable summary

        Returns:
            Created audit row
        """
        return await self.create(
            action_type=action_type.value,
            admin_id=admin_id,
            target_id=target_id,
            details=details,
        )
