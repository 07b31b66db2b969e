"""
Admin action model.

Audit trail of operator actions.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from payout.models.base import Base


class AdminAction(Base):
    """One audited operator action."""

    __tablename__ = "admin_actions"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    # None for actions triggered by jobs
    admin_id: Mapped[int | None] = mapped_column(
        Integer, index=True, nullable=True
    )
    # AdminActionType value
    action_type: Mapped[str] = mapped_column(
        String(50), index=True, nullable=False
    )
    target_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<AdminAction(id={self.id}, action_type={self.action_type}, "
            f"target_id={self.target_id})>"
        )
