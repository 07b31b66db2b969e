"""
Trading result service.

Operator entry of daily trading results.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.enums import AdminActionType
from payout.models.trading_result import TradingResult
from payout.repositories.admin_action_repository import AdminActionRepository
from payout.repositories.trading_result_repository import (
    TradingResultRepository,
)
from payout.services.base_service import BaseService, transaction
from payout.utils.exceptions import (
    DuplicateTradingDateError,
    InvalidInputError,
    NotFoundError,
)
from payout.validators.trading_result import (
    validate_profit_percent,
    validate_trading_date,
)


class TradingResultService(BaseService):
    """Records and lists trading results."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize trading result service."""
        super().__init__(session)
        self.trading_result_repo = TradingResultRepository(session)
        self.admin_action_repo = AdminActionRepository(session)

    @transaction
    async def record_result(
        self,
        profit_percent: str | Decimal,
        trading_date: str | date,
        description: str | None = None,
        admin_id: int | None = None,
    ) -> TradingResult:
        """
        Record the trading result of a date.

        Args:
            profit_percent: Signed percentage (e.g. "2.5", "-1")
            trading_date: Trading date
            description: Optional operator note
            admin_id: Operator entering the result

        Returns:
            Created trading result (not yet distributed)

        Raises:
            InvalidInputError: If percent or date is invalid
            DuplicateTradingDateError: If the date already has a result
        """
        valid, percent, error = validate_profit_percent(profit_percent)
        if not valid:
            raise InvalidInputError(error)

        valid, parsed_date, error = validate_trading_date(trading_date)
        if not valid:
            raise InvalidInputError(error)

        if await self.trading_result_repo.get_by_date(parsed_date):
            raise DuplicateTradingDateError(
                f"Trading result for {parsed_date.isoformat()} already exists"
            )

        try:
            result = await self.trading_result_repo.create(
                trading_date=parsed_date,
                profit_percent=percent,
                description=description,
                created_by=admin_id,
            )
        except IntegrityError as e:
            raise DuplicateTradingDateError(
                f"Trading result for {parsed_date.isoformat()} already exists"
            ) from e

        await self.admin_action_repo.log_action(
            AdminActionType.INPUT_TRADING_RESULT,
            admin_id=admin_id,
            target_id=result.id,
            details=f"Input trading result {percent}% for {parsed_date.isoformat()}",
        )

        self.logger.info(
            "Trading result recorded",
            extra={
                "trading_result_id": result.id,
                "trading_date": parsed_date.isoformat(),
                "profit_percent": str(percent),
                "admin_id": admin_id,
            },
        )
        return result

    async def get_result(self, trading_result_id: int) -> TradingResult:
        """
        Get trading result by ID.

        Raises:
            NotFoundError: If it does not exist
        """
        result = await self.trading_result_repo.get_by_id(trading_result_id)
        if result is None:
            raise NotFoundError("TradingResult", trading_result_id)
        return result

    async def get_pending_results(self) -> list[TradingResult]:
        """Trading results awaiting distribution, oldest first."""
        return await self.trading_result_repo.get_unprocessed()
