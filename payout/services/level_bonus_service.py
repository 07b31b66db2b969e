"""
Level bonus service.

Operator maintenance of the referral level commission table.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from payout.config.rank_tiers import LEVEL_BONUS_SETTING_KEY
from payout.models.enums import AdminActionType
from payout.repositories.admin_action_repository import AdminActionRepository
from payout.repositories.system_setting_repository import (
    SystemSettingRepository,
)
from payout.repositories.trading_result_repository import (
    TradingResultRepository,
)
from payout.services.base_service import BaseService, transaction
from payout.services.distribution.config_snapshot import (
    ConfigLoader,
    ConfigSnapshot,
    LevelBonusTable,
)
from payout.utils.exceptions import ConfigurationError, InvalidInputError
from payout.validators.trading_result import validate_level_bonus_entries


class LevelBonusService(BaseService):
    """Reads and updates the level bonus table."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize level bonus service."""
        super().__init__(session)
        self.setting_repo = SystemSettingRepository(session)
        self.admin_action_repo = AdminActionRepository(session)
        self.trading_result_repo = TradingResultRepository(session)
        self.config_loader = ConfigLoader(session)

    async def get_level_bonuses(self) -> LevelBonusTable:
        """Level bonus table currently in effect."""
        return await self.config_loader.load_level_bonuses()

    @transaction
    async def update_level_bonuses(
        self, entries: list[dict], admin_id: int | None = None
    ) -> LevelBonusTable:
        """
        Replace the level bonus table.

        Args:
            entries: [{"level": 1, "percentage": 20}, ...]
            admin_id: Operator making the change

        Returns:
            Stored table

        Raises:
            InvalidInputError: If an entry is malformed
            ConfigurationError: If the table does not cover every tier's
                bonus depth, or a distribution run is in progress
        """
        valid, percentages, error = validate_level_bonus_entries(entries)
        if not valid:
            raise InvalidInputError(error)

        table = LevelBonusTable(percentages)
        rank_table = await self.config_loader.load_rank_table()
        # Raises if a tier earns deeper than the new table reaches
        ConfigSnapshot(rank_table=rank_table, level_bonuses=table, network_scale=Decimal("1"))

        in_progress = [
            result.id
            for result in await self.trading_result_repo.get_unprocessed()
            if result.started_at is not None
        ]
        if in_progress:
            raise ConfigurationError(
                f"Distribution in progress for trading results {in_progress}; "
                f"finish it before changing level bonuses"
            )

        await self.setting_repo.set_value(
            LEVEL_BONUS_SETTING_KEY,
            table.to_json(),
            description="Referral commission percentage per level",
        )
        await self.admin_action_repo.log_action(
            AdminActionType.UPDATE_LEVEL_BONUSES,
            admin_id=admin_id,
            details=table.to_json(),
        )

        self.logger.info(
            "Level bonuses updated",
            extra={"admin_id": admin_id, "levels": table.max_level},
        )
        return table
