"""
System setting repository.

Key/value access for operator-editable configuration.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from payout.models.system_setting import SystemSetting
from payout.repositories.base import BaseRepository


class SystemSettingRepository(BaseRepository[SystemSetting]):
    """System setting repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize system setting repository."""
        super().__init__(SystemSetting, session)

    async def get_value(self, key: str) -> str | None:
        """
        Get raw setting value.

        Args:
            key: Setting key

        Returns:
            Stored value or None if unset
        """
        setting = await self.get_by(key=key)
        return setting.value if setting else None

    async def set_value(
        self, key: str, value: str, description: str | None = None
    ) -> SystemSetting:
        """
        Insert or update a setting.

        Args:
            key: Setting key
            value: New value
            description: Optional description

        Returns:
            Stored setting
        """
        setting = await self.get_by(key=key)
        if setting is None:
            return await self.create(
                key=key, value=value, description=description
            )

        setting.value = value
        if description is not None:
            setting.description = description
        await self.session.flush()
        return setting
