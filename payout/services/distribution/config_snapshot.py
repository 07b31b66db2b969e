"""
Distribution configuration snapshot.

Rank table and level bonus table loaded once per distribution run, validated,
and fingerprinted so a run is reproducible from its inputs.
"""

import hashlib
import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from payout.config.rank_tiers import (
    DEFAULT_LEVEL_BONUSES,
    LEVEL_BONUS_SETTING_KEY,
    MAX_REFERRAL_DEPTH,
    RANK_TIERS,
    RankTier,
)
from payout.config.settings import settings
from payout.repositories.rank_tier_config_repository import (
    RankTierConfigRepository,
)
from payout.repositories.system_setting_repository import (
    SystemSettingRepository,
)
from payout.utils.exceptions import ConfigurationError

HUNDRED = Decimal("100")


def _canonical(value: Decimal) -> str:
    """Scale-independent text form (100.00000000 and 100 fingerprint alike)."""
    return format(value.normalize(), "f")


@dataclass(frozen=True)
class RankTierEntry:
    """One row of the rank table."""

    tier: RankTier
    display_name: str
    min_balance: Decimal
    max_balance: Decimal | None
    bonus_levels: int
    profit_share_user: Decimal
    profit_share_company: Decimal

    def as_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            "min_balance": _canonical(self.min_balance),
            "max_balance": None if self.max_balance is None else _canonical(self.max_balance),
            "bonus_levels": self.bonus_levels,
            "profit_share_user": _canonical(self.profit_share_user),
            "profit_share_company": _canonical(self.profit_share_company),
        }


class RankTable:
    """
    Balance corridor → tier mapping.

    Corridors are [min_balance, max_balance), ascending and contiguous; the
    top tier is unbounded. Each tier's profit split sums to 100 and its bonus
    depth lies within 0..MAX_REFERRAL_DEPTH.
    """

    def __init__(self, entries: list[RankTierEntry]) -> None:
        self._entries = tuple(sorted(entries, key=lambda e: e.min_balance))
        self._by_tier = {entry.tier: entry for entry in self._entries}
        self._validate()

    def _validate(self) -> None:
        if not self._entries:
            raise ConfigurationError("Rank table is empty")

        if len(self._by_tier) != len(self._entries):
            raise ConfigurationError("Rank table defines a tier more than once")

        previous: RankTierEntry | None = None
        for entry in self._entries:
            if entry.min_balance < 0:
                raise ConfigurationError(
                    f"Tier {entry.tier.value}: min_balance must be non-negative"
                )
            if entry.profit_share_user < 0 or entry.profit_share_company < 0:
                raise ConfigurationError(
                    f"Tier {entry.tier.value}: profit shares must be non-negative"
                )
            if entry.profit_share_user + entry.profit_share_company != HUNDRED:
                raise ConfigurationError(
                    f"Tier {entry.tier.value}: profit shares must sum to 100, "
                    f"got {entry.profit_share_user} + {entry.profit_share_company}"
                )
            if not 0 <= entry.bonus_levels <= MAX_REFERRAL_DEPTH:
                raise ConfigurationError(
                    f"Tier {entry.tier.value}: bonus_levels must be within "
                    f"0..{MAX_REFERRAL_DEPTH}, got {entry.bonus_levels}"
                )
            if previous is not None:
                if entry.min_balance == previous.min_balance:
                    raise ConfigurationError(
                        f"Tiers {previous.tier.value} and {entry.tier.value} "
                        f"share min_balance {entry.min_balance}"
                    )
                if previous.max_balance != entry.min_balance:
                    raise ConfigurationError(
                        f"Gap or overlap between {previous.tier.value} "
                        f"(max {previous.max_balance}) and {entry.tier.value} "
                        f"(min {entry.min_balance})"
                    )
            previous = entry

        if self._entries[-1].max_balance is not None:
            raise ConfigurationError(
                f"Top tier {self._entries[-1].tier.value} must be unbounded"
            )

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def lowest(self) -> RankTierEntry:
        """Floor tier."""
        return self._entries[0]

    @property
    def max_bonus_levels(self) -> int:
        """Deepest level any tier can earn on."""
        return max(entry.bonus_levels for entry in self._entries)

    def get(self, tier: RankTier | str) -> RankTierEntry:
        """
        Look up a tier.

        Args:
            tier: RankTier or its value

        Returns:
            Tier entry

        Raises:
            ConfigurationError: If the tier is not defined
        """
        try:
            entry = self._by_tier.get(RankTier(tier))
        except ValueError:
            entry = None

        if entry is None:
            logger.error(
                "Unknown rank tier requested",
                extra={"tier": str(tier)},
            )
            raise ConfigurationError(f"Rank tier {tier!r} is not configured")

        return entry

    @classmethod
    def defaults(cls) -> "RankTable":
        """Built-in rank table."""
        return cls([RankTierEntry(**defaults._asdict()) for defaults in RANK_TIERS])


class LevelBonusTable:
    """
    Referral depth → commission percentage.

    Levels are contiguous from 1 and never deeper than MAX_REFERRAL_DEPTH.
    """

    def __init__(self, percentages: dict[int, Decimal]) -> None:
        self._percentages = dict(sorted(percentages.items()))
        self._validate()

    def _validate(self) -> None:
        if not self._percentages:
            raise ConfigurationError("Level bonus table is empty")

        levels = list(self._percentages)
        if levels != list(range(1, len(levels) + 1)):
            raise ConfigurationError(
                f"Level bonus levels must be contiguous from 1, got {levels}"
            )
        if len(levels) > MAX_REFERRAL_DEPTH:
            raise ConfigurationError(
                f"Level bonus table deeper than {MAX_REFERRAL_DEPTH} levels"
            )

        for level, percentage in self._percentages.items():
            if not 0 <= percentage <= HUNDRED:
                raise ConfigurationError(
                    f"Level {level}: percentage must be within 0..100, "
                    f"got {percentage}"
                )

    def __len__(self) -> int:
        return len(self._percentages)

    @property
    def max_level(self) -> int:
        return len(self._percentages)

    def items(self):
        return self._percentages.items()

    def percentage_for(self, level: int) -> Decimal:
        """
        Commission percentage for a referral level.

        Args:
            level: Referral depth (1 = direct referrer)

        Returns:
            Percentage (e.g. 20 for 20%)

        Raises:
            ConfigurationError: If the level is not configured
        """
        try:
            return self._percentages[level]
        except KeyError:
            raise ConfigurationError(
                f"No level bonus configured for level {level}"
            ) from None

    def as_list(self) -> list[dict]:
        """Serializable form, as stored in system settings."""
        return [
            {"level": level, "percentage": str(percentage)}
            for level, percentage in self._percentages.items()
        ]

    def to_json(self) -> str:
        return json.dumps(self.as_list())

    @classmethod
    def from_entries(cls, entries: list[dict]) -> "LevelBonusTable":
        """
        Build table from [{"level": 1, "percentage": 20}, ...].

        Raises:
            ConfigurationError: If an entry is malformed or a level repeats
        """
        percentages: dict[int, Decimal] = {}
        for entry in entries:
            try:
                level = int(entry["level"])
                percentage = Decimal(str(entry["percentage"]))
            except (KeyError, TypeError, ValueError, InvalidOperation) as e:
                raise ConfigurationError(
                    f"Malformed level bonus entry {entry!r}"
                ) from e
            if level in percentages:
                raise ConfigurationError(f"Level {level} defined more than once")
            percentages[level] = percentage
        return cls(percentages)

    @classmethod
    def from_json(cls, raw: str) -> "LevelBonusTable":
        """
        Parse the stored LEVEL_BONUS_PERCENTAGES setting.

        Raises:
            ConfigurationError: If the value is not a JSON list of entries
        """
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"{LEVEL_BONUS_SETTING_KEY} is not valid JSON: {e}"
            ) from e
        if not isinstance(entries, list):
            raise ConfigurationError(
                f"{LEVEL_BONUS_SETTING_KEY} must be a JSON list"
            )
        return cls.from_entries(entries)

    @classmethod
    def defaults(cls) -> "LevelBonusTable":
        """Built-in level bonus table."""
        return cls(DEFAULT_LEVEL_BONUSES)


@dataclass(frozen=True)
class ConfigSnapshot:
    """Immutable configuration of one distribution run."""

    rank_table: RankTable
    level_bonuses: LevelBonusTable
    network_scale: Decimal

    def __post_init__(self) -> None:
        if self.network_scale <= 0:
            raise ConfigurationError(
                f"Network scale must be positive, got {self.network_scale}"
            )
        if self.level_bonuses.max_level < self.rank_table.max_bonus_levels:
            raise ConfigurationError(
                f"Level bonus table covers {self.level_bonuses.max_level} "
                f"levels but a tier earns down to level "
                f"{self.rank_table.max_bonus_levels}"
            )

    @property
    def version(self) -> str:
        """Stable fingerprint of the snapshot contents."""
        payload = json.dumps(
            {
                "tiers": [entry.as_dict() for entry in self.rank_table],
                "levels": [
                    [level, _canonical(pct)]
                    for level, pct in self.level_bonuses.items()
                ],
                "network_scale": _canonical(self.network_scale),
            },
            sort_keys=True,
        )
        return hashlib.sha256(payload.encode()).hexdigest()[:16]


class ConfigLoader:
    """Loads a ConfigSnapshot from the configuration store."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize config loader.

        Args:
            session: Database session
        """
        self.session = session
        self.tier_repo = RankTierConfigRepository(session)
        self.setting_repo = SystemSettingRepository(session)

    async def load(self, network_scale: Decimal | None = None) -> ConfigSnapshot:
        """
        Load and validate the current configuration.

        Database rows override the built-in defaults; invalid stored
        configuration raises instead of falling back.

        Args:
            network_scale: Override for settings.get_network_scale()

        Returns:
            Validated ConfigSnapshot

        Raises:
            ConfigurationError: If stored configuration is invalid
        """
        rank_table = await self.load_rank_table()
        level_bonuses = await self.load_level_bonuses()

        snapshot = ConfigSnapshot(
            rank_table=rank_table,
            level_bonuses=level_bonuses,
            network_scale=(
                network_scale
                if network_scale is not None
                else settings.get_network_scale()
            ),
        )

        logger.debug(
            "Distribution config loaded",
            extra={
                "version": snapshot.version,
                "tiers": len(rank_table),
                "levels": len(level_bonuses),
                "network_scale": str(snapshot.network_scale),
            },
        )
        return snapshot

    async def load_rank_table(self) -> RankTable:
        """Rank table from rank_tier_configs, or built-in defaults."""
        rows = await self.tier_repo.get_ordered_tiers(active_only=True)
        if not rows:
            return RankTable.defaults()

        entries = []
        for row in rows:
            try:
                tier = RankTier(row.tier)
            except ValueError as e:
                raise ConfigurationError(
                    f"Unknown tier {row.tier!r} in rank_tier_configs"
                ) from e
            entries.append(
                RankTierEntry(
                    tier=tier,
                    display_name=row.display_name,
                    min_balance=row.min_balance,
                    max_balance=row.max_balance,
                    bonus_levels=row.bonus_levels,
                    profit_share_user=row.profit_share_user,
                    profit_share_company=row.profit_share_company,
                )
            )
        return RankTable(entries)

    async def load_level_bonuses(self) -> LevelBonusTable:
        """Level bonus table from system settings, or built-in defaults."""
        raw = await self.setting_repo.get_value(LEVEL_BONUS_SETTING_KEY)
        if raw is None:
            return LevelBonusTable.defaults()
        return LevelBonusTable.from_json(raw)
