#!/usr/bin/env python3
"""
Initialize database tables and seed distribution configuration.

Usage:
    python scripts/init_database.py              # Create tables
    python scripts/init_database.py --seed-tiers # Also store default rank tiers
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine

from payout.config.database import create_session_maker
from payout.config.rank_tiers import LEVEL_BONUS_SETTING_KEY, RANK_TIERS
from payout.config.settings import settings
from payout.models import Base, RankTierConfig
from payout.repositories.rank_tier_config_repository import (
    RankTierConfigRepository,
)
from payout.repositories.system_setting_repository import (
    SystemSettingRepository,
)
from payout.services.distribution.config_snapshot import LevelBonusTable

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database(seed_tiers: bool = False) -> None:
    """Create all database tables, optionally seeding default configuration."""
    logger.info("Connecting to database...")
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    if seed_tiers:
        async with create_session_maker(engine)() as session:
            tier_repo = RankTierConfigRepository(session)
            if await tier_repo.count() == 0:
                for defaults in RANK_TIERS:
                    session.add(
                        RankTierConfig(
                            **{**defaults._asdict(), "tier": defaults.tier.value}
                        )
                    )
                logger.info(f"Seeded {len(RANK_TIERS)} rank tiers")
            else:
                logger.info("Rank tiers already configured, left unchanged")

            setting_repo = SystemSettingRepository(session)
            if await setting_repo.get_value(LEVEL_BONUS_SETTING_KEY) is None:
                await setting_repo.set_value(
                    LEVEL_BONUS_SETTING_KEY,
                    LevelBonusTable.defaults().to_json(),
                    description="Referral commission percentage per level",
                )
                logger.info("Seeded default level bonuses")

            await session.commit()

    await engine.dispose()
    logger.success("Database initialized successfully!")


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialize database tables")
    parser.add_argument(
        "--seed-tiers",
        action="store_true",
        help="Store default rank tiers and level bonuses if none are configured",
    )
    args = parser.parse_args()
    asyncio.run(init_database(seed_tiers=args.seed_tiers))


if __name__ == "__main__":
    main()
