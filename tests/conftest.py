"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for settings; thresholds unscaled unless a test says so
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("NETWORK_SCALE", "1")
os.environ.setdefault("DEPOSIT_NETWORK", "BSC Mainnet")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import dramatiq
import pytest
import pytest_asyncio
from dramatiq.brokers.stub import StubBroker
from sqlalchemy.ext.asyncio import create_async_engine

# Actors register against a stub broker, never Redis
dramatiq.set_broker(StubBroker())

from payout.config.database import create_session_maker
from payout.models import Base, TradingResult, User
from payout.services.distribution.config_snapshot import (
    ConfigSnapshot,
    LevelBonusTable,
    RankTable,
)
from payout.services.distribution.rank_resolver import RankResolver


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def default_snapshot():
    """Built-in configuration, unscaled."""
    return ConfigSnapshot(
        rank_table=RankTable.defaults(),
        level_bonuses=LevelBonusTable.defaults(),
        network_scale=Decimal("1"),
    )


@pytest.fixture
def resolver(default_snapshot):
    """RankResolver over the built-in configuration."""
    return RankResolver(default_snapshot)


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return create_session_maker(db_engine)


@pytest_asyncio.fixture
async def db_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(db_session, resolver):
    """Create a committed user; rank defaults to the one its balance resolves to."""
    counter = {"n": 0}

    async def _make(
        balance: str | int | Decimal = "0",
        referrer: User | None = None,
        rank: str | None = None,
    ) -> User:
        counter["n"] += 1
        balance = Decimal(str(balance))
        user = User(
            username=f"user{counter['n']}",
            balance=balance,
            rank=rank or resolver.resolve_rank(balance).value,
            referrer_id=referrer.id if referrer else None,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_trading_result(db_session):
    """Create a committed, undistributed trading result."""

    async def _make(
        profit_percent: str | Decimal = "10",
        trading_date: date = date(2024, 6, 3),
    ) -> TradingResult:
        result = TradingResult(
            trading_date=trading_date,
            profit_percent=Decimal(str(profit_percent)),
        )
        db_session.add(result)
        await db_session.commit()
        return result

    return _make


@pytest.fixture
def reload_user(session_maker):
    """Read a user's committed state through a separate session."""

    async def _reload(user_id: int) -> User:
        async with session_maker() as session:
            return await session.get(User, user_id)

    return _reload
