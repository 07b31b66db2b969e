"""
Integration tests for profit distribution.

Covers:
- Profit, rank and commission amounts for a simple referral tree
- Exactly-once distribution per trading result
- Losses, zero balances and zero user shares
- Referral cycles isolated to one walk
- Resuming an interrupted run from its pending users
- Ledger reconciliation
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from payout.config.rank_tiers import LEVEL_BONUS_SETTING_KEY, RANK_TIERS, RankTier
from payout.models import (
    AdminAction,
    AdminActionType,
    BonusHistory,
    DistributionMarker,
    MarkerStatus,
    ProfitHistory,
    RankTierConfig,
    TradingResult,
    Transaction,
    TransactionType,
)
from payout.repositories.system_setting_repository import SystemSettingRepository
from payout.services.distribution.config_snapshot import LevelBonusTable
from payout.services.distribution.ledger_recorder import LedgerRecorder
from payout.services.distribution.profit_distributor import ProfitDistributor
from payout.utils.exceptions import (
    AlreadyProcessedError,
    ConfigurationError,
    NotFoundError,
)


async def _distribute(session_maker, trading_result_id: int, **kwargs):
    async with session_maker() as session:
        return await ProfitDistributor(session).distribute(trading_result_id, **kwargs)


async def _count(session_maker, model, *criteria) -> int:
    async with session_maker() as session:
        return await session.scalar(select(func.count(model.id)).where(*criteria))


async def _reconcile(session_maker, trading_result_id: int):
    async with session_maker() as session:
        return await LedgerRecorder(session).reconcile(trading_result_id)


@pytest.fixture
def fail_profit_once_for(monkeypatch):
    """Make record_profit raise once for the given user, like a dropped connection."""
    original = LedgerRecorder.record_profit

    def _install(user_id: int):
        state = {"failed": False}

        async def flaky(self, **kwargs):
            if kwargs["user_id"] == user_id and not state["failed"]:
                state["failed"] = True
                raise RuntimeError("connection lost")
            return await original(self, **kwargs)

        monkeypatch.setattr(LedgerRecorder, "record_profit", flaky)

    return _install


class TestDistributionAmounts:
    """Profit and commission arithmetic."""

    @pytest.mark.asyncio
    async def test_investor_profit_and_direct_referrer_bonus(
        self, session_maker, make_user, make_trading_result, reload_user
    ):
        """1000 at INVESTOR, +10%: profit 60, balance 1060, referrer gets 8."""
        referrer = await make_user("600")  # BEGINNER 55/45
        investor = await make_user("1000", referrer=referrer)
        trading_result = await make_trading_result("10")

        summary = await _distribute(session_maker, trading_result.id, admin_id=7)

        refreshed = await reload_user(investor.id)
        assert refreshed.balance == Decimal("1060")
        assert refreshed.rank == RankTier.INVESTOR.value

        # Own profit 600 * 10% * 55% = 33, plus the 8 commission
        assert (await reload_user(referrer.id)).balance == Decimal("641")

        assert summary.users_affected == 2
        assert summary.total_profit_distributed == Decimal("93")
        assert summary.total_bonus_distributed == Decimal("8")
        assert summary.bonus_walks_aborted == 0
        assert summary.resumed is False
        assert summary.as_dict()["usersAffected"] == 2
        assert Decimal(summary.as_dict()["totalBonusDistributed"]) == Decimal("8")

    @pytest.mark.asyncio
    async def test_ledger_rows(
        self, session_maker, make_user, make_trading_result
    ):
        investor = await make_user("1000")
        trading_result = await make_trading_result("10")

        await _distribute(session_maker, trading_result.id)

        async with session_maker() as session:
            profit = await session.scalar(
                select(ProfitHistory).where(ProfitHistory.user_id == investor.id)
            )
            transaction = await session.scalar(
                select(Transaction).where(Transaction.user_id == investor.id)
            )

        assert profit.base_balance == Decimal("1000")
        assert profit.rank == "INVESTOR"
        assert profit.user_share_percent == Decimal("60")
        assert profit.profit_amount == Decimal("60")
        assert profit.trading_date == trading_result.trading_date
        assert transaction.type == TransactionType.PROFIT.value
        assert transaction.amount == Decimal("60")
        assert transaction.remarks == "Profit distribution for Mon Jun 03 2024"

    @pytest.mark.asyncio
    async def test_profit_uses_snapshot_balance(
        self, db_session, session_maker, make_user, make_trading_result, reload_user
    ):
        """A commission received earlier in the run does not inflate own profit."""
        investor = await make_user("1000")
        vip = await make_user("5000")
        investor.referrer_id = vip.id
        await db_session.commit()
        trading_result = await make_trading_result("10")

        await _distribute(session_maker, trading_result.id)

        # 8 commission from the investor, then 5000 * 10% * 80% on the snapshot
        assert (await reload_user(vip.id)).balance == Decimal("5408")

    @pytest.mark.asyncio
    async def test_loss_debits_uplines(
        self, session_maker, make_user, make_trading_result, reload_user
    ):
        """Negative results debit users and their eligible uplines, ranks re-resolved."""
        vip = await make_user("5000")
        investor = await make_user("1000", referrer=vip)
        trading_result = await make_trading_result("-10")

        summary = await _distribute(session_maker, trading_result.id)

        refreshed = await reload_user(investor.id)
        assert refreshed.balance == Decimal("940")
        assert refreshed.rank == RankTier.BEGINNER.value

        # Own loss 5000 * -10% * 80% = -400, then 20% of the investor's -40
        refreshed_vip = await reload_user(vip.id)
        assert refreshed_vip.balance == Decimal("4592")
        assert refreshed_vip.rank == RankTier.INVESTOR.value

        assert summary.total_profit_distributed == Decimal("-460")
        assert summary.total_bonus_distributed == Decimal("-8")

        async with session_maker() as session:
            rows = list((await session.scalars(select(BonusHistory))).all())
        assert len(rows) == 1
        assert rows[0].user_id == vip.id
        assert rows[0].level == 1
        assert rows[0].calculated_from == Decimal("-40")
        assert rows[0].bonus_amount == Decimal("-8")
        assert (await _reconcile(session_maker, trading_result.id)).is_balanced

    @pytest.mark.asyncio
    async def test_only_positive_balances_distributed(
        self, session_maker, make_user, make_trading_result, reload_user
    ):
        await make_user("1000")
        empty = await make_user("0")
        overdrawn = await make_user("-50")
        trading_result = await make_trading_result("10")

        summary = await _distribute(session_maker, trading_result.id)

        assert summary.users_affected == 1
        assert (await reload_user(empty.id)).balance == Decimal("0")
        assert (await reload_user(overdrawn.id)).balance == Decimal("-50")

    @pytest.mark.asyncio
    async def test_zero_user_share_skips_bonus_walk(
        self, db_session, session_maker, make_user, make_trading_result, reload_user
    ):
        """A 0/100 split credits no profit and pays no commissions for that user."""
        for defaults in RANK_TIERS:
            values = {**defaults._asdict(), "tier": defaults.tier.value}
            if defaults.tier == RankTier.STARTER:
                values.update(
                    profit_share_user=Decimal("0"), profit_share_company=Decimal("100")
                )
            db_session.add(RankTierConfig(**values))
        await db_session.commit()

        vip = await make_user("5000")
        starter = await make_user("200", referrer=vip)
        trading_result = await make_trading_result("10")

        summary = await _distribute(session_maker, trading_result.id)

        assert (await reload_user(starter.id)).balance == Decimal("200")
        # Own profit only
        assert (await reload_user(vip.id)).balance == Decimal("5400")
        assert summary.users_affected == 2
        assert summary.total_bonus_distributed == Decimal("0")
        assert await _count(session_maker, BonusHistory) == 0


class TestExactlyOnce:
    """Idempotence and guards."""

    @pytest.mark.asyncio
    async def test_second_distribution_rejected(
        self, session_maker, make_user, make_trading_result, reload_user
    ):
        referrer = await make_user("600")
        investor = await make_user("1000", referrer=referrer)
        trading_result = await make_trading_result("10")

        first = await _distribute(session_maker, trading_result.id)
        ledger_rows = await _count(session_maker, Transaction)

        with pytest.raises(AlreadyProcessedError):
            await _distribute(session_maker, trading_result.id)

        assert (await reload_user(investor.id)).balance == Decimal("1060")
        assert (await reload_user(referrer.id)).balance == Decimal("641")
        assert await _count(session_maker, Transaction) == ledger_rows
        assert first.processed_at is not None

    @pytest.mark.asyncio
    async def test_unknown_trading_result(self, session_maker, make_user):
        await make_user("1000")

        with pytest.raises(NotFoundError):
            await _distribute(session_maker, 999)

        assert await _count(session_maker, DistributionMarker) == 0

    @pytest.mark.asyncio
    async def test_processed_at_and_audit(
        self, session_maker, make_user, make_trading_result
    ):
        await make_user("1000")
        trading_result = await make_trading_result("10")

        await _distribute(session_maker, trading_result.id, admin_id=7)

        async with session_maker() as session:
            stored = await session.get(TradingResult, trading_result.id)
            action = await session.scalar(
                select(AdminAction).where(
                    AdminAction.action_type == AdminActionType.DISTRIBUTE_PROFIT.value
                )
            )

        assert stored.processed_at is not None
        assert stored.config_version is not None
        assert action.admin_id == 7
        assert action.target_id == trading_result.id


class TestReferralCyclesInRun:
    """Cycles abort single walks, never the run."""

    @pytest.mark.asyncio
    async def test_cycle_isolated(
        self, db_session, session_maker, make_user, make_trading_result
    ):
        a = await make_user("5000")
        b = await make_user("5000", referrer=a)
        a.referrer_id = b.id
        await db_session.commit()
        await make_user("1000", referrer=a)
        trading_result = await make_trading_result("10")

        summary = await _distribute(session_maker, trading_result.id)

        assert summary.users_affected == 3
        assert summary.bonus_walks_aborted == 3
        assert summary.total_bonus_distributed > 0
        assert (await _reconcile(session_maker, trading_result.id)).is_balanced


class TestResume:
    """Interrupted runs resume from pending markers."""

    @pytest.mark.asyncio
    async def test_resume_credits_each_user_once(
        self,
        session_maker,
        make_user,
        make_trading_result,
        reload_user,
        fail_profit_once_for,
    ):
        first = await make_user("1000")
        second = await make_user("1000")
        trading_result = await make_trading_result("10")
        fail_profit_once_for(second.id)

        with pytest.raises(RuntimeError):
            await _distribute(session_maker, trading_result.id)

        assert (await reload_user(first.id)).balance == Decimal("1060")
        assert (await reload_user(second.id)).balance == Decimal("1000")
        assert await _count(
            session_maker,
            DistributionMarker,
            DistributionMarker.status == MarkerStatus.PENDING.value,
        ) == 1

        # Joins after the snapshot: not part of this run
        latecomer = await make_user("1000")

        summary = await _distribute(session_maker, trading_result.id)

        assert summary.resumed is True
        assert summary.users_affected == 2
        assert summary.total_profit_distributed == Decimal("120")
        assert (await reload_user(first.id)).balance == Decimal("1060")
        assert (await reload_user(second.id)).balance == Decimal("1060")
        assert (await reload_user(latecomer.id)).balance == Decimal("1000")
        assert (await _reconcile(session_maker, trading_result.id)).is_balanced

    @pytest.mark.asyncio
    async def test_resume_refuses_changed_config(
        self, session_maker, make_user, make_trading_result, fail_profit_once_for
    ):
        await make_user("1000")
        second = await make_user("1000")
        trading_result = await make_trading_result("10")
        fail_profit_once_for(second.id)

        with pytest.raises(RuntimeError):
            await _distribute(session_maker, trading_result.id)

        async with session_maker() as session:
            await SystemSettingRepository(session).set_value(
                LEVEL_BONUS_SETTING_KEY,
                LevelBonusTable({level: Decimal("5") for level in range(1, 11)}).to_json(),
            )
            await session.commit()

        with pytest.raises(ConfigurationError, match="changed"):
            await _distribute(session_maker, trading_result.id)

        async with session_maker() as session:
            stored = await session.get(TradingResult, trading_result.id)
        assert stored.processed_at is None


class TestReconciliation:
    """Ledger rows agree with the run."""

    @pytest.mark.asyncio
    async def test_tree_reconciles(
        self, session_maker, make_user, make_trading_result
    ):
        root = await make_user("12000")
        left = await make_user("5000", referrer=root)
        right = await make_user("700", referrer=root)
        await make_user("1000", referrer=left)
        await make_user("333.33", referrer=left)
        await make_user("1500", referrer=right)
        trading_result = await make_trading_result("3.1415")

        summary = await _distribute(session_maker, trading_result.id)
        report = await _reconcile(session_maker, trading_result.id)

        assert report.is_balanced
        assert report.ledger.profit_total == summary.total_profit_distributed
        assert report.ledger.bonus_total == summary.total_bonus_distributed
        assert report.ledger.transaction_entries == (
            report.ledger.profit_entries + report.ledger.bonus_entries
        )
        assert await _count(
            session_maker,
            Transaction,
            Transaction.type == TransactionType.BONUS.value,
        ) == report.ledger.bonus_entries

    @pytest.mark.asyncio
    async def test_user_history(
        self, session_maker, make_user, make_trading_result
    ):
        referrer = await make_user("600")
        investor = await make_user("1000", referrer=referrer)
        first = await make_trading_result("10", trading_date=date(2024, 6, 3))
        second = await make_trading_result("5", trading_date=date(2024, 6, 4))

        await _distribute(session_maker, first.id)
        await _distribute(session_maker, second.id)

        async with session_maker() as session:
            ledger = LedgerRecorder(session)
            profits = await ledger.get_profit_history(investor.id)
            bonuses = await ledger.get_bonus_history(referrer.id, limit=1)

        assert [row.trading_date for row in profits] == [
            date(2024, 6, 4),
            date(2024, 6, 3),
        ]
        # Second run: 1060 * 5% * 60% = 31.8
        assert profits[0].base_balance == Decimal("1060")
        assert profits[0].profit_amount == Decimal("31.8")
        assert len(bonuses) == 1
        assert bonuses[0].source_user_id == investor.id
        assert bonuses[0].level == 1
