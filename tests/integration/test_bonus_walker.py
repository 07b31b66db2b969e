"""
Integration tests for referral bonus walks.

Covers:
- Level rates applied to the company portion
- Ineligible hops skipped without ending the walk
- Ten-hop limit
- Cycle detection with partial credit kept
- Dangling referrer ids
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from payout.models import BonusHistory, Transaction, TransactionType
from payout.services.distribution.balance_writer import BalanceWriter
from payout.services.distribution.bonus_walker import BonusWalker
from payout.services.distribution.ledger_recorder import LedgerRecorder
from payout.utils.exceptions import ReferralCycleError


@pytest.fixture
def walker(db_session, resolver):
    ledger = LedgerRecorder(db_session)
    return BonusWalker(db_session, resolver, BalanceWriter(db_session, resolver), ledger)


async def _bonus_rows(session) -> list[BonusHistory]:
    result = await session.execute(select(BonusHistory).order_by(BonusHistory.level))
    return list(result.scalars().all())


class TestBonusWalk:
    """Commission walk up one referral chain."""

    @pytest.mark.asyncio
    async def test_direct_referrer_gets_level_one_rate(
        self, walker, db_session, make_user, make_trading_result, reload_user
    ):
        """Company portion 40 at 20% credits the direct referrer exactly 8."""
        trading_result = await make_trading_result("10")
        referrer = await make_user("600")
        source = await make_user("1000", referrer=referrer)

        result = await walker.walk_and_credit(source, Decimal("40"), trading_result)
        await db_session.commit()

        assert result.total_credited == Decimal("8")
        assert result.hops_credited == 1
        assert (await reload_user(referrer.id)).balance == Decimal("608")

        rows = await _bonus_rows(db_session)
        assert len(rows) == 1
        assert rows[0].user_id == referrer.id
        assert rows[0].source_user_id == source.id
        assert rows[0].level == 1
        assert rows[0].rate == Decimal("20")
        assert rows[0].calculated_from == Decimal("40")
        assert rows[0].bonus_amount == Decimal("8")

        remarks = await db_session.scalar(
            select(Transaction.remarks).where(
                Transaction.type == TransactionType.BONUS.value
            )
        )
        assert remarks == "Level 1 network bonus"

    @pytest.mark.asyncio
    async def test_ineligible_hops_are_skipped(
        self, walker, db_session, make_user, make_trading_result, reload_user
    ):
        """STARTER and too-shallow tiers are skipped; the walk goes on past them."""
        trading_result = await make_trading_result("10")
        level5 = await make_user("5000")  # VIP, 10 levels
        level4 = await make_user("600", referrer=level5)  # BEGINNER, 3 levels
        level3 = await make_user("700", referrer=level4)  # BEGINNER
        level2 = await make_user("800", referrer=level3)  # BEGINNER
        level1 = await make_user("200", referrer=level2)  # STARTER, 0 levels
        source = await make_user("1000", referrer=level1)

        result = await walker.walk_and_credit(source, Decimal("40"), trading_result)
        await db_session.commit()

        # 4% of 40 at levels 2, 3 and 5
        assert result.total_credited == Decimal("4.8")
        assert result.hops_visited == 5
        assert result.hops_credited == 3
        assert (await reload_user(level1.id)).balance == Decimal("200")
        assert (await reload_user(level2.id)).balance == Decimal("801.6")
        assert (await reload_user(level3.id)).balance == Decimal("701.6")
        assert (await reload_user(level4.id)).balance == Decimal("600")
        assert (await reload_user(level5.id)).balance == Decimal("5001.6")
        assert [row.level for row in await _bonus_rows(db_session)] == [2, 3, 5]

    @pytest.mark.asyncio
    async def test_walk_stops_after_ten_hops(
        self, walker, db_session, make_user, make_trading_result, reload_user
    ):
        """A 12-deep chain of VIPs credits levels 1..10 only."""
        trading_result = await make_trading_result("10")
        upline = []
        referrer = None
        for _ in range(12):
            referrer = await make_user("5000", referrer=referrer)
            upline.append(referrer)
        source = await make_user("1000", referrer=upline[-1])

        result = await walker.walk_and_credit(source, Decimal("100"), trading_result)
        await db_session.commit()

        # 20 + 9 * 4
        assert result.total_credited == Decimal("56")
        assert result.hops_visited == 10
        # upline[-1] is level 1, upline[1] level 11, upline[0] level 12
        assert (await reload_user(upline[1].id)).balance == Decimal("5000")
        assert (await reload_user(upline[0].id)).balance == Decimal("5000")
        assert (await reload_user(upline[2].id)).balance == Decimal("5004")

    @pytest.mark.asyncio
    async def test_explicit_depth_capped_at_ten(
        self, db_session, resolver, make_user, make_trading_result, reload_user
    ):
        """max_depth=12 still stops after level 10 instead of failing at 11."""
        walker = BonusWalker(
            db_session,
            resolver,
            BalanceWriter(db_session, resolver),
            LedgerRecorder(db_session),
            max_depth=12,
        )
        assert walker.max_depth == 10

        trading_result = await make_trading_result("10")
        referrer = None
        upline = []
        for _ in range(12):
            referrer = await make_user("5000", referrer=referrer)
            upline.append(referrer)
        source = await make_user("1000", referrer=upline[-1])

        result = await walker.walk_and_credit(source, Decimal("100"), trading_result)
        await db_session.commit()

        assert result.total_credited == Decimal("56")
        assert result.hops_visited == 10
        assert (await reload_user(upline[1].id)).balance == Decimal("5000")

    @pytest.mark.asyncio
    async def test_zero_depth_walks_nothing(
        self, db_session, resolver, make_user, make_trading_result, reload_user
    ):
        walker = BonusWalker(
            db_session,
            resolver,
            BalanceWriter(db_session, resolver),
            LedgerRecorder(db_session),
            max_depth=0,
        )
        trading_result = await make_trading_result("10")
        referrer = await make_user("5000")
        source = await make_user("1000", referrer=referrer)

        result = await walker.walk_and_credit(source, Decimal("40"), trading_result)
        await db_session.commit()

        assert result.total_credited == Decimal("0")
        assert result.hops_visited == 0
        assert (await reload_user(referrer.id)).balance == Decimal("5000")

    @pytest.mark.asyncio
    async def test_negative_portion_debits_uplines(
        self, walker, db_session, make_user, make_trading_result, reload_user
    ):
        """A loss-making trade passes its negative company portion up the chain."""
        trading_result = await make_trading_result("-10")
        referrer = await make_user("5000")
        source = await make_user("1000", referrer=referrer)

        result = await walker.walk_and_credit(source, Decimal("-40"), trading_result)
        await db_session.commit()

        assert result.total_credited == Decimal("-8")
        assert result.hops_credited == 1
        assert (await reload_user(referrer.id)).balance == Decimal("4992")

        rows = await _bonus_rows(db_session)
        assert len(rows) == 1
        assert rows[0].bonus_amount == Decimal("-8")
        assert rows[0].calculated_from == Decimal("-40")

    @pytest.mark.asyncio
    async def test_rank_change_from_bonus(
        self, walker, db_session, make_user, make_trading_result, reload_user
    ):
        """A bonus that crosses a threshold re-resolves the referrer's rank."""
        trading_result = await make_trading_result("10")
        referrer = await make_user("995")
        source = await make_user("1000", referrer=referrer)

        await walker.walk_and_credit(source, Decimal("40"), trading_result)
        await db_session.commit()

        refreshed = await reload_user(referrer.id)
        assert refreshed.balance == Decimal("1003")
        assert refreshed.rank == "INVESTOR"
        assert refreshed.version == 2

    @pytest.mark.asyncio
    async def test_no_referrer(self, walker, make_user, make_trading_result):
        trading_result = await make_trading_result("10")
        source = await make_user("1000")

        result = await walker.walk_and_credit(source, Decimal("40"), trading_result)

        assert result.total_credited == Decimal("0")
        assert result.hops_visited == 0


class TestReferralIntegrity:
    """Broken referral graphs."""

    @pytest.mark.asyncio
    async def test_cycle_raises_with_partial_credit(
        self, walker, db_session, make_user, make_trading_result, reload_user
    ):
        """source -> a -> b -> a: a and b are credited once, then the walk aborts."""
        trading_result = await make_trading_result("10")
        a = await make_user("5000")
        b = await make_user("5000", referrer=a)
        a.referrer_id = b.id
        await db_session.commit()
        source = await make_user("1000", referrer=a)

        with pytest.raises(ReferralCycleError) as exc_info:
            await walker.walk_and_credit(source, Decimal("100"), trading_result)
        await db_session.commit()

        assert exc_info.value.repeated_user_id == a.id
        assert exc_info.value.source_user_id == source.id
        assert exc_info.value.credited == Decimal("24")
        assert exc_info.value.hops_credited == 2
        assert (await reload_user(a.id)).balance == Decimal("5020")
        assert (await reload_user(b.id)).balance == Decimal("5004")
        assert len(await _bonus_rows(db_session)) == 2

    @pytest.mark.asyncio
    async def test_cycle_back_to_source(
        self, walker, db_session, make_user, make_trading_result
    ):
        trading_result = await make_trading_result("10")
        a = await make_user("5000")
        source = await make_user("1000", referrer=a)
        a.referrer_id = source.id
        await db_session.commit()

        with pytest.raises(ReferralCycleError) as exc_info:
            await walker.walk_and_credit(source, Decimal("100"), trading_result)

        assert exc_info.value.repeated_user_id == source.id
        assert exc_info.value.credited == Decimal("20")

    @pytest.mark.asyncio
    async def test_dangling_referrer_ends_walk(
        self, walker, db_session, make_user, make_trading_result
    ):
        trading_result = await make_trading_result("10")
        referrer = await make_user("600")
        referrer.referrer_id = 9999
        await db_session.commit()
        source = await make_user("1000", referrer=referrer)

        result = await walker.walk_and_credit(source, Decimal("40"), trading_result)

        assert result.total_credited == Decimal("8")
        assert result.hops_visited == 1
        assert await db_session.scalar(select(func.count(BonusHistory.id))) == 1
