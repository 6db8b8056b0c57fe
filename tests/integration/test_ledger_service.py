"""Ledger service tests — transactions, balance, awards and the karma cache."""

from __future__ import annotations

import pytest
from factories import count_rows, make_user
from sqlalchemy import select

from wastewise.db.models import KarmaScore, Notification, Transaction
from wastewise.errors import NotFoundError, ValidationError
from wastewise.ledger.service import (
    TransactionType,
    award_points,
    compute_balance,
    compute_raw_balance,
    get_leaderboard,
    get_reward_transactions,
    get_transactions,
    rebuild_karma,
    record_transaction,
)


class TestRecordTransaction:

    @pytest.mark.asyncio
    async def test_records_transaction(self, db_session, reporter_id):
        txn = await record_transaction(db_session, reporter_id, "earned_report", 10, "Points earned for garbage reporting")
        await db_session.commit()

        assert txn.id is not None
        assert txn.type == "earned_report"
        assert txn.amount == 10
        assert txn.date is not None

    @pytest.mark.asyncio
    async def test_zero_amount_rejected(self, db_session, reporter_id):
        with pytest.raises(ValidationError):
            await record_transaction(db_session, reporter_id, "earned_report", 0, "nothing")

    @pytest.mark.asyncio
    async def test_negative_amount_rejected(self, db_session, reporter_id):
        with pytest.raises(ValidationError):
            await record_transaction(db_session, reporter_id, "redeemed", -5, "negative")

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, db_session, reporter_id):
        with pytest.raises(ValidationError, match="Invalid transaction type"):
            await record_transaction(db_session, reporter_id, "bonus", 5, "unknown")

    @pytest.mark.asyncio
    async def test_empty_description_rejected(self, db_session, reporter_id):
        with pytest.raises(ValidationError):
            await record_transaction(db_session, reporter_id, "earned_report", 5, "  ")

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await record_transaction(db_session, 999, "earned_report", 5, "ghost")


class TestComputeBalance:

    @pytest.mark.asyncio
    async def test_no_transactions(self, db_session, reporter_id):
        assert await compute_balance(db_session, reporter_id) == 0

    @pytest.mark.asyncio
    async def test_report_collect_redeem_scenario(self, db_session, reporter_id):
        """(+10 report), (+15 collect), (-5 redeemed) -> 20."""
        await record_transaction(db_session, reporter_id, TransactionType.EARNED_REPORT, 10, "report")
        await record_transaction(db_session, reporter_id, TransactionType.EARNED_COLLECT, 15, "collect")
        await record_transaction(db_session, reporter_id, TransactionType.REDEEMED, 5, "redeem")
        await db_session.commit()

        assert await compute_balance(db_session, reporter_id) == 20
        # Recomputing with no new transactions gives the same value
        assert await compute_balance(db_session, reporter_id) == 20

    @pytest.mark.asyncio
    async def test_uses_full_history_not_latest_ten(self, db_session, reporter_id):
        for i in range(15):
            await record_transaction(db_session, reporter_id, "earned_report", 10, f"report {i}")
        await record_transaction(db_session, reporter_id, "redeemed", 30, "redeem")
        await db_session.commit()

        assert await compute_balance(db_session, reporter_id) == 120

    @pytest.mark.asyncio
    async def test_balances_are_per_user(self, db_session, reporter_id):
        other_id = await make_user(db_session, "other@example.com")
        await record_transaction(db_session, reporter_id, "earned_report", 10, "mine")
        await record_transaction(db_session, other_id, "earned_report", 50, "theirs")
        await db_session.commit()

        assert await compute_balance(db_session, reporter_id) == 10
        assert await compute_balance(db_session, other_id) == 50

    @pytest.mark.asyncio
    async def test_raw_balance_not_clamped(self, db_session, reporter_id):
        # Bypasses the redemption check on purpose to show the clamp
        await record_transaction(db_session, reporter_id, "earned_report", 10, "report")
        await record_transaction(db_session, reporter_id, "redeemed", 15, "over")
        await db_session.commit()

        assert await compute_raw_balance(db_session, reporter_id) == -5
        assert await compute_balance(db_session, reporter_id) == 0


class TestHistory:

    @pytest.mark.asyncio
    async def test_newest_first(self, db_session, reporter_id):
        first = await record_transaction(db_session, reporter_id, "earned_report", 10, "first")
        second = await record_transaction(db_session, reporter_id, "earned_collect", 15, "second")
        await db_session.commit()

        transactions = await get_transactions(db_session, reporter_id)
        assert [t.id for t in transactions] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_reward_transactions_formatted(self, db_session, reporter_id):
        for i in range(12):
            await record_transaction(db_session, reporter_id, "earned_report", 10, f"report {i}")
        await db_session.commit()

        entries = await get_reward_transactions(db_session, reporter_id, limit=10)
        assert len(entries) == 10
        assert entries[0]["description"] == "report 11"
        # YYYY-MM-DD
        assert len(entries[0]["date"]) == 10
        assert entries[0]["date"][4] == "-"


class TestAwardPoints:

    @pytest.mark.asyncio
    async def test_award_writes_transaction_karma_and_notification(self, db_session, reporter_id):
        txn = await award_points(db_session, reporter_id, 10, "garbage reporting")

        assert txn is not None
        assert txn.type == "earned_report"
        assert txn.description == "Points earned for garbage reporting"

        karma = (await db_session.execute(
            select(KarmaScore).where(KarmaScore.user_id == reporter_id)
        )).scalar_one()
        assert karma.karma_score == 10

        notifications = (await db_session.execute(
            select(Notification).where(Notification.user_id == reporter_id)
        )).scalars().all()
        assert len(notifications) == 1
        assert notifications[0].message == "You've earned 10 points for garbage reporting"
        assert notifications[0].type == "reward"
        assert notifications[0].is_read is False

    @pytest.mark.asyncio
    async def test_duplicate_idempotency_key_is_noop(self, db_session, reporter_id):
        await award_points(db_session, reporter_id, 15, "garbage collection", "earned_collect", idempotency_key="collect:1")
        again = await award_points(db_session, reporter_id, 15, "garbage collection", "earned_collect", idempotency_key="collect:1")

        assert again is None
        assert await compute_balance(db_session, reporter_id) == 15
        assert await count_rows(db_session, Notification, user_id=reporter_id) == 1

    @pytest.mark.asyncio
    async def test_cannot_award_redeemed(self, db_session, reporter_id):
        with pytest.raises(ValidationError):
            await award_points(db_session, reporter_id, 10, "oops", "redeemed")

    @pytest.mark.asyncio
    async def test_award_commits(self, db_session, session_factory, reporter_id):
        await award_points(db_session, reporter_id, 10, "garbage reporting")

        async with session_factory() as other:
            assert await compute_balance(other, reporter_id) == 10

    @pytest.mark.asyncio
    async def test_unknown_user_leaves_nothing(self, db_session):
        with pytest.raises(NotFoundError):
            await award_points(db_session, 404, 10, "garbage reporting")
        assert await count_rows(db_session, Transaction) == 0


class TestKarmaCache:

    @pytest.mark.asyncio
    async def test_rebuild_matches_ledger(self, db_session, reporter_id):
        await award_points(db_session, reporter_id, 10, "garbage reporting")
        await award_points(db_session, reporter_id, 15, "garbage collection", "earned_collect")

        karma = (await db_session.execute(
            select(KarmaScore).where(KarmaScore.user_id == reporter_id)
        )).scalar_one()
        karma.karma_score = 999
        await db_session.commit()

        assert await rebuild_karma(db_session, reporter_id) == 25
        await db_session.refresh(karma)
        assert karma.karma_score == 25

    @pytest.mark.asyncio
    async def test_redemptions_do_not_reduce_karma(self, db_session, reporter_id):
        await award_points(db_session, reporter_id, 10, "garbage reporting")
        await record_transaction(db_session, reporter_id, "redeemed", 10, "redeem")
        await db_session.commit()

        assert await rebuild_karma(db_session, reporter_id) == 10
        assert await compute_balance(db_session, reporter_id) == 0

    @pytest.mark.asyncio
    async def test_leaderboard_order(self, db_session, reporter_id, collector_id):
        await award_points(db_session, reporter_id, 10, "garbage reporting")
        await award_points(db_session, collector_id, 15, "garbage collection", "earned_collect")

        board = await get_leaderboard(db_session, limit=10)
        assert [row["user_id"] for row in board] == [collector_id, reporter_id]
        assert board[0]["rank"] == 1
        assert board[0]["karma_score"] == 15
        assert board[0]["name"] == "Casey Collector"
