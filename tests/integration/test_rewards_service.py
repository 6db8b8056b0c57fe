"""Reward catalog and redemption tests."""

from __future__ import annotations

import pytest
from factories import count_rows, make_reward

from wastewise.db.models import Notification, Transaction
from wastewise.errors import InsufficientBalanceError, NotFoundError, ValidationError
from wastewise.ledger.service import award_points, compute_balance, rebuild_karma, record_transaction
from wastewise.rewards.seed import REWARD_SEED_DATA, seed_rewards
from wastewise.rewards.service import (
    POINTS_ENTRY_ID,
    create_reward,
    list_available_rewards,
    list_catalog,
    redeem,
    redeem_all_points,
    set_reward_availability,
)


async def _give(db, user_id: int, points: int) -> None:
    await record_transaction(db, user_id, "earned_report", points, "seed points")
    await db.commit()


class TestRedeem:

    @pytest.mark.asyncio
    async def test_accepted_redemption_decreases_by_cost(self, db_session, reporter_id):
        reward_id = await make_reward(db_session, "Coffee Voucher", 15)
        await _give(db_session, reporter_id, 20)

        txn = await redeem(db_session, reporter_id, reward_id)

        assert txn.type == "redeemed"
        assert txn.amount == 15
        assert txn.description == "Redeemed Coffee Voucher"
        assert await compute_balance(db_session, reporter_id) == 5

    @pytest.mark.asyncio
    async def test_redemption_notifies(self, db_session, reporter_id):
        reward_id = await make_reward(db_session, "Coffee Voucher", 15)
        await _give(db_session, reporter_id, 20)

        await redeem(db_session, reporter_id, reward_id)

        assert await count_rows(db_session, Notification, user_id=reporter_id, type="redemption") == 1

    @pytest.mark.asyncio
    async def test_insufficient_balance_rejected(self, db_session, reporter_id):
        reward_id = await make_reward(db_session, "Bike Tune-up", 25)
        await _give(db_session, reporter_id, 20)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await redeem(db_session, reporter_id, reward_id)

        assert exc_info.value.balance == 20
        assert exc_info.value.cost == 25
        assert await compute_balance(db_session, reporter_id) == 20
        assert await count_rows(db_session, Transaction, type="redeemed") == 0
        assert await count_rows(db_session, Notification) == 0

    @pytest.mark.asyncio
    async def test_exact_balance_allowed(self, db_session, reporter_id):
        reward_id = await make_reward(db_session, "Seed Packet", 20)
        await _give(db_session, reporter_id, 20)

        await redeem(db_session, reporter_id, reward_id)

        assert await compute_balance(db_session, reporter_id) == 0

    @pytest.mark.asyncio
    async def test_second_redemption_sees_first(self, db_session, reporter_id):
        reward_id = await make_reward(db_session, "Coffee Voucher", 15)
        await _give(db_session, reporter_id, 20)

        await redeem(db_session, reporter_id, reward_id)
        with pytest.raises(InsufficientBalanceError):
            await redeem(db_session, reporter_id, reward_id)

        assert await compute_balance(db_session, reporter_id) == 5

    @pytest.mark.asyncio
    async def test_unavailable_reward_rejected(self, db_session, reporter_id):
        reward_id = await make_reward(db_session, "Retired Mug", 5, is_available=False)
        await _give(db_session, reporter_id, 20)

        with pytest.raises(ValidationError, match="not available"):
            await redeem(db_session, reporter_id, reward_id)
        assert await compute_balance(db_session, reporter_id) == 20

    @pytest.mark.asyncio
    async def test_unknown_reward(self, db_session, reporter_id):
        with pytest.raises(NotFoundError):
            await redeem(db_session, reporter_id, 12345)

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session):
        reward_id = await make_reward(db_session, "Coffee Voucher", 15)
        with pytest.raises(NotFoundError):
            await redeem(db_session, 999, reward_id)

    @pytest.mark.asyncio
    async def test_does_not_touch_karma(self, db_session, reporter_id):
        reward_id = await make_reward(db_session, "Coffee Voucher", 15)
        await award_points(db_session, reporter_id, 20, "garbage reporting")

        await redeem(db_session, reporter_id, reward_id)

        assert await rebuild_karma(db_session, reporter_id) == 20


class TestRedeemAllPoints:

    @pytest.mark.asyncio
    async def test_points_entry_redeems_whole_balance(self, db_session, reporter_id):
        await _give(db_session, reporter_id, 35)

        txn = await redeem(db_session, reporter_id, POINTS_ENTRY_ID)

        assert txn.amount == 35
        assert txn.description == "Redeemed all points"
        assert await compute_balance(db_session, reporter_id) == 0

    @pytest.mark.asyncio
    async def test_zero_balance_rejected(self, db_session, reporter_id):
        with pytest.raises(InsufficientBalanceError):
            await redeem_all_points(db_session, reporter_id)
        assert await count_rows(db_session, Transaction) == 0


class TestCatalog:

    @pytest.mark.asyncio
    async def test_points_entry_first_then_cheapest(self, db_session, reporter_id):
        await make_reward(db_session, "Compost Bin", 500)
        await make_reward(db_session, "Shopping Bag", 50)
        await make_reward(db_session, "Hidden", 10, is_available=False)
        await _give(db_session, reporter_id, 42)

        rewards = await list_available_rewards(db_session, reporter_id)

        assert rewards[0]["id"] == POINTS_ENTRY_ID
        assert rewards[0]["name"] == "Your Points"
        assert rewards[0]["cost"] == 42
        assert [r["name"] for r in rewards[1:]] == ["Shopping Bag", "Compost Bin"]

    @pytest.mark.asyncio
    async def test_points_entry_for_new_user(self, db_session, reporter_id):
        rewards = await list_available_rewards(db_session, reporter_id)
        assert len(rewards) == 1
        assert rewards[0]["cost"] == 0

    @pytest.mark.asyncio
    async def test_create_reward(self, db_session):
        reward = await create_reward(db_session, "  Tote Bag ", 30, "Pick up at the library")
        await db_session.commit()

        assert reward.reward_name == "Tote Bag"
        assert reward.is_available is True

    @pytest.mark.asyncio
    async def test_create_reward_rejects_zero_cost(self, db_session):
        with pytest.raises(ValidationError):
            await create_reward(db_session, "Free Thing", 0, "Nowhere")

    @pytest.mark.asyncio
    async def test_create_reward_rejects_duplicate_name(self, db_session):
        await make_reward(db_session, "Tote Bag", 30)
        with pytest.raises(ValidationError, match="already exists"):
            await create_reward(db_session, "Tote Bag", 40, "Elsewhere")

    @pytest.mark.asyncio
    async def test_toggle_availability(self, db_session):
        reward_id = await make_reward(db_session, "Tote Bag", 30)

        await set_reward_availability(db_session, reward_id, False)
        await db_session.commit()

        assert await list_catalog(db_session) == []
        assert len(await list_catalog(db_session, include_unavailable=True)) == 1


class TestSeedRewards:

    @pytest.mark.asyncio
    async def test_seed_is_idempotent(self, db_session):
        assert await seed_rewards(db_session) == len(REWARD_SEED_DATA)
        assert await seed_rewards(db_session) == 0
        assert len(await list_catalog(db_session)) == len(REWARD_SEED_DATA)
