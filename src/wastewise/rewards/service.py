"""Reward catalog and point redemption.

A redemption is only recorded after the balance has been recomputed from the
ledger inside the same transaction, with the user row locked, so two
concurrent redemptions cannot both spend the same points.
"""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.database import unit_of_work
from wastewise.db.models import Reward, Transaction
from wastewise.errors import InsufficientBalanceError, NotFoundError, ValidationError
from wastewise.ledger.service import (
    TransactionType,
    compute_balance,
    compute_raw_balance,
    record_transaction,
    validate_amount,
)
from wastewise.notifications.service import create_notification
from wastewise.users.service import get_user

logger = structlog.get_logger()

# Sentinel id of the synthetic "your points" entry heading the rewards list.
POINTS_ENTRY_ID = 0


def reward_to_dict(reward: Reward) -> dict:
    return {
        "id": reward.id,
        "name": reward.reward_name,
        "cost": reward.cost,
        "description": reward.reward_description,
        "claim_info": reward.reward_claim_info,
    }


async def get_reward(db: AsyncSession, reward_id: int) -> Reward:
    """Fetch a catalog reward. Raises NotFoundError if absent."""
    result = await db.execute(select(Reward).where(Reward.id == reward_id))
    reward = result.scalar_one_or_none()
    if reward is None:
        raise NotFoundError(f"Reward {reward_id} not found")
    return reward


async def list_catalog(db: AsyncSession, include_unavailable: bool = False) -> list[Reward]:
    """Catalog rewards, cheapest first."""
    stmt = select(Reward).order_by(Reward.cost.asc(), Reward.id.asc())
    if not include_unavailable:
        stmt = stmt.where(Reward.is_available.is_(True))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_available_rewards(db: AsyncSession, user_id: int) -> list[dict]:
    """The user's points as a pseudo-reward, followed by every available catalog reward."""
    await get_user(db, user_id)
    balance = await compute_balance(db, user_id)

    points_entry = {
        "id": POINTS_ENTRY_ID,
        "name": "Your Points",
        "cost": balance,
        "description": "Redeem all your earned points",
        "claim_info": "Points earned from reporting and collecting waste",
    }
    catalog = await list_catalog(db)
    return [points_entry, *(reward_to_dict(r) for r in catalog)]


async def create_reward(
    db: AsyncSession,
    name: str,
    cost: int,
    claim_info: str,
    description: str | None = None,
    is_available: bool = True,
) -> Reward:
    """Add a catalog reward. Flushes but does not commit."""
    name = name.strip()
    if not name:
        raise ValidationError("Reward name must not be empty")
    if not claim_info or not claim_info.strip():
        raise ValidationError("Reward claim info must not be empty")
    validate_amount(cost)

    existing = await db.execute(select(Reward).where(Reward.reward_name == name))
    if existing.scalar_one_or_none() is not None:
        raise ValidationError(f"Reward {name!r} already exists")

    reward = Reward(
        reward_name=name,
        reward_description=description,
        reward_claim_info=claim_info,
        cost=cost,
        is_available=is_available,
    )
    db.add(reward)
    await db.flush()
    return reward


async def set_reward_availability(db: AsyncSession, reward_id: int, is_available: bool) -> Reward:
    """Toggle whether a catalog reward can be redeemed."""
    reward = await get_reward(db, reward_id)
    reward.is_available = is_available
    await db.flush()
    return reward


async def redeem(db: AsyncSession, user_id: int, reward_id: int) -> Transaction:
    """Redeem a catalog reward, or the whole balance for the points entry.

    Raises:
        NotFoundError: Unknown user or reward.
        ValidationError: The reward is not available.
        InsufficientBalanceError: The balance is below the reward's cost.
    """
    if reward_id == POINTS_ENTRY_ID:
        return await redeem_all_points(db, user_id)

    async with unit_of_work(db):
        await get_user(db, user_id, for_update=True)
        reward = await get_reward(db, reward_id)
        if not reward.is_available:
            raise ValidationError(f"Reward {reward_id} is not available")

        balance = await compute_raw_balance(db, user_id)
        if balance < reward.cost:
            logger.info("redemption_rejected", user_id=user_id, reward_id=reward_id, balance=balance, cost=reward.cost)
            raise InsufficientBalanceError(max(balance, 0), reward.cost)

        transaction = await record_transaction(
            db, user_id, TransactionType.REDEEMED, reward.cost, f"Redeemed {reward.reward_name}",
        )
        await create_notification(
            db, user_id, f"You redeemed {reward.reward_name} for {reward.cost} points", "redemption",
        )

    logger.info("reward_redeemed", user_id=user_id, reward_id=reward_id, cost=transaction.amount)
    return transaction


async def redeem_all_points(db: AsyncSession, user_id: int) -> Transaction:
    """Convert the user's entire balance in one redemption."""
    async with unit_of_work(db):
        await get_user(db, user_id, for_update=True)
        balance = await compute_raw_balance(db, user_id)
        if balance <= 0:
            logger.info("redemption_rejected", user_id=user_id, reward_id=POINTS_ENTRY_ID, balance=balance)
            raise InsufficientBalanceError(max(balance, 0), 1)

        transaction = await record_transaction(
            db, user_id, TransactionType.REDEEMED, balance, "Redeemed all points",
        )
        await create_notification(
            db, user_id, f"You redeemed all {balance} of your points", "redemption",
        )

    logger.info("reward_redeemed", user_id=user_id, reward_id=POINTS_ENTRY_ID, cost=balance)
    return transaction
