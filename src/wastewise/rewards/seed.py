"""Default reward catalog, installed at startup."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.db.models import Reward

logger = logging.getLogger(__name__)

REWARD_SEED_DATA: list[dict] = [
    {
        "reward_name": "Reusable Shopping Bag",
        "reward_description": "A sturdy cotton bag to replace single-use plastic",
        "reward_claim_info": "Show the redemption notification at any partner recycling center",
        "cost": 50,
    },
    {
        "reward_name": "Public Transport Day Pass",
        "reward_description": "One day of unlimited city bus and metro rides",
        "reward_claim_info": "A pass code is emailed within 24 hours of redemption",
        "cost": 100,
    },
    {
        "reward_name": "Tree Planting Certificate",
        "reward_description": "A tree planted in your name by a local reforestation group",
        "reward_claim_info": "The certificate is emailed once the planting season starts",
        "cost": 200,
    },
    {
        "reward_name": "Compost Bin",
        "reward_description": "A home compost bin for organic waste",
        "reward_claim_info": "Pick up at the municipal depot with your registered email",
        "cost": 500,
    },
]


async def seed_rewards(db: AsyncSession) -> int:
    """Insert any missing default rewards. Returns number of rewards inserted.

    Existing rows are left alone so operators can change cost or availability.
    """
    result = await db.execute(select(Reward.reward_name))
    existing = {row[0] for row in result}

    inserted = 0
    for reward_data in REWARD_SEED_DATA:
        if reward_data["reward_name"] in existing:
            continue
        db.add(Reward(**reward_data))
        inserted += 1

    await db.commit()
    logger.info("Seeded %d reward definitions", inserted)
    return inserted
