"""Reward catalog and redemption endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.database import get_session, unit_of_work
from wastewise.ledger.schemas import TransactionResponse
from wastewise.ledger.service import compute_balance
from wastewise.rewards.schemas import (
    AvailableRewardsResponse,
    CatalogRewardResponse,
    CreateRewardRequest,
    RedemptionResponse,
    RewardAvailabilityRequest,
    RewardItem,
)
from wastewise.rewards.service import (
    create_reward,
    list_available_rewards,
    list_catalog,
    redeem,
    set_reward_availability,
)

router = APIRouter(prefix="/api/v1", tags=["Rewards"])


@router.get("/rewards", response_model=list[CatalogRewardResponse])
async def get_catalog(
    include_unavailable: bool = Query(False),
    db: AsyncSession = Depends(get_session),
):
    """Reward catalog."""
    rewards = await list_catalog(db, include_unavailable=include_unavailable)
    return [CatalogRewardResponse.model_validate(r) for r in rewards]


@router.post("/rewards", response_model=CatalogRewardResponse, status_code=status.HTTP_201_CREATED)
async def add_catalog_reward(body: CreateRewardRequest, db: AsyncSession = Depends(get_session)):
    """Add a reward to the catalog."""
    async with unit_of_work(db):
        reward = await create_reward(
            db,
            name=body.name,
            cost=body.cost,
            claim_info=body.claim_info,
            description=body.description,
            is_available=body.is_available,
        )
    return CatalogRewardResponse.model_validate(reward)


@router.patch("/rewards/{reward_id}", response_model=CatalogRewardResponse)
async def update_reward_availability(
    reward_id: int,
    body: RewardAvailabilityRequest,
    db: AsyncSession = Depends(get_session),
):
    """Enable or withdraw a catalog reward."""
    async with unit_of_work(db):
        reward = await set_reward_availability(db, reward_id, body.is_available)
    return CatalogRewardResponse.model_validate(reward)


@router.get("/users/{user_id}/rewards", response_model=AvailableRewardsResponse)
async def get_available_rewards(user_id: int, db: AsyncSession = Depends(get_session)):
    """The user's points entry plus every redeemable reward."""
    rewards = await list_available_rewards(db, user_id)
    return AvailableRewardsResponse(user_id=user_id, rewards=[RewardItem(**r) for r in rewards])


@router.post("/users/{user_id}/rewards/{reward_id}/redeem", response_model=RedemptionResponse)
async def redeem_reward(user_id: int, reward_id: int, db: AsyncSession = Depends(get_session)):
    """Redeem a reward; reward id 0 redeems the whole balance."""
    transaction = await redeem(db, user_id, reward_id)
    balance = await compute_balance(db, user_id)
    return RedemptionResponse(
        transaction=TransactionResponse.model_validate(transaction),
        balance=balance,
    )
