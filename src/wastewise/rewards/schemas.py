"""Pydantic schemas for reward endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from wastewise.ledger.schemas import TransactionResponse


class RewardItem(BaseModel):
    id: int
    name: str
    cost: int
    description: str | None = None
    claim_info: str


class AvailableRewardsResponse(BaseModel):
    user_id: int
    rewards: list[RewardItem]


class CreateRewardRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    cost: int = Field(..., gt=0)
    claim_info: str = Field(..., min_length=1)
    description: str | None = None
    is_available: bool = True


class RewardAvailabilityRequest(BaseModel):
    is_available: bool


class CatalogRewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reward_name: str
    reward_description: str | None = None
    reward_claim_info: str
    cost: int
    is_available: bool


class RedemptionResponse(BaseModel):
    transaction: TransactionResponse
    balance: int
