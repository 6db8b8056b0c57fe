"""Pydantic response models for ledger endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class BalanceResponse(BaseModel):
    user_id: int
    balance: int
    total_earned: int
    total_redeemed: int


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    amount: int
    description: str
    date: datetime


class TransactionHistoryEntry(BaseModel):
    id: int
    type: str
    amount: int
    description: str
    date: str


class TransactionHistoryResponse(BaseModel):
    user_id: int
    transactions: list[TransactionHistoryEntry]
    balance: int


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    name: str
    karma_score: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]


class KarmaResponse(BaseModel):
    user_id: int
    karma_score: int
