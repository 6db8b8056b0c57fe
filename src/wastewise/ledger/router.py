"""Ledger API endpoints: balance, history, leaderboard, karma rebuild."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.config import get_settings
from wastewise.database import get_session
from wastewise.ledger.schemas import (
    BalanceResponse,
    KarmaResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    TransactionHistoryEntry,
    TransactionHistoryResponse,
)
from wastewise.ledger.service import (
    TransactionType,
    fold_balance,
    get_leaderboard,
    get_ledger_totals,
    get_reward_transactions,
    rebuild_karma,
)
from wastewise.users.service import get_user

router = APIRouter(prefix="/api/v1", tags=["Ledger"])


@router.get("/users/{user_id}/balance", response_model=BalanceResponse)
async def get_user_balance(user_id: int, db: AsyncSession = Depends(get_session)):
    """Current balance recomputed from the full transaction log."""
    await get_user(db, user_id)
    totals = await get_ledger_totals(db, user_id)
    earned = sum(v for k, v in totals.items() if k.startswith("earned"))
    return BalanceResponse(
        user_id=user_id,
        balance=fold_balance(totals.items()),
        total_earned=earned,
        total_redeemed=totals.get(TransactionType.REDEEMED.value, 0),
    )


@router.get("/users/{user_id}/transactions", response_model=TransactionHistoryResponse)
async def list_transactions(
    user_id: int,
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Recent transactions, newest first."""
    await get_user(db, user_id)
    limit = limit or get_settings().transaction_history_limit
    entries = await get_reward_transactions(db, user_id, limit=limit)
    totals = await get_ledger_totals(db, user_id)
    return TransactionHistoryResponse(
        user_id=user_id,
        transactions=[TransactionHistoryEntry(**e) for e in entries],
        balance=fold_balance(totals.items()),
    )


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int | None = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """Top users by karma score."""
    rows = await get_leaderboard(db, limit=limit or get_settings().leaderboard_limit)
    return LeaderboardResponse(entries=[LeaderboardEntry(**r) for r in rows])


@router.post("/users/{user_id}/karma/rebuild", response_model=KarmaResponse)
async def rebuild_user_karma(user_id: int, db: AsyncSession = Depends(get_session)):
    """Reconcile the karma cache with the ledger."""
    score = await rebuild_karma(db, user_id)
    return KarmaResponse(user_id=user_id, karma_score=score)
