"""Point ledger: immutable transactions, balance folds and point awards.

The ``transactions`` table is the only source of truth for a user's balance.
``karma_scores`` is a denormalized cache of cumulative earned points, updated
in the same unit of work as each award and rebuildable from the log.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.database import unit_of_work
from wastewise.db.models import KarmaScore, Transaction, User
from wastewise.errors import ValidationError
from wastewise.notifications.service import create_notification
from wastewise.users.service import get_user

logger = structlog.get_logger()


class TransactionType(str, Enum):
    EARNED_REPORT = "earned_report"
    EARNED_COLLECT = "earned_collect"
    REDEEMED = "redeemed"

    @property
    def is_earned(self) -> bool:
        return self.value.startswith("earned")


# ---------------------------------------------------------------------------
# Pure folds
# ---------------------------------------------------------------------------


def raw_balance(entries: Iterable[tuple[str, int]]) -> int:
    """Sum earned amounts minus redeemed amounts, without clamping."""
    balance = 0
    for type_, amount in entries:
        if type_.startswith("earned"):
            balance += amount
        else:
            balance -= amount
    return balance


def fold_balance(entries: Iterable[tuple[str, int]]) -> int:
    """Display balance: ``raw_balance`` clamped at zero."""
    return max(raw_balance(entries), 0)


def validate_amount(amount: Any) -> int:
    """Ledger amounts are positive integers; the transaction type carries the sign."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"Amount must be an integer, got {amount!r}")
    if amount <= 0:
        raise ValidationError(f"Amount must be positive, got {amount}")
    return amount


def _parse_type(type_: str | TransactionType) -> TransactionType:
    try:
        return TransactionType(type_)
    except ValueError:
        valid = [t.value for t in TransactionType]
        raise ValidationError(f"Invalid transaction type: {type_}. Must be one of {valid}") from None


# ---------------------------------------------------------------------------
# Ledger reads
# ---------------------------------------------------------------------------


async def get_ledger_totals(db: AsyncSession, user_id: int) -> dict[str, int]:
    """Per-type sums over the user's whole transaction history."""
    result = await db.execute(
        select(Transaction.type, func.coalesce(func.sum(Transaction.amount), 0))
        .where(Transaction.user_id == user_id)
        .group_by(Transaction.type)
    )
    return {row[0]: int(row[1]) for row in result}


async def compute_raw_balance(db: AsyncSession, user_id: int) -> int:
    """Unclamped balance; the value redemption checks are made against."""
    totals = await get_ledger_totals(db, user_id)
    return raw_balance(totals.items())


async def compute_balance(db: AsyncSession, user_id: int) -> int:
    """Balance derived from every transaction of the user, clamped at zero."""
    totals = await get_ledger_totals(db, user_id)
    return fold_balance(totals.items())


async def get_transactions(
    db: AsyncSession,
    user_id: int,
    limit: int | None = None,
) -> list[Transaction]:
    """Transactions newest first."""
    stmt = (
        select(Transaction)
        .where(Transaction.user_id == user_id)
        .order_by(Transaction.date.desc(), Transaction.id.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_reward_transactions(db: AsyncSession, user_id: int, limit: int = 10) -> list[dict]:
    """Recent transactions shaped for the history widget (date as YYYY-MM-DD)."""
    transactions = await get_transactions(db, user_id, limit=limit)
    return [
        {
            "id": t.id,
            "type": t.type,
            "amount": t.amount,
            "description": t.description,
            "date": t.date.date().isoformat(),
        }
        for t in transactions
    ]


async def get_transaction_by_idempotency_key(db: AsyncSession, key: str) -> Transaction | None:
    result = await db.execute(select(Transaction).where(Transaction.idempotency_key == key))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Ledger writes
# ---------------------------------------------------------------------------


async def record_transaction(
    db: AsyncSession,
    user_id: int,
    type_: str | TransactionType,
    amount: int,
    description: str,
    idempotency_key: str | None = None,
) -> Transaction:
    """Append one immutable transaction. Flushes but does not commit.

    Raises:
        ValidationError: Unknown type, non-positive amount or empty description.
        NotFoundError: If the user does not exist.
    """
    kind = _parse_type(type_)
    validate_amount(amount)
    if not description or not description.strip():
        raise ValidationError("Transaction description must not be empty")
    await get_user(db, user_id)

    transaction = Transaction(
        user_id=user_id,
        type=kind.value,
        amount=amount,
        description=description,
        idempotency_key=idempotency_key,
    )
    db.add(transaction)
    await db.flush()
    return transaction


async def get_or_create_karma(db: AsyncSession, user_id: int) -> KarmaScore:
    """Get or create the denormalized karma row for a user."""
    result = await db.execute(select(KarmaScore).where(KarmaScore.user_id == user_id))
    karma = result.scalar_one_or_none()
    if karma is None:
        karma = KarmaScore(user_id=user_id, karma_score=0)
        db.add(karma)
        await db.flush()
    return karma


async def award_points(
    db: AsyncSession,
    user_id: int,
    points: int,
    reason: str,
    type_: str | TransactionType = TransactionType.EARNED_REPORT,
    idempotency_key: str | None = None,
) -> Transaction | None:
    """Award points to a user. Returns the new transaction, or None if duplicate.

    In one unit of work:
    1. Bump karma_scores.karma_score
    2. Insert the earned_* transaction
    3. Insert the reward notification
    """
    kind = _parse_type(type_)
    if not kind.is_earned:
        raise ValidationError(f"Points can only be awarded as earned_* transactions, got {kind.value}")
    validate_amount(points)

    async with unit_of_work(db):
        await get_user(db, user_id, for_update=True)

        if idempotency_key is not None:
            existing = await get_transaction_by_idempotency_key(db, idempotency_key)
            if existing is not None:
                logger.info("points_award_duplicate", user_id=user_id, idempotency_key=idempotency_key)
                return None

        karma = await get_or_create_karma(db, user_id)
        karma.karma_score += points
        karma.updated_at = datetime.now(timezone.utc)

        transaction = await record_transaction(
            db, user_id, kind, points, f"Points earned for {reason}", idempotency_key,
        )
        await create_notification(
            db, user_id, f"You've earned {points} points for {reason}", "reward",
        )

    logger.info("points_awarded", user_id=user_id, points=points, type=kind.value)
    return transaction


async def rebuild_karma(db: AsyncSession, user_id: int) -> int:
    """Recompute the karma cache from the ledger. Returns the rebuilt score."""
    async with unit_of_work(db):
        await get_user(db, user_id, for_update=True)
        totals = await get_ledger_totals(db, user_id)
        earned = sum(amount for type_, amount in totals.items() if type_.startswith("earned"))

        karma = await get_or_create_karma(db, user_id)
        if karma.karma_score != earned:
            logger.warning(
                "karma_drift_corrected",
                user_id=user_id,
                cached=karma.karma_score,
                ledger=earned,
            )
        karma.karma_score = earned
        karma.updated_at = datetime.now(timezone.utc)
    return earned


async def get_leaderboard(db: AsyncSession, limit: int = 10) -> list[dict]:
    """Users ranked by karma score, highest first."""
    result = await db.execute(
        select(KarmaScore, User)
        .join(User, KarmaScore.user_id == User.id)
        .order_by(KarmaScore.karma_score.desc(), User.id.asc())
        .limit(limit)
    )
    return [
        {
            "rank": rank,
            "user_id": row.User.id,
            "name": row.User.name,
            "karma_score": row.KarmaScore.karma_score,
        }
        for rank, row in enumerate(result, start=1)
    ]
