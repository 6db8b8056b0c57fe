"""ORM models for the waste-reporting rewards schema.

Column names follow the tables the web client was built against
(``users``, ``reports``, ``rewards``, ``collected_waste``, ``notifications``,
``transactions``). Every column with a server default also carries a Python
default so freshly flushed rows are fully populated without a refresh.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wastewise.db.base import Base, JSONType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Maps to the 'users' table."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    # --- Relationships ---
    reports: Mapped[list[Report]] = relationship(
        "Report", back_populates="user", foreign_keys="Report.user_id"
    )
    transactions: Mapped[list[Transaction]] = relationship("Transaction", back_populates="user")
    notifications: Mapped[list[Notification]] = relationship("Notification", back_populates="user")
    karma: Mapped[KarmaScore | None] = relationship("KarmaScore", back_populates="user", uselist=False)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


class Report(Base):
    """A waste location reported by a user, later picked up by a collector."""

    __tablename__ = "reports"
    __table_args__ = (
        Index("idx_reports_created_at", "created_at"),
        Index("idx_reports_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    waste_type: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[str] = mapped_column(String(255), nullable=False)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    inference_result: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(
        String(255), nullable=False, default="pending", server_default="pending"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    collector_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    submission_key: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)

    user: Mapped[User] = relationship("User", back_populates="reports", foreign_keys=[user_id])
    collector: Mapped[User | None] = relationship("User", foreign_keys=[collector_id])


class CollectedWaste(Base):
    """One row per collected report, linking it to the collecting user."""

    __tablename__ = "collected_waste"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    report_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("reports.id"), unique=True, nullable=False
    )
    collector_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    collection_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    status: Mapped[str] = mapped_column(
        String(255), nullable=False, default="collected", server_default="collected"
    )
    verification_result: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)


# ---------------------------------------------------------------------------
# Rewards catalog and karma
# ---------------------------------------------------------------------------


class Reward(Base):
    """Shared catalog entry a user can redeem points for."""

    __tablename__ = "rewards"
    __table_args__ = (CheckConstraint("cost > 0", name="ck_rewards_cost_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reward_name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    reward_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reward_claim_info: Mapped[str] = mapped_column(Text, nullable=False)
    cost: Mapped[int] = mapped_column(Integer, nullable=False)
    is_available: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=true()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )


class KarmaScore(Base):
    """Denormalized cumulative earned points, one row per user. Rebuilt from the ledger."""

    __tablename__ = "karma_scores"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    karma_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship("User", back_populates="karma")


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


class Transaction(Base):
    """Append-only point ledger. Amount is always positive; the type carries the sign."""

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        Index("idx_transactions_user_date", "user_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    idempotency_key: Mapped[str | None] = mapped_column(String(256), unique=True, nullable=True)

    user: Mapped[User] = relationship("User", back_populates="transactions")


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    """Persisted user notifications."""

    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notifications_user_unread", "user_id", "is_read"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    is_read: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    user: Mapped[User] = relationship("User", back_populates="notifications")
