"""Notification creation and read-state service.

Notifications are created as a side effect of point-earning, collection and
redemption events. The only mutation afterwards is flipping ``is_read``.

Types: reward, redemption, collection, system
"""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.db.models import Notification
from wastewise.errors import NotFoundError, ValidationError

VALID_TYPES = {"reward", "redemption", "collection", "system"}


async def create_notification(
    db: AsyncSession,
    user_id: int,
    message: str,
    type_: str,
) -> Notification:
    """Create a notification. Flushes but does not commit."""
    if type_ not in VALID_TYPES:
        raise ValidationError(f"Invalid notification type: {type_}. Must be one of {sorted(VALID_TYPES)}")
    if not message or not message.strip():
        raise ValidationError("Notification message must not be empty")

    notification = Notification(user_id=user_id, message=message, type=type_)
    db.add(notification)
    await db.flush()
    return notification


async def get_unread_notifications(db: AsyncSession, user_id: int) -> list[Notification]:
    """Get the user's unread notifications, most recent first."""
    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(result.scalars().all())


async def get_notifications(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Notification], int]:
    """Get user's notifications (paginated, most recent first)."""
    offset = (page - 1) * per_page

    total_result = await db.execute(
        select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    )
    total = total_result.scalar_one()

    result = await db.execute(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset)
        .limit(per_page)
    )
    return list(result.scalars().all()), total


async def mark_notification_as_read(
    db: AsyncSession,
    notification_id: int,
    user_id: int | None = None,
) -> None:
    """Mark a single notification as read.

    When ``user_id`` is given the notification must belong to that user.

    Raises:
        NotFoundError: If no matching notification exists.
    """
    stmt = update(Notification).where(Notification.id == notification_id)
    if user_id is not None:
        stmt = stmt.where(Notification.user_id == user_id)
    result = await db.execute(stmt.values(is_read=True))
    await db.flush()
    if result.rowcount == 0:
        raise NotFoundError(f"Notification {notification_id} not found")


async def mark_all_as_read(db: AsyncSession, user_id: int) -> int:
    """Mark all unread notifications as read. Returns count updated."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    await db.flush()
    return result.rowcount


async def get_unread_count(db: AsyncSession, user_id: int) -> int:
    """Get count of unread notifications."""
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return result.scalar_one()
