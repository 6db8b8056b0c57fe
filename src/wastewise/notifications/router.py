"""Notification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.database import get_session
from wastewise.notifications.schemas import (
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from wastewise.notifications.service import (
    get_notifications,
    get_unread_count,
    get_unread_notifications,
    mark_all_as_read,
    mark_notification_as_read,
)
from wastewise.users.service import get_user

router = APIRouter(prefix="/api/v1", tags=["Notifications"])


@router.get("/users/{user_id}/notifications", response_model=NotificationListResponse)
async def list_notifications(
    user_id: int,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
):
    """List user's notifications (paginated)."""
    await get_user(db, user_id)
    notifications, total = await get_notifications(db, user_id, page, per_page)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/users/{user_id}/notifications/unread", response_model=list[NotificationResponse])
async def list_unread_notifications(user_id: int, db: AsyncSession = Depends(get_session)):
    """Unread notifications polled by the header bell."""
    await get_user(db, user_id)
    notifications = await get_unread_notifications(db, user_id)
    return [NotificationResponse.model_validate(n) for n in notifications]


@router.get("/users/{user_id}/notifications/unread-count", response_model=UnreadCountResponse)
async def get_unread_notification_count(user_id: int, db: AsyncSession = Depends(get_session)):
    """Get unread notification count."""
    await get_user(db, user_id)
    count = await get_unread_count(db, user_id)
    return UnreadCountResponse(unread_count=count)


@router.post("/notifications/{notification_id}/read", status_code=200)
async def mark_notification_read(notification_id: int, db: AsyncSession = Depends(get_session)):
    """Mark a notification as read."""
    await mark_notification_as_read(db, notification_id)
    await db.commit()
    return {"detail": "Notification marked as read"}


@router.post("/users/{user_id}/notifications/read-all", status_code=200)
async def mark_all_read(user_id: int, db: AsyncSession = Depends(get_session)):
    """Mark all notifications as read."""
    await get_user(db, user_id)
    count = await mark_all_as_read(db, user_id)
    await db.commit()
    return {"detail": f"Marked {count} notifications as read"}
