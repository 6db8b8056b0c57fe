"""Notification service tests."""

from __future__ import annotations

import pytest
from factories import make_user

from wastewise.errors import NotFoundError, ValidationError
from wastewise.notifications.service import (
    create_notification,
    get_notifications,
    get_unread_count,
    get_unread_notifications,
    mark_all_as_read,
    mark_notification_as_read,
)


class TestCreateNotification:

    @pytest.mark.asyncio
    async def test_created_unread(self, db_session, reporter_id):
        notification = await create_notification(db_session, reporter_id, "Welcome aboard", "system")
        await db_session.commit()

        assert notification.is_read is False
        assert notification.created_at is not None

    @pytest.mark.asyncio
    async def test_invalid_type(self, db_session, reporter_id):
        with pytest.raises(ValidationError, match="Invalid notification type"):
            await create_notification(db_session, reporter_id, "Hello", "marketing")

    @pytest.mark.asyncio
    async def test_empty_message(self, db_session, reporter_id):
        with pytest.raises(ValidationError):
            await create_notification(db_session, reporter_id, "", "system")


class TestReadState:

    @pytest.mark.asyncio
    async def test_unread_list_newest_first(self, db_session, reporter_id):
        first = await create_notification(db_session, reporter_id, "first", "reward")
        second = await create_notification(db_session, reporter_id, "second", "reward")
        await db_session.commit()

        unread = await get_unread_notifications(db_session, reporter_id)
        assert [n.id for n in unread] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_mark_one_read(self, db_session, reporter_id):
        first = await create_notification(db_session, reporter_id, "first", "reward")
        await create_notification(db_session, reporter_id, "second", "reward")
        await db_session.commit()
        first_id = first.id

        await mark_notification_as_read(db_session, first_id)
        await db_session.commit()

        unread = await get_unread_notifications(db_session, reporter_id)
        assert first_id not in [n.id for n in unread]
        assert await get_unread_count(db_session, reporter_id) == 1

    @pytest.mark.asyncio
    async def test_mark_read_twice_is_fine(self, db_session, reporter_id):
        notification = await create_notification(db_session, reporter_id, "hello", "system")
        await db_session.commit()

        await mark_notification_as_read(db_session, notification.id)
        await mark_notification_as_read(db_session, notification.id)
        await db_session.commit()

        assert await get_unread_count(db_session, reporter_id) == 0

    @pytest.mark.asyncio
    async def test_mark_missing_notification(self, db_session):
        with pytest.raises(NotFoundError):
            await mark_notification_as_read(db_session, 9999)

    @pytest.mark.asyncio
    async def test_mark_other_users_notification(self, db_session, reporter_id):
        other_id = await make_user(db_session, "other@example.com")
        notification = await create_notification(db_session, other_id, "theirs", "system")
        await db_session.commit()

        with pytest.raises(NotFoundError):
            await mark_notification_as_read(db_session, notification.id, user_id=reporter_id)

    @pytest.mark.asyncio
    async def test_mark_all_read(self, db_session, reporter_id):
        for i in range(3):
            await create_notification(db_session, reporter_id, f"note {i}", "reward")
        await db_session.commit()

        assert await mark_all_as_read(db_session, reporter_id) == 3
        await db_session.commit()

        assert await get_unread_notifications(db_session, reporter_id) == []
        assert await mark_all_as_read(db_session, reporter_id) == 0

    @pytest.mark.asyncio
    async def test_paginated_listing_includes_read(self, db_session, reporter_id):
        for i in range(5):
            await create_notification(db_session, reporter_id, f"note {i}", "reward")
        await db_session.commit()
        await mark_all_as_read(db_session, reporter_id)
        await db_session.commit()

        page, total = await get_notifications(db_session, reporter_id, page=2, per_page=2)

        assert total == 5
        assert [n.message for n in page] == ["note 2", "note 1"]
