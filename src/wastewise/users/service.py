"""User management business logic.

Identity comes from an external login provider that hands back an email and a
display name; this module only stores and looks up the resulting users.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from wastewise.db.models import User
from wastewise.errors import NotFoundError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    """Lower-case and strip an email address."""
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Look up a user by email. Absence is not an error here."""
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def get_user(db: AsyncSession, user_id: int, *, for_update: bool = False) -> User:
    """
    Fetch a user by id.

    With ``for_update`` the row is locked until the surrounding transaction
    ends; per-user ledger writes use this to serialize against each other.

    Raises:
        NotFoundError: If the user does not exist.
    """
    stmt = select(User).where(User.id == user_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


async def create_user(db: AsyncSession, email: str, name: str) -> User:
    """
    Create a user. Flushes but does not commit.

    Raises:
        ValidationError: If the email or name is empty, or the email is taken.
    """
    email = normalize_email(email)
    name = name.strip()
    if not email or "@" not in email:
        raise ValidationError("A valid email address is required")
    if not name:
        raise ValidationError("Name must not be empty")

    if await get_user_by_email(db, email) is not None:
        raise ValidationError(f"Email {email} is already registered")

    user = User(email=email, name=name)
    db.add(user)
    await db.flush()
    logger.info("user_created", user_id=user.id)
    return user


async def get_or_create_user(db: AsyncSession, email: str, name: str) -> tuple[User, bool]:
    """Return the user for a successful provider login, creating it on first sight.

    Returns:
        Tuple of (user, created).
    """
    existing = await get_user_by_email(db, email)
    if existing is not None:
        return existing, False
    return await create_user(db, email, name), True
