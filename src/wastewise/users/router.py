"""User router: identity endpoints under /api/v1/users."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from wastewise.database import get_session, unit_of_work
from wastewise.errors import NotFoundError
from wastewise.users.schemas import CreateUserRequest, LoginResponse, UserResponse
from wastewise.users.service import create_user, get_or_create_user, get_user, get_user_by_email

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(body: CreateUserRequest, db: AsyncSession = Depends(get_session)):
    """Create a user from the identity provider's email and display name."""
    async with unit_of_work(db):
        user = await create_user(db, body.email, body.name)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login_user(body: CreateUserRequest, db: AsyncSession = Depends(get_session)):
    """Resolve a provider login to a user, creating it on first login."""
    async with unit_of_work(db):
        user, created = await get_or_create_user(db, body.email, body.name)
    return LoginResponse(user=UserResponse.model_validate(user), created=created)


@router.get("/by-email", response_model=UserResponse)
async def find_user_by_email(email: str = Query(..., min_length=3), db: AsyncSession = Depends(get_session)):
    """Look up a user by email."""
    user = await get_user_by_email(db, email)
    if user is None:
        raise NotFoundError(f"No user with email {email}")
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def read_user(user_id: int, db: AsyncSession = Depends(get_session)):
    """Get a user by id."""
    return UserResponse.model_validate(await get_user(db, user_id))
