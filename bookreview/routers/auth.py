"""Auth routes — signup, login, profile."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.auth.dependencies import get_current_user
from bookreview.auth.jwt_handler import create_access_token
from bookreview.auth.password import hash_password, verify_password
from bookreview.database import get_db
from bookreview.errors import Conflict, Unauthorized
from bookreview.models.user import User
from bookreview.schemas.common import ApiResponse, success
from bookreview.schemas.user import (
    AuthPayload,
    ProfilePayload,
    UserLogin,
    UserResponse,
    UserSignup,
)

logger = structlog.get_logger()
router = APIRouter(prefix="/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid email or password"


def _auth_payload(user: User) -> dict:
    return {
        "token": create_access_token(user.id),
        "user": UserResponse.model_validate(user),
    }


async def find_taken_identity(db: AsyncSession, email: str, username: str) -> Optional[str]:
    """Name the first of email, then username, that another user already holds."""
    if await db.scalar(select(User.id).where(User.email == email)) is not None:
        return "email"
    if await db.scalar(select(User.id).where(User.username == username)) is not None:
        return "username"
    return None


@router.post(
    "/signup",
    response_model=ApiResponse[AuthPayload],
    status_code=status.HTTP_201_CREATED,
)
async def signup(data: UserSignup, db: AsyncSession = Depends(get_db)):
    """Register a new user and return an access token."""
    taken = await find_taken_identity(db, data.email, data.username)
    if taken:
        raise Conflict(f"User with this {taken} already exists")

    user = User(
        username=data.username,
        email=data.email,
        hashed_password=hash_password(data.password),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        # Lost a race with a concurrent signup for the same identity
        raise Conflict("User with this email or username already exists") from exc

    logger.info("user_registered", user_id=user.id, username=user.username)

    return success(_auth_payload(user), "User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthPayload])
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate a user and return an access token."""
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(data.password, user.hashed_password):
        raise Unauthorized(INVALID_CREDENTIALS)

    logger.info("user_login", user_id=user.id)

    return success(_auth_payload(user), "Login successful")


@router.get("/profile", response_model=ApiResponse[ProfilePayload])
async def profile(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return success({"user": UserResponse.model_validate(current_user)})
