"""FastAPI dependencies for authentication and authorization."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from bookreview.auth.jwt_handler import verify_token
from bookreview.database import get_db
from bookreview.errors import Forbidden, Unauthorized
from bookreview.models.user import User

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to the acting user."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access denied. No token provided.")

    payload = verify_token(credentials.credentials)

    user = await db.get(User, int(payload["sub"]))
    if user is None:
        raise Unauthorized("Token is valid but user no longer exists")
    return user


def ensure_owner(actor: User, owner_id: int, detail: str) -> None:
    """Only the creator/author of an entity may mutate it."""
    if actor.id != owner_id:
        raise Forbidden(detail)
