"""JWT access token creation and verification."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from bookreview.config import get_settings
from bookreview.errors import Unauthorized

settings = get_settings()


def create_access_token(user_id: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "type": "access",
        "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Verify and decode an access token, raising Unauthorized when it is unusable."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError as exc:
        raise Unauthorized("Token expired. Please login again.") from exc
    except JWTError as exc:
        raise Unauthorized("Invalid token. Please login again.") from exc

    if payload.get("type") != "access" or not str(payload.get("sub", "")).isdigit():
        raise Unauthorized("Invalid token. Please login again.")
    return payload
