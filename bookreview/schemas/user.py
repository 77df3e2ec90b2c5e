"""User schemas for signup, login, and responses."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from bookreview.schemas.common import CamelModel

_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")

# bcrypt refuses input longer than this
MAX_PASSWORD_BYTES = 72


class UserSignup(CamelModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
        if not _PASSWORD_RULE.match(value):
            raise ValueError(
                "Password must contain at least one lowercase letter, "
                "one uppercase letter, and one number"
            )
        return value


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UserSummary(CamelModel):
    id: int
    username: str


class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    created_at: datetime
    updated_at: datetime


class AuthPayload(CamelModel):
    token: str
    user: UserResponse


class ProfilePayload(CamelModel):
    user: UserResponse
