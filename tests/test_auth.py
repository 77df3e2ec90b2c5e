"""Signup, login, profile, and bearer token handling."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy import func, select

PASSWORD = "Secret123"


class TestSignup:
    @pytest.mark.asyncio
    async def test_signup_success(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"username": "reader_1", "email": "Reader@Example.com", "password": PASSWORD},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["data"]["token"]
        user = body["data"]["user"]
        assert user["username"] == "reader_1"
        assert user["email"] == "reader@example.com"
        assert "hashedPassword" not in user
        assert "createdAt" in user

    @pytest.mark.asyncio
    async def test_signup_duplicate_email(self, client, make_user):
        await make_user("first", email="dup@example.com")

        response = await client.post(
            "/api/auth/signup",
            json={"username": "second", "email": "dup@example.com", "password": PASSWORD},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["status"] == "error"
        assert "email" in body["message"]

        from bookreview.database import async_session
        from bookreview.models.user import User

        async with async_session() as session:
            count = await session.scalar(
                select(func.count()).select_from(User).where(User.email == "dup@example.com")
            )
        assert count == 1

    @pytest.mark.asyncio
    async def test_signup_duplicate_username(self, client, make_user):
        await make_user("taken")

        response = await client.post(
            "/api/auth/signup",
            json={"username": "taken", "email": "other@example.com", "password": PASSWORD},
        )
        assert response.status_code == 409
        assert "username" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_signup_collects_every_field_error(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"username": "a!", "email": "not-an-email", "password": "short"},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        fields = {error["field"] for error in body["errors"]}
        assert {"username", "email", "password"} <= fields

    @pytest.mark.asyncio
    async def test_signup_rejects_weak_password(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"username": "weakling", "email": "weak@example.com", "password": "alllowercase1"},
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "password"

    @pytest.mark.asyncio
    async def test_signup_rejects_password_over_bcrypt_limit(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"username": "verbose", "email": "verbose@example.com", "password": "Aa1" + "x" * 90},
        )
        assert response.status_code == 400
        errors = response.json()["errors"]
        assert [error["field"] for error in errors] == ["password"]
        assert "72 bytes" in errors[0]["message"]

    @pytest.mark.asyncio
    async def test_password_limit_counts_utf8_bytes(self, client):
        # 38 characters but 73 bytes
        response = await client.post(
            "/api/auth/signup",
            json={"username": "accented", "email": "accented@example.com", "password": "Aa1" + "é" * 35},
        )
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "password"

        # Exactly 72 bytes is accepted and can log in
        password = "Aa1x" + "é" * 34
        response = await client.post(
            "/api/auth/signup",
            json={"username": "accented", "email": "accented@example.com", "password": password},
        )
        assert response.status_code == 201
        response = await client.post(
            "/api/auth/login",
            json={"email": "accented@example.com", "password": password},
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_email_conflict_is_reported_before_username(self, client, make_user):
        await make_user("alice", email="alice@example.com")
        await make_user("bob", email="bob@example.com")

        response = await client.post(
            "/api/auth/signup",
            json={"username": "alice", "email": "bob@example.com", "password": PASSWORD},
        )
        assert response.status_code == 409
        assert response.json()["message"] == "User with this email already exists"

    @pytest.mark.asyncio
    async def test_concurrent_signup_surfaces_as_conflict(self, client, make_user, monkeypatch):
        from bookreview.routers import auth as auth_router

        await make_user("racer", email="racer@example.com")

        # Simulate the other request committing between the check and the insert
        async def nothing_taken(db, email, username):
            return None

        monkeypatch.setattr(auth_router, "find_taken_identity", nothing_taken)

        response = await client.post(
            "/api/auth/signup",
            json={"username": "racer", "email": "racer@example.com", "password": PASSWORD},
        )
        assert response.status_code == 409
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == "User with this email or username already exists"


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_success(self, client, make_user):
        await make_user("login_user", email="login@example.com")

        response = await client.post(
            "/api/auth/login",
            json={"email": "login@example.com", "password": PASSWORD},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["token"]
        assert body["data"]["user"]["username"] == "login_user"

    @pytest.mark.asyncio
    async def test_bad_password_and_unknown_email_look_the_same(self, client, make_user):
        await make_user("someone", email="someone@example.com")

        wrong_password = await client.post(
            "/api/auth/login",
            json={"email": "someone@example.com", "password": "Wrong1234"},
        )
        unknown_email = await client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": PASSWORD},
        )
        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.json()["message"] == unknown_email.json()["message"]


class TestProfileAndTokens:
    @pytest.mark.asyncio
    async def test_profile(self, client, make_user):
        user = await make_user("profiled")

        response = await client.get("/api/auth/profile", headers=user["headers"])
        assert response.status_code == 200
        profile = response.json()["data"]["user"]
        assert profile["id"] == user["id"]
        assert profile["username"] == "profiled"

    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get("/api/auth/profile")
        assert response.status_code == 401
        assert response.json()["message"] == "Access denied. No token provided."

    @pytest.mark.asyncio
    async def test_invalid_token(self, client):
        response = await client.get(
            "/api/auth/profile", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token. Please login again."

    @pytest.mark.asyncio
    async def test_expired_token(self, client, make_user):
        from bookreview.config import get_settings

        user = await make_user("expired")
        settings = get_settings()
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": str(user["id"]), "type": "access", "exp": past, "iat": past},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        response = await client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Token expired. Please login again."

    @pytest.mark.asyncio
    async def test_token_for_missing_user(self, client):
        from bookreview.auth.jwt_handler import create_access_token

        token = create_access_token(99999)
        response = await client.get(
            "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Token is valid but user no longer exists"
