"""Shared test configuration and fixtures."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure the project root is on sys.path so `bookreview.main` resolves
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Settings are read once, so the test environment must be set before any import
_DB_DIR = tempfile.mkdtemp(prefix="bookreview-tests-")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_DIR}/test.db")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "console")

PASSWORD = "Secret123"

DUNE = {
    "title": "Dune",
    "author": "Herbert",
    "genre": "Science Fiction",
    "description": "Politics, religion and ecology on the desert planet Arrakis.",
    "publicationDate": "1965-08-01",
    "isbn": "978-0441172719",
}


@pytest_asyncio.fixture
async def client():
    """Test client for the FastAPI app backed by a fresh SQLite schema."""
    from bookreview.database import Base, engine
    from bookreview.main import app

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def make_user(client):
    """Sign up a user; returns its id, token and ready-made auth headers."""

    async def _make(username: str, email: str | None = None, password: str = PASSWORD) -> dict:
        response = await client.post(
            "/api/auth/signup",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {
            "id": data["user"]["id"],
            "token": data["token"],
            "headers": {"Authorization": f"Bearer {data['token']}"},
        }

    return _make


@pytest_asyncio.fixture
async def make_book(client):
    """Create a book as the given user; returns the book JSON."""

    async def _make(user: dict, **overrides) -> dict:
        response = await client.post(
            "/api/books",
            json={**DUNE, **overrides},
            headers=user["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["book"]

    return _make


@pytest_asyncio.fixture
async def make_review(client):
    """Review a book as the given user; returns the review JSON."""

    async def _make(user: dict, book_id: int, rating: int, text: str = "A thoroughly enjoyable read.") -> dict:
        response = await client.post(
            f"/api/books/{book_id}/reviews",
            json={"rating": rating, "reviewText": text},
            headers=user["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]["review"]

    return _make
