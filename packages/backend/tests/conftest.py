"""Test fixtures: a fresh in-memory store and a test-keyed TokenService per test.

Learn: The app depends on get_store and get_token_service, never on a
concrete backend or the configured secret. Tests override both:

1. get_store → a new InMemoryStore, so every test starts empty
2. get_token_service → a TokenService with a throwaway key, so tests
   can mint tokens (expired, foreign, forged) with the same service

Unlike the auth dependency itself, nothing is mocked: every request
below goes through the real require_path_owner checks. bcrypt rounds
are lowered to keep registration fast.
"""

import uuid
from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tasklist.auth.dependencies import get_token_service
from tasklist.auth.jwt import TokenService
from tasklist.config import settings
from tasklist.main import app
from tasklist.store import InMemoryStore, get_store

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"
OTHER_SECRET = "other-secret-fedcba9876543210fedcba9876543210"

settings.bcrypt_rounds = 4


@pytest.fixture()
def store():
    return InMemoryStore()


@pytest.fixture()
def signing_secret():
    """Key the app under test signs and verifies with."""
    return TEST_SECRET


@pytest.fixture()
def foreign_secret():
    """A different key, for forged tokens."""
    return OTHER_SECRET


@pytest.fixture()
def tokens(signing_secret):
    return TokenService(signing_secret, ttl=timedelta(hours=24))


@pytest.fixture()
def override_app(store, tokens):
    """Point the app at this test's store and token service."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_token_service] = lambda: tokens
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(override_app):
    transport = ASGITransport(app=override_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def register_and_login(client, name: str) -> dict:
    """Register a user through the API, log in, return id/token/headers."""
    email = f"{name}-{uuid.uuid4().hex[:8]}@example.com"
    password = f"{name}-password-123"
    r = await client.post(
        "/register",
        json={"username": name, "email": email, "password": password},
    )
    assert r.status_code == 201, r.text
    user = r.json()

    r = await client.post("/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    return {
        **user,
        "password": password,
        "token": token,
        "headers": {"Authorization": f"JWT {token}"},
    }


@pytest_asyncio.fixture()
async def alice(client):
    return await register_and_login(client, "alice")


@pytest_asyncio.fixture()
async def bob(client):
    return await register_and_login(client, "bob")
