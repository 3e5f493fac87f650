"""Test fixtures — in-memory identity store, real app, real tokens.

Learn: Testing pattern for the FastAPI app:

1. Each test gets fresh Settings (bcrypt cost 4 keeps hashing fast)
2. Each test gets its own InMemoryIdentityStore, wired into create_app()
   as the store provider — no database needed, and nothing leaks
   between tests.
3. The HTTP client talks to the ASGI app in-process via httpx.

Auth is NOT mocked: admin_token / user_token are real signed tokens
for real accounts, so every request runs the full auth pipeline.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from spacehub.auth.jwt import TokenService
from spacehub.auth.password import CredentialHasher
from spacehub.config import load_settings
from spacehub.main import create_app
from spacehub.services.identity_service import IdentityService
from spacehub.store.memory import InMemoryIdentityStore

TEST_SETTINGS = {
    "jwt_secret": "test-secret-that-is-long-enough-for-hs256",
    "bcrypt_cost": 4,
    "store_backend": "memory",
    "environment": "development",
    "log_json": False,
    "log_level": "WARNING",
}


@pytest.fixture()
def settings():
    return load_settings(**TEST_SETTINGS)


@pytest.fixture()
def hasher(settings):
    h = CredentialHasher.from_settings(settings)
    yield h
    h.shutdown()


@pytest.fixture()
def tokens(settings):
    return TokenService.from_settings(settings)


@pytest.fixture()
def store():
    return InMemoryIdentityStore()


class TickingClock:
    """Deterministic clock: every call is one second later."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture()
def clock():
    return TickingClock()


@pytest.fixture()
def service(store, hasher, tokens, clock):
    return IdentityService(store, hasher, tokens, clock=clock)


@pytest.fixture()
def app(settings, store):
    app = create_app(settings, store_provider=store.open)
    yield app
    app.state.hasher.shutdown()


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def admin_token(service):
    result = await service.signup(
        {
            "name": "Root Admin",
            "email": "admin@example.com",
            "password": "admin_password",
            "is_admin": True,
        }
    )
    return result.token


@pytest_asyncio.fixture()
async def user_token(service):
    result = await service.signup(
        {"name": "Regular", "email": "regular@example.com", "password": "regular_pw"}
    )
    return result.token


@pytest.fixture()
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture()
def user_headers(user_token):
    return {"Authorization": f"Bearer {user_token}"}
