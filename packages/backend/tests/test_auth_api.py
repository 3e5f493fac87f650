"""Login and /me tests.

Learn: Tests cover:
1. Login → token, wrong password, unknown email (both policies)
2. Protected /me with a real token, no token, garbage token
"""

from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from spacehub.auth.jwt import TokenPayload
from spacehub.main import create_app
from spacehub.store.memory import InMemoryIdentityStore

ANA = {"name": "Ana", "email": "a@x.com", "password": "secret1"}


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client, tokens):
    await client.post("/users", json=ANA)
    r = await client.post("/login", json={"email": "a@x.com", "password": "secret1"})
    assert r.status_code == 200
    body = r.json()
    assert set(body) == {"message", "token"}
    assert tokens.verify(body["token"]).name == "Ana"


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    await client.post("/users", json=ANA)
    r = await client.post("/login", json={"email": "a@x.com", "password": "secret2"})
    assert r.status_code == 400
    assert r.json() == {"statusCode": 400, "message": "invalid credentials"}
    assert "token" not in r.json()


@pytest.mark.asyncio
async def test_login_unknown_email_is_404(client):
    r = await client.post("/login", json={"email": "nobody@x.com", "password": "whatever"})
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_login_unknown_email_hidden_when_configured(settings):
    app = create_app(
        settings.model_copy(update={"hide_unknown_email": True}),
        store_provider=InMemoryIdentityStore().open,
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.post("/login", json={"email": "nobody@x.com", "password": "whatever"})
    app.state.hasher.shutdown()
    assert r.status_code == 400
    assert r.json()["message"] == "invalid credentials"


@pytest.mark.asyncio
async def test_login_missing_fields_is_400(client):
    r = await client.post("/login", json={"email": "a@x.com"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_login_corrupt_hash_is_generic_500(client, store):
    await client.post("/users", json=ANA)
    user = await store.get_by_email("a@x.com")
    await store.update(user, {"password_hash": "corrupted"})

    r = await client.post("/login", json={"email": "a@x.com", "password": "secret1"})
    assert r.status_code == 500
    assert r.json() == {"statusCode": 500, "message": "Internal server error"}


# ═══════════════════════════════════════════════════════════
# Protected endpoint (/me)
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_token(client):
    r = await client.post("/users", json=ANA)
    token = r.json()["token"]

    r = await client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["email"] == "a@x.com"
    assert "password_hash" not in r.json()


@pytest.mark.asyncio
async def test_me_without_token(client):
    r = await client.get("/me")
    assert r.status_code == 401
    assert r.json() == {"statusCode": 401, "message": "Authentication required"}


@pytest.mark.asyncio
async def test_me_with_invalid_token(client):
    r = await client.get("/me", headers={"Authorization": "Bearer invalid_token_here"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_me_with_expired_token(client, tokens):
    r = await client.post("/users", json=ANA)
    user_id = tokens.verify(r.json()["token"]).id
    expired = tokens.create_token(
        TokenPayload(id=user_id, name="Ana"), ttl=timedelta(seconds=-1)
    )
    r = await client.get("/me", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_me_for_deleted_account_is_404(client, tokens):
    token = tokens.create_token(
        TokenPayload(id="00000000-0000-0000-0000-000000000001", name="Ghost")
    )
    r = await client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 404
