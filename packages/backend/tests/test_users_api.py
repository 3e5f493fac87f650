"""User API tests — the HTTP surface end to end.

Learn: Every request goes through the real middleware, real token
verification and real admin gate; only the store is in-memory.
"""

import uuid

import pytest

ANA = {"name": "Ana", "email": "a@x.com", "password": "secret1"}


async def _create(client, tokens, **overrides) -> str:
    """Sign up via the API and return the new user's id."""
    r = await client.post("/users", json={**ANA, **overrides})
    assert r.status_code == 201, r.text
    return tokens.verify(r.json()["token"]).id


# ═══════════════════════════════════════════════════════════
# Signup
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_signup_then_admin_reads_user(client, tokens, admin_headers):
    r = await client.post("/users", json=ANA)
    assert r.status_code == 201
    body = r.json()
    assert set(body) == {"message", "token"}

    user_id = tokens.verify(body["token"]).id
    r = await client.get(f"/users/{user_id}", headers=admin_headers)
    assert r.status_code == 200
    user = r.json()
    assert user["name"] == "Ana"
    assert user["email"] == "a@x.com"
    assert user["is_admin"] is False
    assert not any("password" in key for key in user)


@pytest.mark.asyncio
async def test_signup_duplicate_email(client):
    assert (await client.post("/users", json=ANA)).status_code == 201
    r = await client.post("/users", json={**ANA, "name": "Ana Two"})
    assert r.status_code == 409
    assert r.json() == {"statusCode": 409, "message": "email already registered"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"email": "a@x.com", "password": "secret1"},
        {"name": "Ana", "email": "nope", "password": "secret1"},
        {"name": "Ana", "email": "a@x.com", "password": "abc"},
        {**ANA, "unexpected": True},
    ],
)
async def test_signup_validation_is_400(client, body):
    r = await client.post("/users", json=body)
    assert r.status_code == 400
    assert r.json()["statusCode"] == 400
    assert r.json()["message"]


@pytest.mark.asyncio
async def test_signup_malformed_json_is_400(client):
    r = await client.post(
        "/users", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Read / list
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_get_user_requires_token(client, tokens):
    user_id = await _create(client, tokens)
    r = await client.get(f"/users/{user_id}")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_get_user_requires_admin(client, tokens, user_headers):
    user_id = await _create(client, tokens)
    r = await client.get(f"/users/{user_id}", headers=user_headers)
    assert r.status_code == 403
    assert r.json()["statusCode"] == 403


@pytest.mark.asyncio
async def test_get_unknown_user_is_404(client, admin_headers):
    r = await client.get(f"/users/{uuid.uuid4()}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json() == {"statusCode": 404, "message": "user not found"}


@pytest.mark.asyncio
async def test_get_user_bad_id_is_400(client, admin_headers):
    r = await client.get("/users/not-a-uuid", headers=admin_headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_list_users_as_admin(client, tokens, admin_headers):
    await _create(client, tokens)
    await _create(client, tokens, name="Bruno", email="bruno@x.com")

    r = await client.get("/users", headers=admin_headers)
    assert r.status_code == 200
    users = r.json()
    assert {u["email"] for u in users} == {"admin@example.com", "a@x.com", "bruno@x.com"}
    for u in users:
        assert "password_hash" not in u

    r = await client.get("/users", params={"q": "bru"}, headers=admin_headers)
    assert [u["email"] for u in r.json()] == ["bruno@x.com"]


@pytest.mark.asyncio
async def test_list_users_non_admin_forbidden(client, user_headers):
    r = await client.get("/users", headers=user_headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_list_users_no_token(client):
    r = await client.get("/users")
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Update
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_update_user(client, tokens, admin_headers):
    user_id = await _create(client, tokens)
    r = await client.put(
        f"/users/{user_id}",
        json={"phone": "+55 11 99999-0000", "roles": ["staff"]},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert r.json()["phone"] == "+55 11 99999-0000"
    assert r.json()["roles"] == ["staff"]
    assert "password_hash" not in r.json()


@pytest.mark.asyncio
async def test_update_null_clears_phone(client, tokens, admin_headers):
    user_id = await _create(client, tokens, phone="+55 11 99999-0000")
    r = await client.put(f"/users/{user_id}", json={"phone": None}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["phone"] is None

    r = await client.put(f"/users/{user_id}", json={"email": None}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"].startswith("email:")


@pytest.mark.asyncio
async def test_update_empty_body_is_400(client, tokens, admin_headers):
    user_id = await _create(client, tokens)
    r = await client.put(f"/users/{user_id}", json={}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json() == {"statusCode": 400, "message": "no fields to update"}


@pytest.mark.asyncio
async def test_update_unknown_user_is_404(client, admin_headers):
    r = await client.put(
        f"/users/{uuid.uuid4()}", json={"name": "X"}, headers=admin_headers
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_requires_admin(client, tokens, user_headers):
    user_id = await _create(client, tokens)
    r = await client.put(f"/users/{user_id}", json={"name": "X"}, headers=user_headers)
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_update_password_then_login(client, tokens, admin_headers):
    user_id = await _create(client, tokens)
    r = await client.put(
        f"/users/{user_id}", json={"password": "brand-new-pw"}, headers=admin_headers
    )
    assert r.status_code == 200

    r = await client.post("/login", json={"email": "a@x.com", "password": "brand-new-pw"})
    assert r.status_code == 200
    r = await client.post("/login", json={"email": "a@x.com", "password": "secret1"})
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_roles_flow_into_new_tokens(client, tokens, admin_headers):
    user_id = await _create(client, tokens)
    await client.put(f"/users/{user_id}", json={"roles": ["staff"]}, headers=admin_headers)

    r = await client.post("/login", json={"email": "a@x.com", "password": "secret1"})
    payload = tokens.verify(r.json()["token"])
    assert payload.roles == frozenset({"staff"})


# ═══════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_delete_user(client, tokens, admin_headers):
    user_id = await _create(client, tokens)
    r = await client.delete(f"/users/{user_id}", headers=admin_headers)
    assert r.status_code == 204
    assert r.content == b""

    r = await client.get(f"/users/{user_id}", headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_admin_is_forbidden(client, tokens, admin_headers):
    admin_id = await _create(client, tokens, email="boss@x.com", is_admin=True)
    r = await client.delete(f"/users/{admin_id}", headers=admin_headers)
    assert r.status_code == 403
    assert r.json()["message"] == "cannot delete an admin account"

    r = await client.get(f"/users/{admin_id}", headers=admin_headers)
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_delete_unknown_is_404(client, admin_headers):
    r = await client.delete(f"/users/{uuid.uuid4()}", headers=admin_headers)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_requires_token(client, tokens):
    user_id = await _create(client, tokens)
    r = await client.delete(f"/users/{user_id}")
    assert r.status_code == 401
