"""Auth Routes — verifies /auth/register, /auth/login and /health over HTTP.

Invariants:
    - Register answers 201 with nickname and token
    - Domain errors keep their code and HTTP status in the JSON envelope
"""

import pytest


async def test_health(client):
    res = await client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"ok": True}


async def test_readiness(client):
    res = await client.get("/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_register(client, services):
    res = await client.post(
        "/auth/register", json={"nickname": "alice", "password": "hunter22"},
    )

    assert res.status_code == 201
    body = res.json()
    assert body["nickname"] == "alice"
    assert services.chat.authenticate_token(body["token"]) == "alice"


async def test_register_duplicate(client):
    payload = {"nickname": "alice", "password": "hunter22"}
    await client.post("/auth/register", json=payload)

    res = await client.post("/auth/register", json=payload)

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "USERNAME_TAKEN"


@pytest.mark.parametrize("payload, code", [
    ({"nickname": "ab", "password": "hunter22"}, "INVALID_USERNAME"),
    ({"nickname": "alice", "password": "123"}, "INVALID_PASSWORD"),
    ({"password": "hunter22"}, "INVALID_USERNAME"),
])
async def test_register_invalid(client, payload, code):
    res = await client.post("/auth/register", json=payload)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == code


async def test_register_malformed_json(client):
    res = await client.post(
        "/auth/register", content="not json",
        headers={"Content-Type": "application/json"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_REQUEST"


async def test_register_banned_nickname(client, register, services):
    await register("alice")
    await services.moderation.ban("alice")

    res = await client.post(
        "/auth/register", json={"nickname": "alice", "password": "hunter22"},
    )

    assert res.status_code == 403
    assert res.json()["error"]["code"] == "BANNED"


async def test_login(client, register):
    await register("alice")

    res = await client.post(
        "/auth/login", json={"nickname": "alice", "password": "hunter22"},
    )

    assert res.status_code == 200
    assert res.json()["nickname"] == "alice"
    assert res.json()["token"]


async def test_login_wrong_password(client, register):
    await register("alice")

    res = await client.post(
        "/auth/login", json={"nickname": "alice", "password": "wrong-pass"},
    )

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_CREDENTIALS"


async def test_login_banned(client, register, services):
    await register("alice")
    await services.moderation.ban("alice")

    res = await client.post(
        "/auth/login", json={"nickname": "alice", "password": "hunter22"},
    )

    assert res.status_code == 403
    assert res.json()["error"]["message"] == "this account has been banned"
