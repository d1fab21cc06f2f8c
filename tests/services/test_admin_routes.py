"""Admin Routes — verifies the moderation console endpoints over HTTP.

Invariants:
    - Every /admin route requires X-Admin-Token; otherwise 401 ADMIN_UNAUTHORIZED
    - An empty configured admin token rejects every request
    - Moderation actions answer {"ok": true}; warn also returns the author
"""

import pytest
from httpx import ASGITransport, AsyncClient

from livechat.core.domain_types import REDACTION_MARKER
from livechat.main import app

ADMIN = {"X-Admin-Token": "test-admin-token"}


@pytest.mark.parametrize("headers", [{}, {"X-Admin-Token": "wrong"}])
async def test_admin_requires_token(client, headers):
    res = await client.post("/admin/clear", headers=headers)

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "ADMIN_UNAUTHORIZED"


async def test_empty_admin_token_disables_console(services):
    services.settings = services.settings.model_copy(update={"admin_token": ""})
    app.state.services = services
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        res = await c.post("/admin/clear", headers={"X-Admin-Token": ""})
    del app.state.services

    assert res.status_code == 401


async def test_warn(client, register, services):
    await register("alice")
    await services.chat.post("alice", "hi", now=0.0)

    res = await client.post("/admin/messages/1/warn", headers=ADMIN)

    assert res.status_code == 200
    assert res.json() == {"ok": True, "nickname": "alice"}
    assert (await services.chat.read_history())[0].body == REDACTION_MARKER


async def test_delete_message(client, register, services):
    await register("alice")
    await services.chat.post("alice", "hi", now=0.0)

    res = await client.post("/admin/messages/1/delete", headers=ADMIN)

    assert res.status_code == 200
    assert res.json() == {"ok": True}


async def test_delete_missing_message(client):
    res = await client.post("/admin/messages/99/delete", headers=ADMIN)

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "MESSAGE_NOT_FOUND"


async def test_delete_invalid_message_id(client):
    res = await client.post("/admin/messages/abc/delete", headers=ADMIN)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_MESSAGE_ID"


async def test_ban_and_unban(client, register, services):
    await register("alice")

    res = await client.post("/admin/users/alice/ban", headers=ADMIN)
    assert res.status_code == 200
    banned = (await client.get("/admin/users/banned", headers=ADMIN)).json()["users"]
    assert [u["nickname"] for u in banned] == ["alice"]

    res = await client.post("/admin/users/alice/unban", headers=ADMIN)
    assert res.status_code == 200
    active = (await client.get("/admin/users/active", headers=ADMIN)).json()["users"]
    assert [u["nickname"] for u in active] == ["alice"]
    assert active[0]["created_at"].endswith(("+00:00", "Z"))


async def test_ban_unknown_user(client):
    res = await client.post("/admin/users/ghost/ban", headers=ADMIN)

    assert res.status_code == 404
    assert res.json()["error"]["code"] == "USER_NOT_FOUND"


async def test_delete_user(client, register, services):
    await register("alice")
    await services.chat.post("alice", "hi", now=0.0)

    res = await client.delete("/admin/users/alice", headers=ADMIN)

    assert res.status_code == 200
    assert await services.chat.read_history() == []
    assert await services.identity.get_account("alice") is None


async def test_clear(client, register, services):
    await register("alice")
    await services.chat.post("alice", "hi", now=0.0)

    res = await client.post("/admin/clear", headers=ADMIN)

    assert res.status_code == 200
    assert res.json() == {"ok": True}
    assert await services.chat.read_history() == []
