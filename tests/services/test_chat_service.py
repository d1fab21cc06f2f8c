"""Chat Service — verifies the post pipeline, history and stream admission.

Invariants:
    - post() checks account, then body, then rate limit; rejects leave no trace
    - Accepted posts are stored, then published as a `message` event
    - Banned accounts cannot post, read authenticated history or open streams
"""

import pytest
from sqlalchemy import text

from livechat.core.domain_types import EventKind
from livechat.core.errors import (
    AuthError, BannedError, RateLimitError, StorageError, ValidationError,
)


@pytest.fixture
def chat(services):
    return services.chat


async def test_register_login_post_history(chat, register):
    """Register, log in, post "hi" and read it back."""
    await register("alice")
    token = await chat.login("alice", "hunter22")
    nickname = chat.authenticate_token(token)

    await chat.post(nickname, "hi", now=0.0)

    history = await chat.read_history(nickname)
    assert [(m.id, m.nickname, m.body) for m in history] == [(1, "alice", "hi")]


async def test_post_strips_body(chat, register):
    await register("alice")
    message = await chat.post("alice", "  hello  ", now=0.0)
    assert message.body == "hello"


async def test_post_timestamp_follows_clock(chat, register):
    await register("alice")
    message = await chat.post("alice", "hi", now=1_700_000_000.0)
    assert message.created_at.timestamp() == 1_700_000_000.0


async def test_post_publishes_message_event(chat, register, drain):
    await register("alice")
    sub = await chat.open_stream()

    message = await chat.post("alice", "hi", now=0.0)

    events = await drain(sub)
    assert [e.kind for e in events] == [EventKind.READY, EventKind.MESSAGE]
    assert events[1].data == message.to_dict()


async def test_sixth_post_in_window_rate_limited(chat, register):
    await register("alice")
    for i in range(5):
        await chat.post("alice", f"m{i}", now=float(i))

    with pytest.raises(RateLimitError) as exc_info:
        await chat.post("alice", "m5", now=5.0)

    assert exc_info.value.cooldown_seconds == 60
    assert exc_info.value.retry_at.timestamp() == 65.0
    assert len(await chat.read_history()) == 5

    await chat.post("alice", "back", now=5.0 + 61)
    assert (await chat.read_history())[-1].body == "back"


async def test_rate_limited_post_publishes_nothing(chat, register, drain):
    await register("alice")
    for i in range(5):
        await chat.post("alice", f"m{i}", now=float(i))
    sub = await chat.open_stream()

    with pytest.raises(RateLimitError):
        await chat.post("alice", "m5", now=5.0)

    assert [e.kind for e in await drain(sub)] == [EventKind.READY]


async def test_invalid_body_does_not_consume_rate_budget(chat, register):
    await register("alice")
    for _ in range(10):
        with pytest.raises(ValidationError):
            await chat.post("alice", "   ", now=0.0)

    for i in range(5):
        await chat.post("alice", f"m{i}", now=0.5)


@pytest.mark.parametrize("body, code", [
    ("", "INVALID_MESSAGE"),
    ("x" * 501, "INVALID_MESSAGE"),
    ("see https://example.com", "LINKS_NOT_ALLOWED"),
])
async def test_invalid_body_rejected_and_not_stored(chat, register, body, code):
    await register("alice")

    with pytest.raises(ValidationError) as exc_info:
        await chat.post("alice", body, now=0.0)

    assert exc_info.value.code == code
    assert await chat.read_history() == []


async def test_history_capped_at_one_hundred(chat, register):
    """101 posts leave 100 entries, the oldest being id 2."""
    await register("alice")
    for i in range(101):
        await chat.post("alice", f"m{i}", now=i * 3.0)

    history = await chat.read_history()

    assert len(history) == 100
    assert history[0].id == 2


async def test_post_from_unknown_account(chat):
    with pytest.raises(AuthError) as exc_info:
        await chat.post("ghost", "hi", now=0.0)
    assert exc_info.value.code == "INVALID_TOKEN"


async def test_banned_account_locked_out(chat, register, services):
    token = await register("alice")
    await services.identity.set_banned("alice", True)
    nickname = chat.authenticate_token(token)

    with pytest.raises(BannedError):
        await chat.post(nickname, "hi", now=0.0)
    with pytest.raises(BannedError):
        await chat.read_history(nickname)
    with pytest.raises(BannedError):
        await chat.open_stream(nickname)
    assert services.hub.subscriber_count == 0


async def test_anonymous_history_and_stream(chat, register):
    await register("alice")
    await chat.post("alice", "hi", now=0.0)

    history = await chat.read_history()
    sub = await chat.open_stream()

    assert [m.body for m in history] == ["hi"]
    assert sub.nickname is None
    assert (await sub.next_event(timeout=1)).kind is EventKind.READY


async def test_close_stream(chat, services):
    sub = await chat.open_stream()

    assert chat.close_stream(sub) is True
    assert chat.close_stream(sub) is False
    assert services.hub.subscriber_count == 0


async def test_ban_committed_after_first_check_still_rejects_post(
    services, register, monkeypatch, drain,
):
    """A ban landing between the early account check and the store wins."""
    await register("alice")
    sub = await services.chat.open_stream()
    early_check = services.identity.require_active
    calls = 0

    async def check_then_ban(nickname, db=None):
        nonlocal calls
        calls += 1
        account = await early_check(nickname, db=db)
        if calls == 1:
            await services.moderation.ban(nickname)
        return account

    monkeypatch.setattr(services.identity, "require_active", check_then_ban)

    with pytest.raises(BannedError):
        await services.chat.post("alice", "hello after ban", now=0.0)

    history = await services.chat.read_history()
    assert [(m.nickname, m.body) for m in history] == [
        ("system", "user alice has been banned"),
    ]
    kinds = [e.kind for e in await drain(sub)]
    assert kinds == [EventKind.READY, EventKind.PURGE, EventKind.BAN, EventKind.MESSAGE]


async def test_failed_store_does_not_use_rate_budget(services, register):
    await register("alice")
    async with services.db.engine.begin() as conn:
        await conn.execute(text("DROP TABLE messages"))

    for _ in range(5):
        with pytest.raises(StorageError):
            await services.chat.post("alice", "lost", now=0.0)

    await services.db.create_all()
    for i in range(5):
        await services.chat.post("alice", f"m{i}", now=1.0)
    assert len(await services.chat.read_history()) == 5
