"""Service test fixtures — per-test SQLite database, wired services, HTTP client.

Invariants:
    - Every test gets a fresh file-backed SQLite database under tmp_path
    - The FastAPI app uses the test container via app.state (lifespan not run)
    - bcrypt runs at the minimum cost factor

Design Decisions:
    - File database instead of :memory:: concurrent sessions get real
      connections and SQLite's own locking, as in production
"""

import pytest
from httpx import ASGITransport, AsyncClient

from livechat.config import Settings
from livechat.main import app
from livechat.services.container import build_services

ADMIN_TOKEN = "test-admin-token"
PASSWORD = "hunter22"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}",
        jwt_secret="test-secret-not-for-production",
        admin_token=ADMIN_TOKEN,
        bcrypt_rounds=4,
        heartbeat_interval_seconds=30.0,
    )


@pytest.fixture
async def services(settings):
    container = build_services(settings)
    await container.db.create_all()
    yield container
    await container.close()


@pytest.fixture
async def client(services):
    """FastAPI test client bound to the test container."""
    app.state.services = services
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
    del app.state.services


@pytest.fixture
def register(services):
    """Register an account through ChatService and return its token."""
    async def _register(nickname: str = "alice", password: str = PASSWORD) -> str:
        _, token = await services.chat.register(nickname, password)
        return token
    return _register


@pytest.fixture
def drain():
    """Collect the events already queued on a subscription, without waiting."""
    async def _drain(subscription) -> list:
        events = []
        while subscription.pending():
            event = await subscription.next_event(timeout=1)
            if event is None:
                break
            events.append(event)
        return events
    return _drain
