"""Service Container — wires every component once per process.

Invariants:
    - Exactly one RateLimiter, MessageLedger and BroadcastHub per container
    - Components receive collaborators explicitly; nothing reads module globals

Design Decisions:
    - Built in the FastAPI lifespan and stored on app.state; tests build their
      own container against a throwaway SQLite file
"""

from dataclasses import dataclass

from livechat.config import Settings
from livechat.core.rate_limiter import RateLimiter
from livechat.infrastructure.credentials import CredentialHasher
from livechat.infrastructure.database import DatabaseSessionManager
from livechat.infrastructure.tokens import TokenSigner
from livechat.services.broadcast_hub import BroadcastHub
from livechat.services.chat_service import ChatService
from livechat.services.identity import Identity
from livechat.services.message_ledger import MessageLedger
from livechat.services.moderation import ModerationEngine


@dataclass
class ServiceContainer:
    settings: Settings
    db: DatabaseSessionManager
    identity: Identity
    limiter: RateLimiter
    ledger: MessageLedger
    hub: BroadcastHub
    chat: ChatService
    moderation: ModerationEngine

    async def close(self) -> None:
        await self.hub.close()
        await self.db.dispose()


def build_services(
    settings: Settings, db: DatabaseSessionManager | None = None,
) -> ServiceContainer:
    db = db or DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    identity = Identity(
        db,
        CredentialHasher(settings.bcrypt_rounds),
        TokenSigner(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            ttl_seconds=settings.token_ttl_seconds,
        ),
    )
    limiter = RateLimiter(
        max_posts=settings.rate_limit_max,
        window_seconds=settings.rate_limit_window_seconds,
        cooldown_seconds=settings.rate_limit_cooldown_seconds,
    )
    ledger = MessageLedger(db, capacity=settings.history_limit)
    hub = BroadcastHub(
        heartbeat_interval=settings.heartbeat_interval_seconds,
        queue_size=settings.subscriber_queue_size,
    )
    return ServiceContainer(
        settings=settings,
        db=db,
        identity=identity,
        limiter=limiter,
        ledger=ledger,
        hub=hub,
        chat=ChatService(identity, limiter, ledger, hub),
        moderation=ModerationEngine(identity, ledger, hub),
    )
