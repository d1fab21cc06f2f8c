"""Chat Service — orchestrates register, login, post, history and streams.

Invariants:
    - Token validity alone never authorizes: post, authenticated history and
      authenticated streams re-check the live account (exists, not banned)
    - post() checks run in order: account, body, rate limit; a rejected post
      leaves no trace in the ledger and publishes nothing
    - The account is checked again inside the ledger unit of work that stores
      the post, so a ban committed after the first check still rejects it
    - A message is published only after the ledger committed it
    - An accepted attempt whose post is not stored (ban, storage failure) is
      refunded to the rate limiter
    - Stream ban checks happen once, at connect; a later ban reaches the
      client as a `ban` event

Design Decisions:
    - Clock injected (seconds since epoch): the rate limiter and timestamps
      are driven by the same `now`, tests pass it explicitly
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from livechat.core.domain_types import Nickname
from livechat.core.errors import ErrorContext, LiveChatError, RateLimitError
from livechat.core.events import ChatMessage, message_event
from livechat.core.rate_limiter import RateLimiter
from livechat.core.validation import validate_message_body
from livechat.models.account import Account
from livechat.services.broadcast_hub import BroadcastHub, Subscription
from livechat.services.identity import Identity
from livechat.services.message_ledger import MessageLedger

logger = logging.getLogger(__name__)


class ChatService:
    """The only component user-facing routes call."""

    def __init__(
        self,
        identity: Identity,
        limiter: RateLimiter,
        ledger: MessageLedger,
        hub: BroadcastHub,
        clock: Callable[[], float] = time.time,
    ):
        self._identity = identity
        self._limiter = limiter
        self._ledger = ledger
        self._hub = hub
        self._clock = clock

    async def register(self, nickname: str, password: str) -> tuple[Account, str]:
        return await self._identity.register(nickname, password)

    async def login(self, nickname: str, password: str) -> str:
        return await self._identity.authenticate(nickname, password)

    def authenticate_token(self, token: str) -> Nickname:
        return self._identity.verify_token(token)

    async def post(
        self, nickname: Nickname, body: str, now: float | None = None,
    ) -> ChatMessage:
        await self._identity.require_active(nickname)
        body = validate_message_body(body)

        now = self._clock() if now is None else now
        decision = self._limiter.check(nickname, now)
        if not decision.allowed:
            logger.warning(
                "Post rate limited",
                extra={"nickname": nickname, "cooldown_seconds": decision.cooldown_seconds},
            )
            raise RateLimitError(
                decision.cooldown_seconds,
                datetime.fromtimestamp(decision.retry_at, tz=timezone.utc),
                ErrorContext(nickname=nickname),
            )

        try:
            async with self._ledger.unit_of_work() as db:
                await self._identity.require_active(nickname, db=db)
                message = await self._ledger.append(
                    nickname, body, datetime.fromtimestamp(now, tz=timezone.utc), db=db,
                )
        except LiveChatError:
            self._limiter.refund(nickname, now)
            raise
        self._hub.publish_batch([message_event(message)])
        return message

    async def read_history(
        self, nickname: Nickname | None = None,
    ) -> list[ChatMessage]:
        """Up to the ledger capacity, oldest first. Anonymous when nickname is None."""
        if nickname is not None:
            await self._identity.require_active(nickname)
        return await self._ledger.recent()

    async def admit_stream(self, nickname: Nickname | None = None) -> None:
        """Connect-time check for a stream; anonymous streams always pass."""
        if nickname is not None:
            await self._identity.require_active(nickname)

    def join_stream(self, nickname: Nickname | None = None) -> Subscription:
        return self._hub.subscribe(nickname)

    async def open_stream(self, nickname: Nickname | None = None) -> Subscription:
        await self.admit_stream(nickname)
        return self.join_stream(nickname)

    def close_stream(self, subscription: Subscription) -> bool:
        return self._hub.unsubscribe(subscription)
