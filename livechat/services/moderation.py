"""Moderation Engine — atomic, broadcast-consistent moderator actions.

Invariants:
    - Each action validates its target (nickname format, positive message id)
      before touching storage
    - All store mutations of one action share a single unit of work; events are
      published only after it committed, as one contiguous batch
    - A StorageError aborts the whole action: nothing committed, nothing published
    - Ban publishes purge, ban, then the system log message, in that order;
      clients react to the ban before rendering the log line
    - Unban is idempotent for accounts that are already active

Design Decisions:
    - Unknown accounts are NotFound for ban/unban (no log line for a ghost);
      delete_account stays idempotent and always broadcasts purge
"""

import logging

from livechat.core.domain_types import SYSTEM_AUTHOR, Nickname
from livechat.core.events import (
    ChatMessage,
    ban_event,
    clear_event,
    delete_event,
    message_event,
    purge_event,
    warn_event,
)
from livechat.core.validation import validate_message_id, validate_nickname
from livechat.models.account import Account
from livechat.services.broadcast_hub import BroadcastHub
from livechat.services.identity import Identity
from livechat.services.message_ledger import MessageLedger

logger = logging.getLogger(__name__)


class ModerationEngine:
    """Composes Identity, MessageLedger and BroadcastHub for moderator actions."""

    def __init__(
        self, identity: Identity, ledger: MessageLedger, hub: BroadcastHub,
    ):
        self._identity = identity
        self._ledger = ledger
        self._hub = hub

    async def warn(self, message_id: int | str) -> Nickname:
        """Redact a message and notify its author. Returns the author."""
        message_id = validate_message_id(message_id)
        message = await self._ledger.redact(message_id)
        self._hub.publish_batch([
            delete_event(message.id),
            warn_event(message.nickname, message.id),
        ])
        logger.info(
            "Message redacted with warning",
            extra={"message_id": message_id, "nickname": message.nickname},
        )
        return message.nickname

    async def delete_message(self, message_id: int | str) -> ChatMessage:
        message_id = validate_message_id(message_id)
        message = await self._ledger.redact(message_id)
        self._hub.publish_batch([delete_event(message.id)])
        logger.info("Message redacted", extra={"message_id": message_id})
        return message

    async def ban(self, nickname: str) -> ChatMessage:
        """Ban an account, redact its history and announce it. Returns the log line."""
        nickname = validate_nickname(nickname)
        async with self._ledger.unit_of_work() as db:
            await self._identity.set_banned(nickname, True, db=db)
            redacted = await self._ledger.redact_all_by(nickname, db=db)
            entry = await self._ledger.append(
                SYSTEM_AUTHOR, f"user {nickname} has been banned", db=db,
            )
        self._hub.publish_batch([
            purge_event(nickname),
            ban_event(nickname),
            message_event(entry),
        ])
        logger.info(
            f"Account banned, {redacted} message(s) redacted",
            extra={"nickname": nickname},
        )
        return entry

    async def unban(self, nickname: str) -> ChatMessage:
        nickname = validate_nickname(nickname)
        async with self._ledger.unit_of_work() as db:
            await self._identity.set_banned(nickname, False, db=db)
            entry = await self._ledger.append(
                SYSTEM_AUTHOR, f"user {nickname} has been unbanned", db=db,
            )
        self._hub.publish_batch([message_event(entry)])
        logger.info("Account unbanned", extra={"nickname": nickname})
        return entry

    async def delete_account(self, nickname: str) -> int:
        """Hard-delete an account and all of its messages. Irreversible."""
        nickname = validate_nickname(nickname)
        async with self._ledger.unit_of_work() as db:
            removed = await self._ledger.delete_all_by(nickname, db=db)
            await self._identity.delete_account(nickname, db=db)
        self._hub.publish_batch([purge_event(nickname)])
        logger.info(
            f"Account deleted with {removed} message(s)",
            extra={"nickname": nickname},
        )
        return removed

    async def wipe(self) -> int:
        removed = await self._ledger.clear_all()
        self._hub.publish_batch([clear_event()])
        logger.info(f"Chat history wiped ({removed} message(s))")
        return removed

    async def list_accounts(self, banned: bool) -> list[Account]:
        """Active or banned accounts, sorted case-insensitively by nickname."""
        return await self._identity.list_accounts(banned)

