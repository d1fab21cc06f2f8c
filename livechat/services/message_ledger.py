"""Message Ledger — the durable, size-bounded chat history.

Invariants:
    - At most `capacity` rows persist: every insert is followed by a trim to the
      highest `capacity` ids in the same transaction, under the ledger lock
    - recent() always returns ascending id order
    - Redaction keeps id, author and timestamp; redacting twice is a no-op
    - Storage failures propagate as StorageError, never swallowed

Design Decisions:
    - Every method takes an optional `db`: absent, the ledger opens its own
      locked transaction; present, the caller's unit_of_work() already holds the
      lock and the transaction (compound moderation actions)
    - asyncio.Lock serializes all ledger writes in the process
"""

import asyncio
import dataclasses
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from livechat.core.domain_types import (
    HISTORY_LIMIT, REDACTION_MARKER, MessageId, Nickname,
)
from livechat.core.errors import ErrorContext, NotFoundError
from livechat.core.events import ChatMessage
from livechat.core.repository_protocols import MessageRepository
from livechat.infrastructure.database import DatabaseSessionManager
from livechat.infrastructure.repositories import SqlMessageRepository

logger = logging.getLogger(__name__)


class MessageLedger:
    """Owns the messages table: append+trim, redaction, purges."""

    def __init__(
        self,
        db_manager: DatabaseSessionManager,
        capacity: int = HISTORY_LIMIT,
        repository: Callable[[AsyncSession], MessageRepository] = SqlMessageRepository,
    ):
        self._db_manager = db_manager
        self._repository = repository
        self.capacity = capacity
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncGenerator[AsyncSession, None]:
        """Hold the ledger lock and one transaction for a compound operation."""
        async with self._lock:
            async with self._db_manager.transaction() as db:
                yield db

    @asynccontextmanager
    async def _scope(self, db: AsyncSession | None) -> AsyncGenerator[AsyncSession, None]:
        if db is not None:
            yield db
            return
        async with self.unit_of_work() as own:
            yield own

    async def append(
        self,
        author: Nickname,
        body: str,
        created_at: datetime | None = None,
        db: AsyncSession | None = None,
    ) -> ChatMessage:
        created_at = created_at or datetime.now(timezone.utc)
        async with self._scope(db) as session:
            repo = self._repository(session)
            message = await repo.insert(author, body, created_at)
            trimmed = await repo.trim_to(self.capacity)
        if trimmed:
            logger.debug(
                f"Trimmed {trimmed} message(s) past capacity",
                extra={"message_id": message.id},
            )
        return message

    async def recent(self, limit: int | None = None) -> list[ChatMessage]:
        limit = self.capacity if limit is None else max(0, min(limit, self.capacity))
        async with self._db_manager.session() as db:
            return await self._repository(db).recent(limit)

    async def get(
        self, message_id: MessageId, db: AsyncSession | None = None,
    ) -> ChatMessage:
        if db is not None:
            message = await self._repository(db).get(message_id)
        else:
            async with self._db_manager.session() as own:
                message = await self._repository(own).get(message_id)
        if message is None:
            raise NotFoundError(
                "Message", message_id, ErrorContext(message_id=message_id),
            )
        return message

    async def redact(
        self, message_id: MessageId, db: AsyncSession | None = None,
    ) -> ChatMessage:
        """Replace the body with the redaction marker. NotFoundError if the row is gone."""
        async with self._scope(db) as session:
            message = await self.get(message_id, db=session)
            if message.body != REDACTION_MARKER:
                await self._repository(session).update_body(
                    message_id, REDACTION_MARKER,
                )
        return dataclasses.replace(message, body=REDACTION_MARKER)

    async def redact_all_by(
        self, author: Nickname, db: AsyncSession | None = None,
    ) -> int:
        async with self._scope(db) as session:
            return await self._repository(session).update_body_by_author(
                author, REDACTION_MARKER,
            )

    async def delete_all_by(
        self, author: Nickname, db: AsyncSession | None = None,
    ) -> int:
        async with self._scope(db) as session:
            return await self._repository(session).delete_by_author(author)

    async def clear_all(self, db: AsyncSession | None = None) -> int:
        async with self._scope(db) as session:
            return await self._repository(session).delete_all()
