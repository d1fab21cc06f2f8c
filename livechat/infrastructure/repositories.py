"""SQL Repositories — SQLAlchemy implementations of the storage Protocols.

Invariants:
    - Repositories operate on a caller-provided AsyncSession and never commit
    - Every returned message is a ChatMessage read model with a UTC-aware timestamp
    - A unique-constraint race on account creation surfaces as ConflictError

Design Decisions:
    - Trim by cutoff id (the N-th highest id) instead of NOT IN (subquery LIMIT):
      portable across SQLite and PostgreSQL, one indexed range delete
    - Bulk UPDATE/DELETE statements: redaction by author and purges touch many rows
"""

from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from livechat.core.domain_types import MessageId, Nickname
from livechat.core.errors import ConflictError
from livechat.core.events import ChatMessage
from livechat.models.account import Account
from livechat.models.message import Message


def _aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_chat_message(row: Message) -> ChatMessage:
    return ChatMessage(
        id=MessageId(row.id),
        nickname=Nickname(row.nickname),
        body=row.body,
        created_at=_aware(row.created_at),
    )


class SqlAccountRepository:
    """AccountRepository backed by the `users` table."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def get(self, nickname: Nickname) -> Account | None:
        result = await self._db.execute(
            select(Account).where(Account.nickname == nickname),
        )
        return result.scalar_one_or_none()

    async def create(
        self, nickname: Nickname, password_hash: str, created_at: datetime,
    ) -> Account:
        account = Account(
            nickname=nickname, password_hash=password_hash,
            banned=False, created_at=created_at,
        )
        self._db.add(account)
        try:
            await self._db.flush()
        except IntegrityError:
            raise ConflictError(nickname)
        return account

    async def set_banned(self, nickname: Nickname, banned: bool) -> bool:
        result = await self._db.execute(
            update(Account)
            .where(Account.nickname == nickname)
            .values(banned=banned),
        )
        return result.rowcount > 0

    async def list_by_status(self, banned: bool) -> list[Account]:
        result = await self._db.execute(
            select(Account)
            .where(Account.banned == banned)
            .order_by(func.lower(Account.nickname), Account.nickname),
        )
        return list(result.scalars().all())

    async def delete(self, nickname: Nickname) -> bool:
        result = await self._db.execute(
            delete(Account).where(Account.nickname == nickname),
        )
        return result.rowcount > 0


class SqlMessageRepository:
    """MessageRepository backed by the `messages` table."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def insert(
        self, nickname: Nickname, body: str, created_at: datetime,
    ) -> ChatMessage:
        row = Message(nickname=nickname, body=body, created_at=created_at)
        self._db.add(row)
        await self._db.flush()
        return to_chat_message(row)

    async def get(self, message_id: MessageId) -> ChatMessage | None:
        row = await self._db.get(Message, message_id)
        return to_chat_message(row) if row else None

    async def recent(self, limit: int) -> list[ChatMessage]:
        result = await self._db.execute(
            select(Message).order_by(Message.id.desc()).limit(limit),
        )
        rows = result.scalars().all()
        return [to_chat_message(r) for r in reversed(rows)]

    async def update_body(self, message_id: MessageId, body: str) -> bool:
        result = await self._db.execute(
            update(Message).where(Message.id == message_id).values(body=body),
        )
        return result.rowcount > 0

    async def update_body_by_author(self, nickname: Nickname, body: str) -> int:
        result = await self._db.execute(
            update(Message).where(Message.nickname == nickname).values(body=body),
        )
        return result.rowcount

    async def trim_to(self, keep: int) -> int:
        """Delete every row below the `keep`-th highest id."""
        cutoff = await self._db.scalar(
            select(Message.id)
            .order_by(Message.id.desc())
            .offset(keep - 1)
            .limit(1),
        )
        if cutoff is None:
            return 0
        result = await self._db.execute(
            delete(Message).where(Message.id < cutoff),
        )
        return result.rowcount

    async def delete_by_author(self, nickname: Nickname) -> int:
        result = await self._db.execute(
            delete(Message).where(Message.nickname == nickname),
        )
        return result.rowcount

    async def delete_all(self) -> int:
        result = await self._db.execute(delete(Message))
        return result.rowcount
