"""Boundary Protocols — contracts between the chat components and durable storage.

Invariants:
    - Components depend on these Protocols, never on SQLAlchemy queries directly
    - Repositories never commit: the caller's unit of work owns the transaction
    - Required store capabilities: insert-with-generated-id, point lookup,
      bounded range read ordered by id, in-place field update, delete-by-predicate

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO
"""

from datetime import datetime
from typing import Protocol

from livechat.core.domain_types import MessageId, Nickname
from livechat.core.events import ChatMessage


class AccountLike(Protocol):
    """Structural contract for account rows handed back by repositories."""
    nickname: str
    password_hash: str
    banned: bool
    created_at: datetime


class AccountRepository(Protocol):
    """Contract for account persistence — implemented by infrastructure."""
    async def get(self, nickname: Nickname) -> AccountLike | None: ...
    async def create(
        self, nickname: Nickname, password_hash: str, created_at: datetime,
    ) -> AccountLike: ...
    async def set_banned(self, nickname: Nickname, banned: bool) -> bool: ...
    async def list_by_status(self, banned: bool) -> list[AccountLike]: ...
    async def delete(self, nickname: Nickname) -> bool: ...


class MessageRepository(Protocol):
    """Contract for message persistence — implemented by infrastructure."""
    async def insert(
        self, nickname: Nickname, body: str, created_at: datetime,
    ) -> ChatMessage: ...
    async def get(self, message_id: MessageId) -> ChatMessage | None: ...
    async def recent(self, limit: int) -> list[ChatMessage]: ...
    async def update_body(self, message_id: MessageId, body: str) -> bool: ...
    async def update_body_by_author(self, nickname: Nickname, body: str) -> int: ...
    async def trim_to(self, keep: int) -> int: ...
    async def delete_by_author(self, nickname: Nickname) -> int: ...
    async def delete_all(self) -> int: ...
