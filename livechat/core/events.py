"""Chat Events — event payload builders and SSE wire framing.

Invariants:
    - Each event carries the minimal payload a reader needs to update its view
    - SSE frames end with a blank line; heartbeats are SSE comments, not events
    - JSON payloads keep non-ASCII text as-is (ensure_ascii=False)

Design Decisions:
    - Frozen dataclass events: the same instance is enqueued to every subscriber
    - Named SSE events (event: <kind>) so browsers can addEventListener per kind
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from livechat.core.domain_types import EventKind, MessageId, Nickname


@dataclass(frozen=True)
class ChatMessage:
    """Read model of one ledger row."""
    id: MessageId
    nickname: Nickname
    body: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nickname": self.nickname,
            "body": self.body,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ChatEvent:
    kind: EventKind
    data: dict[str, Any] = field(default_factory=dict)


HEARTBEAT_EVENT = ChatEvent(EventKind.HEARTBEAT)


def ready_event() -> ChatEvent:
    return ChatEvent(EventKind.READY, {"ok": True})


def message_event(message: ChatMessage) -> ChatEvent:
    return ChatEvent(EventKind.MESSAGE, message.to_dict())


def clear_event() -> ChatEvent:
    return ChatEvent(EventKind.CLEAR, {"ok": True})


def delete_event(message_id: MessageId) -> ChatEvent:
    return ChatEvent(EventKind.DELETE, {"id": message_id})


def warn_event(nickname: Nickname, message_id: MessageId) -> ChatEvent:
    return ChatEvent(
        EventKind.WARN, {"nickname": nickname, "messageId": message_id},
    )


def ban_event(nickname: Nickname) -> ChatEvent:
    return ChatEvent(EventKind.BAN, {"nickname": nickname})


def purge_event(nickname: Nickname) -> ChatEvent:
    return ChatEvent(EventKind.PURGE, {"nickname": nickname})


def format_sse(event: ChatEvent) -> str:
    """Format event as one SSE frame."""
    if event.kind is EventKind.HEARTBEAT:
        return ": heartbeat\n\n"
    data = json.dumps(event.data, ensure_ascii=False)
    return f"event: {event.kind.value}\ndata: {data}\n\n"


def format_retry(retry_ms: int) -> str:
    """Reconnect hint sent as the first frame of every stream."""
    return f"retry: {retry_ms}\n\n"
