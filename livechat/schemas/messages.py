"""Message Schemas — post body and history envelopes."""

from datetime import datetime

from pydantic import BaseModel, Field

from livechat.core.events import ChatMessage


class MessageCreate(BaseModel):
    body: str = Field("", max_length=4096)


class MessageOut(BaseModel):
    id: int
    nickname: str
    body: str
    created_at: datetime

    @classmethod
    def from_message(cls, message: ChatMessage) -> "MessageOut":
        return cls(
            id=message.id,
            nickname=message.nickname,
            body=message.body,
            created_at=message.created_at,
        )


class MessageList(BaseModel):
    messages: list[MessageOut]


class PostResponse(BaseModel):
    message: MessageOut
