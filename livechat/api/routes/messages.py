"""Message Routes — history, posting and the SSE streams.

Invariants:
    - Every stream starts with a `retry:` hint followed by the `ready` event
    - The hub subscription is taken inside the frame generator, never in the
      handler: a response that dies before its body starts leaves no subscriber
    - Stream cleanup (unsubscribe) runs exactly once, in the generator's finally,
      whatever ended the stream: client disconnect, failed send, shutdown or error
    - EventStreamResponse closes the frame generator however the response ends,
      so a generator parked at `yield` cannot outlive its connection
    - Auth failures on the authenticated stream are plain JSON errors, raised
      before any SSE byte is sent

Design Decisions:
    - StreamingResponse over a subscription queue: the hub never writes to
      sockets, so a slow client only fills its own queue
    - SSE headers prevent proxy/browser buffering of streamed events
"""

import asyncio
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from livechat.api.dependencies import (
    get_current_nickname, get_services, get_stream_nickname,
)
from livechat.core.domain_types import Nickname
from livechat.core.events import format_retry, format_sse
from livechat.schemas.messages import (
    MessageCreate, MessageList, MessageOut, PostResponse,
)
from livechat.services.chat_service import ChatService
from livechat.services.container import ServiceContainer

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/messages", tags=["messages"])

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}


@router.get("", response_model=MessageList)
async def read_history(
    nickname: Nickname = Depends(get_current_nickname),
    services: ServiceContainer = Depends(get_services),
):
    messages = await services.chat.read_history(nickname)
    return MessageList(messages=[MessageOut.from_message(m) for m in messages])


@router.get("/public", response_model=MessageList)
async def read_public_history(
    services: ServiceContainer = Depends(get_services),
):
    messages = await services.chat.read_history()
    return MessageList(messages=[MessageOut.from_message(m) for m in messages])


@router.post(
    "", response_model=PostResponse, status_code=status.HTTP_201_CREATED,
)
async def post_message(
    body: MessageCreate,
    nickname: Nickname = Depends(get_current_nickname),
    services: ServiceContainer = Depends(get_services),
):
    message = await services.chat.post(nickname, body.body)
    return PostResponse(message=MessageOut.from_message(message))


@router.get("/stream")
async def stream_messages(
    nickname: Nickname = Depends(get_stream_nickname),
    services: ServiceContainer = Depends(get_services),
):
    """Authenticated SSE stream (?token= or Bearer header)."""
    await services.chat.admit_stream(nickname)
    return _streaming_response(services, nickname)


@router.get("/public/stream")
async def stream_public_messages(
    services: ServiceContainer = Depends(get_services),
):
    """Anonymous SSE stream."""
    return _streaming_response(services, None)


class EventStreamResponse(StreamingResponse):
    """StreamingResponse that always closes its frame generator."""

    media_type = "text/event-stream"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.body_iterator.aclose()


def _streaming_response(
    services: ServiceContainer, nickname: Nickname | None,
) -> EventStreamResponse:
    return EventStreamResponse(
        event_frames(
            services.chat, nickname, services.settings.stream_retry_ms,
        ),
        headers=_SSE_HEADERS,
    )


async def event_frames(
    chat: ChatService, nickname: Nickname | None, retry_ms: int,
) -> AsyncIterator[str]:
    """SSE frames for one subscription until it closes or the client leaves."""
    subscription = chat.join_stream(nickname)
    try:
        yield format_retry(retry_ms)
        async for event in subscription.events():
            yield format_sse(event)
    except asyncio.CancelledError:
        logger.info(
            "Client disconnected from stream",
            extra={"nickname": nickname},
        )
        raise
    finally:
        chat.close_stream(subscription)
