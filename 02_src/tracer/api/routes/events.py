"""Server-Sent-Events stream of engine events."""

import asyncio
from typing import AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from ...app import Application
from ...broadcast import IBroadcastHub, Subscriber, format_sse
from ...config import KEEPALIVE_INTERVAL_SECONDS

CONNECTED_COMMENT = ": connected\n\n"
KEEPALIVE_COMMENT = ": keepalive\n\n"


async def event_stream(
    hub: IBroadcastHub,
    subscriber: Subscriber,
    request: Request | None = None,
    keepalive_interval: float = KEEPALIVE_INTERVAL_SECONDS,
) -> AsyncIterator[str]:
    """Yield SSE frames for one subscriber until it disconnects or is dropped."""
    loop = asyncio.get_running_loop()
    try:
        yield CONNECTED_COMMENT
        next_keepalive = loop.time() + keepalive_interval
        while not subscriber.closed:
            if request is not None and await request.is_disconnected():
                break
            event = await subscriber.receive(max(0.0, next_keepalive - loop.time()))
            if event is not None:
                yield format_sse(event)
                continue
            yield KEEPALIVE_COMMENT
            next_keepalive = loop.time() + keepalive_interval
    finally:
        hub.unsubscribe(subscriber)


def create_events_router(app: Application) -> APIRouter:
    """Create events router."""
    router = APIRouter(tags=["events"])

    @router.get("/events")
    async def stream_events(request: Request) -> StreamingResponse:
        """Live event stream, starting with an init snapshot."""
        subscriber = app.hub.subscribe()
        return StreamingResponse(
            event_stream(app.hub, subscriber, request),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return router
