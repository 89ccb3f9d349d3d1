"""ASGI transport for streaming sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping, Optional

from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from tunnel_api.sse.session import StreamingSession

LOGGER = logging.getLogger(__name__)

STREAM_HEADERS: Mapping[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class AsgiFrameWriter:
    """FrameWriter over an ASGI ``send`` callable."""

    def __init__(self, send: Send) -> None:
        self._send = send

    async def write(self, frame: bytes) -> None:
        await self._send({"type": "http.response.body", "body": frame, "more_body": True})

    async def flush(self) -> None:
        # Each ASGI body message is handed to the server as soon as it is sent.
        return None


class EventStreamResponse(Response):
    media_type = "text/event-stream"

    def __init__(
        self,
        session: StreamingSession,
        *,
        status_code: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.session = session
        self.status_code = status_code
        self.background = None
        self.init_headers({**STREAM_HEADERS, **(headers or {})})

    @staticmethod
    async def _listen_for_disconnect(receive: Receive, cancelled: asyncio.Event) -> None:
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                cancelled.set()
                return

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        cancelled = asyncio.Event()
        watcher = asyncio.ensure_future(self._listen_for_disconnect(receive, cancelled))
        try:
            try:
                await send(
                    {
                        "type": "http.response.start",
                        "status": self.status_code,
                        "headers": self.raw_headers,
                    }
                )
            except OSError as exc:
                LOGGER.debug("Client went away before stream start: %s", exc)
                return
            await self.session.run(AsgiFrameWriter(send), cancelled)
        finally:
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)

        if not cancelled.is_set():
            try:
                await send({"type": "http.response.body", "body": b"", "more_body": False})
            except OSError as exc:
                LOGGER.debug("Client went away before stream end: %s", exc)
        if self.background is not None:
            await self.background()


__all__ = ["AsgiFrameWriter", "EventStreamResponse", "STREAM_HEADERS"]
