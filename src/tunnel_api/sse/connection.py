from __future__ import annotations

import asyncio
from typing import Optional
from uuid import uuid4


class SseConnection:
    """Delivery sink bound to one streaming connection."""

    def __init__(self, *, tunnel_id: str, subchannel: str, max_queue: int = 64) -> None:
        self.tunnel_id = tunnel_id
        self.subchannel = subchannel
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_queue)
        self._closed = asyncio.Event()
        self._id = uuid4().hex

    def __hash__(self) -> int:
        return hash(self._id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SseConnection):
            return False
        return self._id == other._id

    def __repr__(self) -> str:
        return f"SseConnection(id={self._id}, tunnel={self.tunnel_id}, subchannel={self.subchannel})"

    @property
    def id(self) -> str:
        return self._id

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def enqueue(self, content: str, *, timeout: Optional[float] = None) -> bool:
        """Hand content to this sink; False when it is closed or did not accept in time."""
        if self.closed:
            return False
        try:
            await asyncio.wait_for(self._queue.put(content), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def next_content(self) -> str:
        return await self._queue.get()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        # Pending content is discarded, the reader will not consume it.
        while not self._queue.empty():
            self._queue.get_nowait()


__all__ = ["SseConnection"]
