"""Per-connection streaming lifecycle: register, push frames, deregister."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol

from tunnel_api.errors import TunnelNotFound
from tunnel_api.registry.tunnels import TunnelRegistry

from .connection import SseConnection
from .models import SessionState, serialize_frame
from .registry import SubscriberDirectory

LOGGER = logging.getLogger(__name__)


class FrameWriter(Protocol):
    async def write(self, frame: bytes) -> None: ...

    async def flush(self) -> None: ...


class StreamingSession:
    """One subscriber's stream of frames for a (tunnel, sub-channel).

    ``prepare`` validates the tunnel before anything is sent to the client.
    ``run`` registers the sink, writes one frame per pushed content until the
    ``cancelled`` event fires or the sink is closed server-side, and always
    deregisters on the way out.
    """

    def __init__(
        self,
        *,
        tunnel_id: str,
        subchannel: str,
        registry: TunnelRegistry,
        directory: SubscriberDirectory,
        max_queue: int = 64,
    ) -> None:
        self.tunnel_id = tunnel_id
        self.subchannel = subchannel
        self.state = SessionState.INIT
        self.frames_written = 0
        self._registry = registry
        self._directory = directory
        self.connection = SseConnection(
            tunnel_id=tunnel_id,
            subchannel=subchannel,
            max_queue=max_queue,
        )
        self._unsubscribed = False
        self._generation: Optional[int] = None

    async def prepare(self) -> None:
        generation = await self._registry.generation(self.tunnel_id)
        if generation is None:
            raise TunnelNotFound(self.tunnel_id)
        self._generation = generation

    async def run(self, writer: FrameWriter, cancelled: asyncio.Event) -> None:
        if self.state is not SessionState.INIT:
            raise RuntimeError(f"session already {self.state.value}")
        try:
            await self._directory.subscribe(self.tunnel_id, self.subchannel, self.connection)
            self.state = SessionState.REGISTERED
            # The tunnel may have been deleted or recreated since prepare().
            if await self._registry.generation(self.tunnel_id) != self._generation:
                LOGGER.debug(
                    "Tunnel %s went away before stream start sink=%s",
                    self.tunnel_id,
                    self.connection.id,
                )
                return
            LOGGER.debug(
                "Stream opened tunnel=%s subchannel=%s sink=%s",
                self.tunnel_id,
                self.subchannel,
                self.connection.id,
            )
            self.state = SessionState.ACTIVE
            while True:
                content = await self._next_content(cancelled)
                if content is None:
                    break
                try:
                    await writer.write(serialize_frame(content))
                    await writer.flush()
                except OSError as exc:
                    LOGGER.debug("Stream write failed sink=%s: %s", self.connection.id, exc)
                    break
                self.frames_written += 1
        finally:
            await self._close()

    async def _next_content(self, cancelled: asyncio.Event) -> Optional[str]:
        """Wait for pushed content; None once cancelled or closed."""
        getter = asyncio.ensure_future(self.connection.next_content())
        cancel_waiter = asyncio.ensure_future(cancelled.wait())
        close_waiter = asyncio.ensure_future(self.connection.wait_closed())
        waiters = {getter, cancel_waiter, close_waiter}
        try:
            done, _ = await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()
        if cancel_waiter in done or close_waiter in done:
            # Content that raced the cancellation is discarded.
            return None
        return getter.result()

    async def _close(self) -> None:
        if not self._unsubscribed:
            self._unsubscribed = True
            await self._directory.unsubscribe(self.tunnel_id, self.subchannel, self.connection)
        await self.connection.close()
        self.state = SessionState.CLOSED
        LOGGER.debug(
            "Stream closed tunnel=%s subchannel=%s sink=%s frames=%d",
            self.tunnel_id,
            self.subchannel,
            self.connection.id,
            self.frames_written,
        )


__all__ = ["FrameWriter", "StreamingSession"]
